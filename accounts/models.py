import secrets
import time

from django.contrib.auth.models import AbstractUser
from django.db import models


class Role(models.TextChoices):
    STUDENT = "STUDENT", "Student"
    PARENT = "PARENT", "Parent"
    ADMIN = "ADMIN", "Admin"
    SUPER_ADMIN = "SUPER_ADMIN", "Super admin"


class ApprovalStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"


ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


def synthetic_admin_uid() -> str:
    return f"admin_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class User(AbstractUser):
    """Single identity table for every role.

    ``uid`` is the provider subject for social logins and a synthetic id for
    credential admins; it is unique across all roles. ``role`` stays blank
    until a provider-linked user completes signup. ``status`` only applies to
    admins (students carry their approval on ``students.Student``).
    """

    uid = models.CharField(max_length=128, unique=True, null=True, blank=True)
    role = models.CharField(max_length=16, choices=Role.choices, blank=True, default="")
    status = models.CharField(
        max_length=16, choices=ApprovalStatus.choices, blank=True, default=""
    )
    name = models.CharField(max_length=128, blank=True)
    phone_number = models.CharField(max_length=32, blank=True)

    class Meta:
        indexes = [models.Index(fields=["role", "status"], name="user_role_status_idx")]

    @property
    def is_admin_role(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    def __str__(self):
        return f"{self.name or self.username} ({self.role or 'unregistered'})"
