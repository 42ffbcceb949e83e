"""Lookups across the student, parent and admin directories.

Every role lives on ``accounts.User`` keyed by ``uid``; students additionally
own a ``students.Student`` record. Callers that gate access always come here
for a fresh read instead of trusting what a token says.
"""
from django.db.models import Q

from students.models import Student

from .models import ADMIN_ROLES, ApprovalStatus, Role, User

KIND_STUDENT = "student"
KIND_PARENT = "parent"
KIND_ADMIN = "admin"


def get_student(uid):
    if not uid:
        return None
    return Student.objects.select_related("user").filter(user__uid=uid).first()


def get_student_by_id(student_id):
    """Internal numeric id only; admin screens never address students by uid."""
    student_id = str(student_id or "").strip()
    if not student_id.isdigit():
        return None
    return Student.objects.select_related("user").filter(pk=int(student_id)).first()


def get_student_by_route_id(route_id):
    """Route segments carry either the numeric id or the owner's uid."""
    route_id = str(route_id or "").strip()
    if not route_id:
        return None
    qs = Student.objects.select_related("user")
    if route_id.isdigit():
        student = qs.filter(pk=int(route_id)).first()
        if student is not None:
            return student
    # provider uids are often numeric too
    return qs.filter(user__uid=route_id).first()


def get_parent(uid):
    if not uid:
        return None
    return User.objects.filter(uid=uid, role=Role.PARENT).first()


def get_admin(uid):
    if not uid:
        return None
    return User.objects.filter(uid=uid, role__in=ADMIN_ROLES).first()


def get_admin_by_username(username):
    if not username:
        return None
    return User.objects.filter(username=username, role__in=ADMIN_ROLES).first()


def existing_kind(uid):
    """Which directory already holds ``uid``, if any."""
    if get_student(uid) is not None:
        return KIND_STUDENT
    if get_parent(uid) is not None:
        return KIND_PARENT
    if get_admin(uid) is not None:
        return KIND_ADMIN
    return None


def list_admins():
    return User.objects.filter(role__in=ADMIN_ROLES).order_by("-date_joined")


def approved_admins_q():
    # every SUPER_ADMIN counts towards the floor, plain admins only once approved
    return Q(role=Role.SUPER_ADMIN) | Q(role=Role.ADMIN, status=ApprovalStatus.APPROVED)


def approved_admins():
    return User.objects.filter(approved_admins_q())


def count_approved_admins() -> int:
    return approved_admins().count()


def is_approved_admin(user) -> bool:
    return (
        user is not None
        and user.is_admin_role
        and user.status == ApprovalStatus.APPROVED
    )
