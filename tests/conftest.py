import itertools

import pytest
from django.conf import settings

from accounts.models import ApprovalStatus, Role, User
from accounts.principal import Principal, issue_token
from students.models import ParentStudentLink, Student

_seq = itertools.count(1)


def _user(uid, role, status="", **extra):
    n = next(_seq)
    extra.setdefault("username", f"{role.lower() or 'user'}_{n}")
    extra.setdefault("name", f"{role.title() or 'User'} {n}")
    return User.objects.create(uid=uid, role=role, status=status, **extra)


@pytest.fixture
def make_student(db):
    def factory(uid=None, approval=Student.ApprovalStatus.APPROVED, account=Student.AccountStatus.ACTIVE, **fields):
        uid = uid or f"kakao-student-{next(_seq)}"
        user = _user(uid, Role.STUDENT)
        fields.setdefault("name", user.name)
        return Student.objects.create(
            user=user, approval_status=approval, account_status=account, **fields
        )

    return factory


@pytest.fixture
def make_parent(db):
    def factory(uid=None, **extra):
        return _user(uid or f"kakao-parent-{next(_seq)}", Role.PARENT, **extra)

    return factory


@pytest.fixture
def make_admin(db):
    def factory(uid=None, role=Role.ADMIN, status=ApprovalStatus.APPROVED, password=None, **extra):
        user = _user(uid or f"admin_{next(_seq)}", role, status, **extra)
        if password:
            user.set_password(password)
            user.save(update_fields=["password"])
        return user

    return factory


@pytest.fixture
def link():
    def factory(parent, student):
        return ParentStudentLink.objects.create(parent=parent, student=student)

    return factory


def principal_for(obj):
    if isinstance(obj, Student):
        return Principal(obj.uid, Role.STUDENT, obj.approval_status)
    if obj.role == Role.PARENT:
        return Principal(obj.uid, Role.PARENT)
    return Principal(obj.uid, obj.role, obj.status or None)


@pytest.fixture
def login_as(client):
    """Put a signed principal cookie on the test client."""

    def _login(obj_or_principal):
        principal = obj_or_principal
        if not isinstance(principal, Principal):
            principal = principal_for(principal)
        client.cookies[settings.PRINCIPAL_COOKIE_NAME] = issue_token(principal)
        return client

    return _login
