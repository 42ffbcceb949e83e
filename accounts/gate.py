"""Per-area authorization policy.

One table maps URL areas to the roles allowed in them and to the directory
checks that run on entry. ``evaluate`` walks it once per request and returns
an allow / redirect / not-found decision; nothing here touches the response.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from django.db import DatabaseError

from students.permissions import get_linked_student

from . import directory
from .models import ADMIN_ROLES, ApprovalStatus, Role

logger = logging.getLogger(__name__)

LOGIN_URL = "/login/"
ADMIN_LOGIN_URL = "/admin-login/"
PENDING_APPROVAL_URL = "/pending-approval/"
ADMIN_PENDING_URL = "/admin-pending/"
ADMIN_HOME_URL = "/admin/students/"
ACCOUNT_INACTIVE_URL = LOGIN_URL + "?error=account_inactive"
ADMIN_REQUIRED_URL = ADMIN_LOGIN_URL + "?error=admin_required"
ADMIN_NOT_FOUND_URL = LOGIN_URL + "?callbackUrl=" + ADMIN_HOME_URL + "&error=admin_not_found"


def home_path(role, status=None, uid=None, student_id=None):
    """Landing path after sign-in for a given role and approval state."""
    if role in ADMIN_ROLES:
        if status != ApprovalStatus.APPROVED:
            return ADMIN_PENDING_URL
        return ADMIN_HOME_URL
    if role == Role.PARENT:
        return f"/parent/{uid}/dashboard/" if uid else "/parent/"
    if role == Role.STUDENT:
        if status == ApprovalStatus.PENDING:
            return PENDING_APPROVAL_URL
        return f"/student/{student_id or uid}/"
    return LOGIN_URL


@dataclass(frozen=True)
class Decision:
    action: str
    location: str = ""

    @property
    def allowed(self) -> bool:
        return self.action == "allow"

    @property
    def is_redirect(self) -> bool:
        return self.action == "redirect"

    @property
    def is_not_found(self) -> bool:
        return self.action == "not_found"


ALLOW = Decision("allow")
NOT_FOUND = Decision("not_found")


def redirect_to(location) -> Decision:
    return Decision("redirect", location)


def _check_admin_area(principal, params, super_admin_only=False):
    # the record decides; an admin approved after sign-in gets in without a new token
    admin = directory.get_admin(principal.uid)
    if admin is None:
        logger.info("Admin area entry refused, no admin record for uid %s", principal.uid)
        return redirect_to(ADMIN_NOT_FOUND_URL)
    if admin.status != ApprovalStatus.APPROVED:
        return redirect_to(ADMIN_PENDING_URL)
    if super_admin_only and admin.role != Role.SUPER_ADMIN:
        return redirect_to(ADMIN_HOME_URL)
    return ALLOW


def _check_super_admin_area(principal, params):
    return _check_admin_area(principal, params, super_admin_only=True)


def _check_student_area(principal, params):
    student = directory.get_student_by_route_id(params.get("student_id"))
    if student is None or student.user.uid != principal.uid:
        return NOT_FOUND
    if student.is_inactive:
        return redirect_to(ACCOUNT_INACTIVE_URL)
    if student.is_pending:
        return redirect_to(PENDING_APPROVAL_URL)
    return ALLOW


def _check_parent_area(principal, params):
    if params.get("uid") != principal.uid:
        return redirect_to(LOGIN_URL)
    if directory.get_parent(principal.uid) is None:
        return redirect_to(LOGIN_URL)
    return ALLOW


def _check_parent_student_area(principal, params):
    decision = _check_parent_area(principal, params)
    if not decision.allowed:
        return decision
    if get_linked_student(principal.uid, params.get("student_id")) is None:
        return NOT_FOUND
    return ALLOW


@dataclass(frozen=True)
class AreaPolicy:
    name: str
    pattern: re.Pattern
    login_url: str
    roles: frozenset
    check: Callable
    wrong_role_url: Optional[str] = None

    def match(self, path):
        return self.pattern.match(path)


def _area(name, regex, login_url, roles, check, wrong_role_url=None):
    return AreaPolicy(
        name=name,
        pattern=re.compile(regex),
        login_url=login_url,
        roles=frozenset(roles),
        check=check,
        wrong_role_url=wrong_role_url,
    )


# most specific first
POLICIES = (
    _area(
        "super_admin",
        r"^/admin/admins(?:/|$)",
        ADMIN_LOGIN_URL,
        ADMIN_ROLES,
        _check_super_admin_area,
        wrong_role_url=ADMIN_REQUIRED_URL,
    ),
    _area(
        "admin",
        r"^/admin(?:/|$)",
        ADMIN_LOGIN_URL,
        ADMIN_ROLES,
        _check_admin_area,
        wrong_role_url=ADMIN_REQUIRED_URL,
    ),
    _area(
        "parent_student",
        r"^/parent/(?P<uid>[^/]+)/student/(?P<student_id>[^/]+)(?:/|$)",
        LOGIN_URL,
        {Role.PARENT},
        _check_parent_student_area,
    ),
    _area(
        "parent",
        r"^/parent/(?P<uid>[^/]+)/",
        LOGIN_URL,
        {Role.PARENT},
        _check_parent_area,
    ),
    _area(
        "student",
        r"^/student/(?P<student_id>[^/]+)(?:/|$)",
        LOGIN_URL,
        {Role.STUDENT},
        _check_student_area,
    ),
)


def match_policy(path):
    for policy in POLICIES:
        m = policy.match(path)
        if m:
            return policy, m.groupdict()
    return None, {}


def evaluate(path, principal) -> Decision:
    policy, params = match_policy(path)
    if policy is None:
        return ALLOW
    if principal is None:
        return redirect_to(policy.login_url)
    if principal.role not in policy.roles:
        logger.info(
            "Role %s refused for area %s (uid %s)", principal.role, policy.name, principal.uid
        )
        return redirect_to(policy.wrong_role_url or policy.login_url)
    try:
        return policy.check(principal, params)
    except DatabaseError:
        logger.exception("Directory lookup failed while gating %s", policy.name)
        return redirect_to(policy.login_url)
