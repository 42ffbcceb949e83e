"""Sign-in resolution and signup completion for every role.

A uid may belong to at most one of student, parent or admin. Every path here
asks the directory which kind already holds the uid before creating anything.
"""
import logging

from django.contrib.auth import authenticate
from django.db import DatabaseError, IntegrityError, transaction

from students.models import Student

from . import directory
from .gate import ACCOUNT_INACTIVE_URL, ADMIN_PENDING_URL, home_path
from .models import ApprovalStatus, Role, User, synthetic_admin_uid
from .principal import Principal
from .results import UNEXPECTED_ERROR, fail, ok

logger = logging.getLogger(__name__)

SIGNUP_URL = "/signup/"
ADMIN_SIGNUP_URL = "/admin-login/signup/"
ADMIN_LOGIN_REQUIRED_URL = "/auth/admin-login-required/"
ADMIN_UNKNOWN_URL = "/admin-login/?error=admin_not_found"
ALREADY_REGISTERED = "This account is already registered. Please sign in."

STUDENT_PROFILE_FIELDS = (
    "name",
    "phone",
    "school_name",
    "school_type",
    "grade",
    "parent_phone",
    "parent_relation",
)


def student_principal(student):
    return Principal(uid=student.user.uid, role=Role.STUDENT, status=student.approval_status)


def admin_principal(user):
    return Principal(uid=user.uid, role=user.role, status=user.status or ApprovalStatus.PENDING)


def _student_home(student):
    return home_path(Role.STUDENT, student.approval_status, student.user.uid, student.pk)


def resolve_sign_in(user, admin_flow=False, signup_intent=False):
    """Map a provider-authenticated user onto ``(principal, landing path)``.

    ``principal`` is None whenever no session should be issued (unknown
    user, blocked student, admin outside the admin flow).
    """
    uid = getattr(user, "uid", None)
    if not uid:
        return None, SIGNUP_URL

    student = directory.get_student(uid)
    if student is not None:
        if student.is_inactive:
            logger.info("Blocked sign-in for inactive student %s", uid)
            return None, ACCOUNT_INACTIVE_URL
        return student_principal(student), _student_home(student)

    parent = directory.get_parent(uid)
    if parent is not None:
        return Principal(uid=uid, role=Role.PARENT), home_path(Role.PARENT, uid=uid)

    admin = directory.get_admin(uid)
    if admin is not None:
        if not admin_flow:
            return None, ADMIN_LOGIN_REQUIRED_URL
        principal = admin_principal(admin)
        return principal, home_path(principal.role, principal.status)

    if admin_flow:
        return None, ADMIN_SIGNUP_URL if signup_intent else ADMIN_UNKNOWN_URL
    return None, SIGNUP_URL


def register_student(user, **profile):
    """Create a PENDING student for ``user``, or point back at the existing one."""
    missing = [f for f in ("name", "phone", "parent_phone") if not (profile.get(f) or "").strip()]
    if missing:
        return fail("Please fill in: " + ", ".join(missing))
    try:
        kind = directory.existing_kind(user.uid)
        if kind == directory.KIND_STUDENT:
            return ok(redirect=_student_home(directory.get_student(user.uid)))
        if kind is not None:
            return fail(ALREADY_REGISTERED)
        with transaction.atomic():
            user.role = Role.STUDENT
            user.name = profile["name"].strip()
            user.save(update_fields=["role", "name"])
            student = Student.objects.create(
                user=user,
                **{f: (profile.get(f) or "").strip() for f in STUDENT_PROFILE_FIELDS},
            )
    except IntegrityError:
        logger.warning("Duplicate student registration for %s", user.uid)
        return fail(ALREADY_REGISTERED)
    except DatabaseError:
        logger.exception("register_student failed for %s", user.uid)
        return fail(UNEXPECTED_ERROR)
    logger.info("Registered student %s (uid %s)", student.pk, user.uid)
    return ok(redirect=_student_home(student))


def register_parent(user, name=""):
    try:
        kind = directory.existing_kind(user.uid)
        if kind == directory.KIND_PARENT:
            return ok(redirect=home_path(Role.PARENT, uid=user.uid))
        if kind is not None:
            return fail(ALREADY_REGISTERED)
        user.role = Role.PARENT
        user.name = (name or user.name or "").strip()
        user.save(update_fields=["role", "name"])
    except DatabaseError:
        logger.exception("register_parent failed for %s", user.uid)
        return fail(UNEXPECTED_ERROR)
    logger.info("Registered parent %s", user.uid)
    return ok(redirect=home_path(Role.PARENT, uid=user.uid))


def create_admin(username, password, name, phone_number=""):
    """Credential signup: a PENDING admin behind a synthetic uid."""
    username = (username or "").strip()
    if not username or not password or not (name or "").strip():
        return fail("Username, password and name are required.")
    try:
        if User.objects.filter(username=username).exists():
            return fail("That username is already taken.")
        user = User(
            username=username,
            uid=synthetic_admin_uid(),
            role=Role.ADMIN,
            status=ApprovalStatus.PENDING,
            name=name.strip(),
            phone_number=(phone_number or "").strip(),
        )
        user.set_password(password)
        user.save()
    except IntegrityError:
        return fail("That username is already taken.")
    except DatabaseError:
        logger.exception("create_admin failed for %s", username)
        return fail(UNEXPECTED_ERROR)
    logger.info("Admin signup %s pending approval", user.uid)
    return ok(redirect=ADMIN_PENDING_URL)


def create_admin_with_provider(user, name, phone_number=""):
    if not (name or "").strip():
        return fail("Name is required.")
    try:
        kind = directory.existing_kind(user.uid)
        if kind == directory.KIND_ADMIN:
            return fail(ALREADY_REGISTERED)
        if kind is not None:
            return fail("This account is already registered as a %s." % kind)
        user.role = Role.ADMIN
        user.status = ApprovalStatus.PENDING
        user.name = name.strip()
        user.phone_number = (phone_number or "").strip()
        user.save(update_fields=["role", "status", "name", "phone_number"])
    except DatabaseError:
        logger.exception("create_admin_with_provider failed for %s", user.uid)
        return fail(UNEXPECTED_ERROR)
    logger.info("Provider admin signup %s pending approval", user.uid)
    return ok(redirect=ADMIN_PENDING_URL)


def authenticate_admin(request, username, password):
    """Credential login for admins; the role is embedded in the principal."""
    user = authenticate(request, username=username, password=password)
    if user is None or not user.is_admin_role or not user.uid:
        return None
    return admin_principal(user)
