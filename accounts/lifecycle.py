"""Account status transitions for students and admins.

Every operation takes the caller as an explicit ``Principal`` and answers
with an ``ActionResult``; database failures are logged and reported, never
raised to the view. Permission checks read the directory fresh instead of
trusting the role carried by the token.
"""
import logging

from django.db import DatabaseError, transaction

from students.models import Student

from . import directory
from .models import ADMIN_ROLES, ApprovalStatus, Role, User
from .results import LOGIN_REQUIRED, UNEXPECTED_ERROR, fail, ok

logger = logging.getLogger(__name__)

ADMIN_FLOOR_MESSAGE = (
    "At least one administrator must remain to operate the system. "
    "Ask another administrator to withdraw instead."
)


def _is_self(principal, uid) -> bool:
    return principal is not None and bool(uid) and principal.uid == uid


def _set_student_account_status(uid_or_id, account_status, by_id=False):
    if account_status not in Student.AccountStatus.values:
        return fail("Unknown account status.")
    if by_id:
        student = directory.get_student_by_id(uid_or_id)
    else:
        student = directory.get_student(uid_or_id)
    if student is None:
        return fail("Student not found.")
    if student.account_status != account_status:
        student.account_status = account_status
        student.save(update_fields=["account_status"])
        logger.info("Student %s account status -> %s", student.pk, account_status)
    return ok()


def deactivate_self(principal, uid):
    """Block the student's own login; data is kept."""
    if principal is None:
        return fail(LOGIN_REQUIRED)
    if not _is_self(principal, uid):
        return fail("You can only deactivate your own account.")
    try:
        return _set_student_account_status(uid, Student.AccountStatus.INACTIVE)
    except DatabaseError:
        logger.exception("deactivate_self failed for %s", uid)
        return fail(UNEXPECTED_ERROR)


def withdraw_self(principal, uid):
    """Delete the student and everything it owns."""
    if principal is None:
        return fail(LOGIN_REQUIRED)
    if not _is_self(principal, uid):
        return fail("You can only withdraw your own account.")
    try:
        student = directory.get_student(uid)
        if student is None:
            return fail("Student not found.")
        # the user row owns the record, its sub-collections and parent links
        student.user.delete()
    except DatabaseError:
        logger.exception("withdraw_self failed for %s", uid)
        return fail(UNEXPECTED_ERROR)
    logger.info("Student %s withdrew", uid)
    return ok()


def _require_approved_admin(principal, super_admin_only=False):
    """The caller's fresh admin record, or an ActionResult explaining the refusal."""
    if principal is None:
        return None, fail(LOGIN_REQUIRED)
    caller = directory.get_admin(principal.uid)
    if not directory.is_approved_admin(caller):
        return None, fail("Only administrators can do this.")
    if super_admin_only and not caller.is_super_admin:
        return None, fail("Only the super admin can do this.")
    return caller, None


def set_account_status(principal, target, account_status):
    """Admin-driven ACTIVE/INACTIVE switch for any student, by internal id."""
    try:
        _, refusal = _require_approved_admin(principal)
        if refusal:
            return refusal
        return _set_student_account_status(target, account_status, by_id=True)
    except DatabaseError:
        logger.exception("set_account_status failed for %s", target)
        return fail(UNEXPECTED_ERROR)


def approve_student(principal, target):
    try:
        _, refusal = _require_approved_admin(principal)
        if refusal:
            return refusal
        student = directory.get_student_by_id(target)
        if student is None:
            return fail("Student not found.")
        if student.approval_status != Student.ApprovalStatus.APPROVED:
            student.approval_status = Student.ApprovalStatus.APPROVED
            student.save(update_fields=["approval_status"])
            logger.info("Student %s approved by %s", student.pk, principal.uid)
    except DatabaseError:
        logger.exception("approve_student failed for %s", target)
        return fail(UNEXPECTED_ERROR)
    return ok()


STUDENT_PROFILE_FIELDS = (
    "name",
    "phone",
    "school_name",
    "school_type",
    "grade",
    "parent_phone",
    "parent_relation",
)


def update_student(principal, target, changes):
    """Admin edit of a student's profile; the account name follows the student name."""
    if "name" in changes and not (changes["name"] or "").strip():
        return fail("Enter the student's name.")
    try:
        _, refusal = _require_approved_admin(principal)
        if refusal:
            return refusal
        with transaction.atomic():
            student = directory.get_student_by_id(target)
            if student is None:
                return fail("Student not found.")
            changed = [
                key
                for key in STUDENT_PROFILE_FIELDS
                if key in changes and getattr(student, key) != changes[key]
            ]
            for key in changed:
                setattr(student, key, changes[key])
            if changed:
                student.save(update_fields=changed)
            if "name" in changed:
                student.user.name = student.name
                student.user.save(update_fields=["name"])
    except DatabaseError:
        logger.exception("update_student failed for %s", target)
        return fail(UNEXPECTED_ERROR)
    return ok()


def delete_student(principal, target):
    """Admin removal of a student, with everything withdraw_self would remove."""
    try:
        _, refusal = _require_approved_admin(principal)
        if refusal:
            return refusal
        student = directory.get_student_by_id(target)
        if student is None:
            return fail("Student not found.")
        student.user.delete()
    except DatabaseError:
        logger.exception("delete_student failed for %s", target)
        return fail(UNEXPECTED_ERROR)
    logger.info("Student %s deleted by %s", target, principal.uid)
    return ok()


def withdraw_admin(principal, uid):
    """Admin self-withdrawal, refused when it would leave no approved admin.

    The floor check and the delete share one transaction that locks every
    admin row, so two concurrent withdrawals cannot both observe a count of
    two.
    """
    if not _is_self(principal, uid):
        return fail("You can only withdraw your own account.")
    try:
        with transaction.atomic():
            admins = list(
                User.objects.select_for_update()
                .filter(role__in=ADMIN_ROLES)
                .order_by("pk")
            )
            me = next((a for a in admins if a.uid == uid), None)
            if me is None:
                return fail("Administrator not found.")
            if me.is_super_admin:
                return fail("The super admin account cannot be deleted.")
            approved = sum(
                1
                for a in admins
                if a.role == Role.SUPER_ADMIN or a.status == ApprovalStatus.APPROVED
            )
            if approved <= 1:
                return fail(ADMIN_FLOOR_MESSAGE)
            me.delete()
    except DatabaseError:
        logger.exception("withdraw_admin failed for %s", uid)
        return fail(UNEXPECTED_ERROR)
    logger.info("Administrator %s withdrew", uid)
    return ok()


def list_admins(principal):
    try:
        _, refusal = _require_approved_admin(principal, super_admin_only=True)
        if refusal:
            return refusal, []
        return ok(), list(directory.list_admins())
    except DatabaseError:
        logger.exception("list_admins failed")
        return fail(UNEXPECTED_ERROR), []


def update_admin_approval(principal, target_uid, status):
    """Super admin moves a plain admin between PENDING and APPROVED."""
    if status not in ApprovalStatus.values:
        return fail("Unknown approval status.")
    try:
        _, refusal = _require_approved_admin(principal, super_admin_only=True)
        if refusal:
            return refusal
        target = directory.get_admin(target_uid)
        if target is None:
            return fail("Administrator not found.")
        if target.is_super_admin:
            return fail("The super admin status cannot be changed.")
        if target.status != status:
            target.status = status
            target.save(update_fields=["status"])
            logger.info("Admin %s status -> %s by %s", target_uid, status, principal.uid)
    except DatabaseError:
        logger.exception("update_admin_approval failed for %s", target_uid)
        return fail(UNEXPECTED_ERROR)
    return ok()


def delete_admin(principal, target_uid):
    try:
        _, refusal = _require_approved_admin(principal, super_admin_only=True)
        if refusal:
            return refusal
        target = directory.get_admin(target_uid)
        if target is None:
            return fail("Administrator not found.")
        if target.is_super_admin:
            return fail("The super admin account cannot be deleted.")
        target.delete()
    except DatabaseError:
        logger.exception("delete_admin failed for %s", target_uid)
        return fail(UNEXPECTED_ERROR)
    logger.info("Admin %s deleted by %s", target_uid, principal.uid)
    return ok()
