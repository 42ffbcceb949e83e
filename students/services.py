import logging
import re
from collections import Counter

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from accounts import directory
from accounts.models import Role, User
from accounts.results import LOGIN_REQUIRED, UNEXPECTED_ERROR, fail, ok

from . import deadlines
from .models import Assignment, ErrorType, Note, ParentStudentLink, Schedule, Student, Unit

logger = logging.getLogger(__name__)


def phone_digits(value) -> str:
    return re.sub(r"\D", "", value or "")


def find_student_by_name_and_phones(name, student_phone, parent_phone):
    """Exact name match, phones compared on digits only."""
    student_digits = phone_digits(student_phone)
    parent_digits = phone_digits(parent_phone)
    for student in Student.objects.select_related("user").filter(name=name.strip()):
        if (
            phone_digits(student.phone) == student_digits
            and phone_digits(student.parent_phone) == parent_digits
        ):
            return student
    return None


def link_child_to_parent(principal, parent_uid, student_name, student_phone, parent_phone):
    if principal is None:
        return fail(LOGIN_REQUIRED)
    if principal.uid != parent_uid:
        return fail("You can only link children to your own account.")
    if not all((v or "").strip() for v in (student_name, student_phone, parent_phone)):
        return fail("Enter the student's name, the student's phone and the parent's phone.")
    try:
        student = find_student_by_name_and_phones(student_name, student_phone, parent_phone)
        if student is None:
            return fail("No matching student. Check the name and both phone numbers.")
        parent = directory.get_parent(parent_uid)
        if parent is None:
            return fail("Parent account not found.")
        _, created = ParentStudentLink.objects.get_or_create(parent=parent, student=student)
    except IntegrityError:
        return fail("This child is already linked.")
    except DatabaseError:
        logger.exception("link_child_to_parent failed for %s", parent_uid)
        return fail(UNEXPECTED_ERROR)
    if not created:
        return fail("This child is already linked.")
    logger.info("Parent %s linked to student %s", parent_uid, student.pk)
    return ok()


def _remove_link(parent, student):
    deleted, _ = ParentStudentLink.objects.filter(parent=parent, student=student).delete()
    return deleted


def unlink_student_from_parent(principal, parent_uid, student_route_id):
    """Parent-side unlink; neither account is deleted."""
    if principal is None:
        return fail(LOGIN_REQUIRED)
    if principal.uid != parent_uid:
        return fail("You can only unlink children from your own account.")
    try:
        parent = directory.get_parent(parent_uid)
        if parent is None:
            return fail("Parent account not found.")
        student = directory.get_student_by_route_id(student_route_id)
        if student is not None:
            _remove_link(parent, student)
    except DatabaseError:
        logger.exception("unlink_student_from_parent failed for %s", parent_uid)
        return fail(UNEXPECTED_ERROR)
    return ok()


def unlink_parent_from_student(principal, student_uid, parent_uid):
    """Student-side unlink of one connected parent."""
    if principal is None:
        return fail(LOGIN_REQUIRED)
    if principal.uid != student_uid:
        return fail("You can only unlink parents from your own account.")
    try:
        student = directory.get_student(student_uid)
        parent = directory.get_parent(parent_uid)
        if student is None or parent is None:
            return fail("Parent account not found.")
        _remove_link(parent, student)
    except DatabaseError:
        logger.exception("unlink_parent_from_student failed for %s", student_uid)
        return fail(UNEXPECTED_ERROR)
    return ok()


def linked_students(parent):
    return Student.objects.select_related("user").filter(parent_links__parent=parent).order_by("name")


def linked_parents(student):
    return User.objects.filter(role=Role.PARENT, student_links__student=student).order_by("name")


def parents_with_students():
    """Every parent with the students linked to it, for the admin overview."""
    parents = User.objects.filter(role=Role.PARENT).order_by("name").prefetch_related(
        "student_links__student"
    )
    rows = []
    for parent in parents:
        rows.append(
            {
                "uid": parent.uid,
                "name": parent.name,
                "email": parent.email,
                "linked_students": [
                    {"id": link.student.pk, "name": link.student.name, "uid": link.student.uid}
                    for link in parent.student_links.all()
                ],
            }
        )
    return rows


def _default_submission_deadline(due_date, linked_schedule=None):
    if linked_schedule is not None and linked_schedule.start_time is not None:
        return deadlines.submission_deadline_from_schedule(
            linked_schedule.date, linked_schedule.start_time
        )
    return deadlines.end_of_day(due_date)


def create_assignment(student, title, due_date, submission_deadline=None, linked_schedule=None):
    """Admin-side creation. A linked class sets the cutoff one hour before it starts."""
    if submission_deadline is None:
        submission_deadline = _default_submission_deadline(due_date, linked_schedule)
    return Assignment.objects.create(
        student=student,
        title=title,
        due_date=due_date,
        submission_deadline=submission_deadline,
        linked_schedule=linked_schedule,
    )


def create_schedule(student, date, start_time=None, end_time=None, is_regular=False, session_number=None):
    return Schedule.objects.create(
        student=student,
        date=date,
        start_time=start_time,
        end_time=end_time,
        is_regular=is_regular,
        session_number=session_number,
    )


def submit_assignment(principal, student, assignment_id, now=None):
    if principal is None:
        return fail(LOGIN_REQUIRED)
    if student is None or student.uid != principal.uid:
        return fail("Assignment not found.")
    now = now or timezone.now()
    try:
        assignment = student.assignments.filter(pk=assignment_id).first()
        if assignment is None:
            return fail("Assignment not found.")
        if assignment.status in (Assignment.Status.SUBMITTED, Assignment.Status.LATE_SUBMITTED):
            return ok()
        if deadlines.is_submission_locked(assignment, now):
            return fail("Submissions for this assignment are closed.")
        today = deadlines.local_today(now)
        late = today > assignment.due_date
        assignment.status = Assignment.Status.LATE_SUBMITTED if late else Assignment.Status.SUBMITTED
        assignment.submitted_date = today
        assignment.save(update_fields=["status", "submitted_date"])
    except DatabaseError:
        logger.exception("submit_assignment failed for student %s", student.pk)
        return fail(UNEXPECTED_ERROR)
    return ok()


SCHEDULE_CONFLICT = "This class was changed by someone else. Reload and try again."
SUBMITTED_STATES = (Assignment.Status.SUBMITTED, Assignment.Status.LATE_SUBMITTED)


def _apply_changes(obj, changes, allowed):
    """Set the allowed keys that differ; returns the names of the changed fields."""
    changed = []
    for key in allowed:
        if key in changes and getattr(obj, key) != changes[key]:
            setattr(obj, key, changes[key])
            changed.append(key)
    return changed


def _delete_owned(queryset, pk, label):
    try:
        deleted, _ = queryset.filter(pk=pk).delete()
    except DatabaseError:
        logger.exception("Deleting %s %s failed", label, pk)
        return fail(UNEXPECTED_ERROR)
    if not deleted:
        return fail(f"{label.capitalize()} not found.")
    return ok()


def update_assignment(student, assignment_id, changes, now=None):
    """Admin edit of one assignment.

    Moving the due date resets the cutoff to its default unless a new cutoff
    is given in the same edit; an empty cutoff also means "use the default".
    Marking an assignment submitted stamps today's local date when none is
    given, and moving it back to an open status clears the stamp.
    """
    status = changes.get("status")
    if status is not None and status not in Assignment.Status.values:
        return fail("Unknown assignment status.")
    if "title" in changes and not (changes["title"] or "").strip():
        return fail("Enter a title.")
    try:
        assignment = student.assignments.select_related("linked_schedule").filter(pk=assignment_id).first()
        if assignment is None:
            return fail("Assignment not found.")
        changed = _apply_changes(
            assignment, changes, ("title", "due_date", "submission_deadline", "status", "submitted_date")
        )
        if ("due_date" in changes or "submission_deadline" in changes) and not changes.get(
            "submission_deadline"
        ):
            assignment.submission_deadline = _default_submission_deadline(
                assignment.due_date, assignment.linked_schedule
            )
            changed.append("submission_deadline")
        if "status" in changed and "submitted_date" not in changes:
            if assignment.status in SUBMITTED_STATES and assignment.submitted_date is None:
                assignment.submitted_date = deadlines.local_today(now or timezone.now())
                changed.append("submitted_date")
            elif assignment.status not in SUBMITTED_STATES and assignment.submitted_date is not None:
                assignment.submitted_date = None
                changed.append("submitted_date")
        if changed:
            assignment.save(update_fields=sorted(set(changed)))
    except DatabaseError:
        logger.exception("update_assignment failed for %s", assignment_id)
        return fail(UNEXPECTED_ERROR)
    return ok()


def delete_assignment(student, assignment_id):
    return _delete_owned(student.assignments.all(), assignment_id, "assignment")


def _schedule_snapshot(schedule):
    return {
        "date": schedule.date,
        "start_time": schedule.start_time,
        "end_time": schedule.end_time,
        "is_regular": schedule.is_regular,
    }


def update_schedule(student, schedule_id, changes, expected=None):
    """Admin edit of one class.

    ``expected`` holds the values the editor last saw; if the stored class no
    longer matches them the edit is refused so a concurrent change is not
    overwritten. Pending assignments linked to the class follow a new start.
    """
    status = changes.get("status")
    if status is not None and status not in Schedule.Status.values:
        return fail("Unknown class status.")
    try:
        with transaction.atomic():
            schedule = student.schedules.select_for_update().filter(pk=schedule_id).first()
            if schedule is None:
                return fail("Class not found.")
            if expected:
                current = _schedule_snapshot(schedule)
                if any(current[key] != value for key, value in expected.items() if key in current):
                    return fail(SCHEDULE_CONFLICT)
            changed = _apply_changes(
                schedule,
                changes,
                ("date", "start_time", "end_time", "is_regular", "session_number", "status"),
            )
            if schedule.start_time and schedule.end_time and schedule.end_time <= schedule.start_time:
                return fail("End time must be after the start time.")
            if not changed:
                return ok()
            schedule.save(update_fields=changed)
            if schedule.start_time and ("date" in changed or "start_time" in changed):
                Assignment.objects.filter(
                    linked_schedule=schedule, status=Assignment.Status.PENDING
                ).update(
                    submission_deadline=deadlines.submission_deadline_from_schedule(
                        schedule.date, schedule.start_time
                    )
                )
    except DatabaseError:
        logger.exception("update_schedule failed for %s", schedule_id)
        return fail(UNEXPECTED_ERROR)
    return ok()


def delete_schedule(student, schedule_id):
    return _delete_owned(student.schedules.all(), schedule_id, "class")


def change_schedule(student, schedule_id, change_type, reason="", new_date=None, new_start_time=None, new_end_time=None):
    """Cancel, postpone, reschedule or replace a one-off class with a make-up.

    Cancelling only marks the class. Every other change marks the original
    (postponed for a postponement, changed otherwise) and books a replacement
    that points back at it. Regular weekly classes are edited, not changed.
    """
    if change_type not in Schedule.ChangeType.values:
        return fail("Unknown change type.")
    is_cancel = change_type == Schedule.ChangeType.CANCEL
    if not is_cancel:
        if not (new_date and new_start_time and new_end_time):
            return fail("Enter the new date and times.")
        if new_end_time <= new_start_time:
            return fail("End time must be after the start time.")
    try:
        with transaction.atomic():
            origin = student.schedules.select_for_update().filter(pk=schedule_id).first()
            if origin is None or origin.is_regular:
                return fail("Class not found, or it is a regular class that cannot be changed.")
            if origin.status != Schedule.Status.SCHEDULED:
                return fail("Only upcoming classes can be changed.")
            origin.change_type = change_type
            origin.change_reason = reason or ""
            if is_cancel:
                origin.status = Schedule.Status.CANCELLED
            elif change_type == Schedule.ChangeType.POSTPONE:
                origin.status = Schedule.Status.POSTPONED
            else:
                origin.status = Schedule.Status.CHANGED
            origin.save(update_fields=["status", "change_type", "change_reason"])
            if not is_cancel:
                Schedule.objects.create(
                    student=student,
                    date=new_date,
                    start_time=new_start_time,
                    end_time=new_end_time,
                    session_number=origin.session_number,
                    change_type=change_type,
                    change_reason=reason or "",
                    origin_schedule=origin,
                )
    except DatabaseError:
        logger.exception("change_schedule failed for %s", schedule_id)
        return fail(UNEXPECTED_ERROR)
    logger.info("Class %s of student %s: %s", schedule_id, student.pk, change_type)
    return ok()


def create_unit(student, name, grade="", subject="", status=None, difficulty=None, completion_status=None):
    return Unit.objects.create(
        student=student,
        name=name,
        grade=grade or "",
        subject=subject or "",
        status=status or Unit.Level.MID,
        difficulty=difficulty or Unit.Difficulty.MEDIUM,
        completion_status=completion_status or Unit.Completion.INCOMPLETE,
    )


_UNIT_CHOICES = {
    "status": Unit.Level.values,
    "difficulty": Unit.Difficulty.values,
    "completion_status": Unit.Completion.values,
}


def update_unit(student, unit_id, changes):
    for key, allowed in _UNIT_CHOICES.items():
        if key in changes and changes[key] not in allowed:
            return fail(f"Unknown {key.replace('_', ' ')}.")
    if "name" in changes and not (changes["name"] or "").strip():
        return fail("Enter a unit name.")
    try:
        unit = student.units.filter(pk=unit_id).first()
        if unit is None:
            return fail("Unit not found.")
        changed = _apply_changes(
            unit, changes, ("name", "grade", "subject", "status", "difficulty", "completion_status")
        )
        if changed:
            unit.save(update_fields=changed)
    except DatabaseError:
        logger.exception("update_unit failed for %s", unit_id)
        return fail(UNEXPECTED_ERROR)
    return ok()


def delete_unit(student, unit_id):
    return _delete_owned(student.units.all(), unit_id, "unit")


def adjust_unit_error(student, unit_id, error_type, delta):
    """Add ``delta`` wrong answers of one type, clamped to 0..ERROR_MAX."""
    if error_type not in ErrorType.values:
        return fail("Unknown error type.")
    field = Unit.error_field(error_type)
    try:
        with transaction.atomic():
            unit = student.units.select_for_update().filter(pk=unit_id).first()
            if unit is None:
                return fail("Unit not found.")
            value = min(Unit.ERROR_MAX, max(0, getattr(unit, field) + delta))
            if value != getattr(unit, field):
                setattr(unit, field, value)
                unit.save(update_fields=[field])
    except DatabaseError:
        logger.exception("adjust_unit_error failed for %s", unit_id)
        return fail(UNEXPECTED_ERROR)
    return ok()


def create_note(student, problem, error_type="", memo="", unit=None):
    return Note.objects.create(
        student=student, unit=unit, problem=problem, error_type=error_type or "", memo=memo or ""
    )


def set_note_resolved(student, note_id, is_resolved=True):
    try:
        updated = student.notes.filter(pk=note_id).update(is_resolved=is_resolved)
    except DatabaseError:
        logger.exception("set_note_resolved failed for %s", note_id)
        return fail(UNEXPECTED_ERROR)
    if not updated:
        return fail("Note not found.")
    return ok()


def delete_note(student, note_id):
    return _delete_owned(student.notes.all(), note_id, "note")


def dashboard_summary(student, now=None):
    now = now or timezone.now()
    counts = Counter(student.assignments.values_list("status", flat=True))
    next_class = (
        student.schedules.filter(
            status=Schedule.Status.SCHEDULED, date__gte=deadlines.local_today(now)
        )
        .order_by("date", "start_time")
        .first()
    )
    return {
        "student": {
            "id": student.pk,
            "name": student.name,
            "approval_status": student.approval_status,
            "account_status": student.account_status,
        },
        "assignments": {status: counts.get(status, 0) for status in Assignment.Status.values},
        "next_class": (
            {
                "id": next_class.pk,
                "date": next_class.date.isoformat(),
                "start_time": next_class.start_time.isoformat() if next_class.start_time else None,
                "end_time": next_class.end_time.isoformat() if next_class.end_time else None,
            }
            if next_class
            else None
        ),
        "units": student.units.count(),
        "open_notes": student.notes.filter(is_resolved=False).count(),
    }
