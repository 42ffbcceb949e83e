"""Time rules for assignments and class sessions.

All calendar math runs on a fixed UTC+9 offset, independent of the server's
TIME_ZONE, so that "end of the due date" means the same instant everywhere.
"""
from datetime import datetime, time, timedelta, timezone

from .models import Assignment, Schedule

LOCAL_TZ = timezone(timedelta(hours=9))
END_OF_DAY = time(23, 59, 59)
DEFAULT_SESSION_END = time(23, 59)
SUBMISSION_LEAD = timedelta(hours=1)


def local_today(now):
    return now.astimezone(LOCAL_TZ).date()


def end_of_day(day):
    return datetime.combine(day, END_OF_DAY, tzinfo=LOCAL_TZ)


def submission_deadline(assignment):
    """Explicit cutoff if one was set, else 23:59:59 of the due date."""
    if assignment.submission_deadline is not None:
        return assignment.submission_deadline
    return end_of_day(assignment.due_date)


def is_submission_locked(assignment, now) -> bool:
    return now >= submission_deadline(assignment)


def submission_deadline_from_schedule(day, start_time):
    """One hour before the linked class starts."""
    start = datetime.combine(day, start_time.replace(second=0, microsecond=0), tzinfo=LOCAL_TZ)
    return start - SUBMISSION_LEAD


def schedule_end(schedule):
    return datetime.combine(
        schedule.date, schedule.end_time or DEFAULT_SESSION_END, tzinfo=LOCAL_TZ
    )


def next_assignment_status(assignment, now):
    """The status the assignment should hold at ``now``.

    Only unsubmitted pending/overdue assignments move; every other state is
    returned unchanged.
    """
    status = assignment.status
    if assignment.submitted_date is not None:
        return status
    if status not in (Assignment.Status.PENDING, Assignment.Status.OVERDUE):
        return status
    if now >= submission_deadline(assignment):
        return Assignment.Status.EXPIRED
    if local_today(now) > assignment.due_date:
        return Assignment.Status.OVERDUE
    return status


def next_schedule_status(schedule, now):
    if schedule.status == Schedule.Status.SCHEDULED and now >= schedule_end(schedule):
        return Schedule.Status.COMPLETED
    return schedule.status
