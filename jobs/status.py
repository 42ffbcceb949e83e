"""Time-driven status transitions for assignments and class sessions.

Two independent passes walk the candidate rows with a chunked cursor. A
failure on one row is logged and skipped; the scan carries on with the next.
Rows whose status would not change are never written.
"""
import logging
from dataclasses import dataclass

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from students.deadlines import next_assignment_status, next_schedule_status
from students.models import Assignment, Schedule

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    assignments_updated: int = 0
    schedules_updated: int = 0

    def as_dict(self):
        return {
            "ok": True,
            "assignments_updated": self.assignments_updated,
            "schedules_updated": self.schedules_updated,
        }


def _chunk_size():
    return getattr(settings, "STATUS_UPDATE_CHUNK_SIZE", 500)


def _apply(queryset, transition, now, label):
    updated = 0
    for obj in queryset.iterator(chunk_size=_chunk_size()):
        try:
            new_status = transition(obj, now)
            if new_status == obj.status:
                continue
            # status filter keeps a concurrent run from rewinding a terminal state
            changed = (
                type(obj)
                .objects.filter(pk=obj.pk, status=obj.status)
                .update(status=new_status)
            )
            updated += changed
        except DatabaseError:
            logger.exception("Failed to update %s %s", label, obj.pk)
    return updated


def run_assignment_status_updates(now=None) -> int:
    now = now or timezone.now()
    qs = Assignment.objects.filter(
        submitted_date__isnull=True,
        status__in=[Assignment.Status.PENDING, Assignment.Status.OVERDUE],
    ).order_by("pk")
    return _apply(qs, next_assignment_status, now, "assignment")


def run_schedule_status_updates(now=None) -> int:
    now = now or timezone.now()
    qs = Schedule.objects.filter(status=Schedule.Status.SCHEDULED).order_by("pk")
    return _apply(qs, next_schedule_status, now, "schedule")


def run_all(now=None) -> RunResult:
    now = now or timezone.now()
    result = RunResult(
        assignments_updated=run_assignment_status_updates(now),
        schedules_updated=run_schedule_status_updates(now),
    )
    logger.info(
        "Status update run at %s: %d assignments, %d schedules",
        now.isoformat(),
        result.assignments_updated,
        result.schedules_updated,
    )
    return result
