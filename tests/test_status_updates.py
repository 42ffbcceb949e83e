from datetime import date, datetime, time
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from jobs import status
from students import deadlines, services
from students.deadlines import LOCAL_TZ
from students.models import Assignment, Schedule
from tests.conftest import principal_for

pytestmark = pytest.mark.django_db


def kst(*args):
    return datetime(*args, tzinfo=LOCAL_TZ)


@pytest.fixture
def student(make_student):
    return make_student()


def assignment(student, **fields):
    fields.setdefault("title", "Quadratics worksheet")
    fields.setdefault("due_date", date(2026, 1, 10))
    return Assignment.objects.create(student=student, **fields)


class TestDeadlineRules:
    def test_default_deadline_is_end_of_due_date(self, student):
        a = assignment(student)
        assert deadlines.submission_deadline(a) == kst(2026, 1, 10, 23, 59, 59)

    def test_deadline_one_hour_before_linked_class(self):
        cutoff = deadlines.submission_deadline_from_schedule(date(2026, 2, 1), time(18, 0))
        assert cutoff == kst(2026, 2, 1, 17, 0)

    def test_schedule_end_defaults_to_2359(self, student):
        s = Schedule.objects.create(student=student, date=date(2026, 2, 1))
        assert deadlines.schedule_end(s) == kst(2026, 2, 1, 23, 59)

    def test_local_today_uses_fixed_offset(self):
        # 15:30 UTC is already the next day at UTC+9
        assert deadlines.local_today(kst(2026, 1, 11, 0, 30)) == date(2026, 1, 11)


class TestAssignmentPass:
    def test_no_explicit_deadline_expires_at_midnight(self, student):
        a = assignment(student)
        assert status.run_assignment_status_updates(kst(2026, 1, 11, 0, 0)) == 1
        a.refresh_from_db()
        assert a.status == Assignment.Status.EXPIRED

    def test_overdue_then_expired_with_later_deadline(self, student):
        a = assignment(student, submission_deadline=kst(2026, 1, 12, 12, 0))
        status.run_assignment_status_updates(kst(2026, 1, 11, 0, 0))
        a.refresh_from_db()
        assert a.status == Assignment.Status.OVERDUE

        status.run_assignment_status_updates(kst(2026, 1, 12, 12, 0))
        a.refresh_from_db()
        assert a.status == Assignment.Status.EXPIRED

    def test_before_due_date_is_unchanged(self, student):
        a = assignment(student)
        assert status.run_assignment_status_updates(kst(2026, 1, 10, 23, 0)) == 0
        a.refresh_from_db()
        assert a.status == Assignment.Status.PENDING

    def test_terminal_and_submitted_records_are_left_alone(self, student):
        done = assignment(student, status=Assignment.Status.SUBMITTED, submitted_date=date(2026, 1, 9))
        gone = assignment(student, status=Assignment.Status.EXPIRED)
        assert status.run_assignment_status_updates(kst(2026, 3, 1, 0, 0)) == 0
        done.refresh_from_db()
        gone.refresh_from_db()
        assert done.status == Assignment.Status.SUBMITTED
        assert gone.status == Assignment.Status.EXPIRED

    def test_rerun_is_a_no_op(self, student):
        assignment(student)
        now = kst(2026, 1, 11, 0, 0)
        assert status.run_assignment_status_updates(now) == 1
        assert status.run_assignment_status_updates(now) == 0

    def test_one_failing_record_does_not_stop_the_scan(self, student):
        first = assignment(student)
        second = assignment(student)
        real = deadlines.next_assignment_status

        def flaky(obj, now):
            if obj.pk == first.pk:
                raise DatabaseError("row locked")
            return real(obj, now)

        with patch("jobs.status.next_assignment_status", side_effect=flaky):
            assert status.run_assignment_status_updates(kst(2026, 1, 11, 0, 0)) == 1
        first.refresh_from_db()
        second.refresh_from_db()
        assert first.status == Assignment.Status.PENDING
        assert second.status == Assignment.Status.EXPIRED


class TestSchedulePass:
    def test_completes_after_end_time(self, student):
        s = Schedule.objects.create(student=student, date=date(2026, 2, 1), end_time=time(18, 0))
        assert status.run_schedule_status_updates(kst(2026, 2, 1, 17, 0)) == 0
        s.refresh_from_db()
        assert s.status == Schedule.Status.SCHEDULED

        assert status.run_schedule_status_updates(kst(2026, 2, 1, 18, 0, 1)) == 1
        s.refresh_from_db()
        assert s.status == Schedule.Status.COMPLETED

    def test_cancelled_is_left_alone(self, student):
        s = Schedule.objects.create(
            student=student, date=date(2026, 2, 1), status=Schedule.Status.CANCELLED
        )
        assert status.run_schedule_status_updates(kst(2026, 3, 1, 0, 0)) == 0
        s.refresh_from_db()
        assert s.status == Schedule.Status.CANCELLED

    def test_run_all_reports_both_counts(self, student):
        assignment(student)
        Schedule.objects.create(student=student, date=date(2026, 1, 5))
        result = status.run_all(kst(2026, 1, 11, 0, 0))
        assert result.as_dict() == {"ok": True, "assignments_updated": 1, "schedules_updated": 1}


class TestSubmission:
    def test_on_time_submission(self, student):
        a = services.create_assignment(student, "Ch.2", date(2026, 1, 10))
        result = services.submit_assignment(principal_for(student), student, a.pk, now=kst(2026, 1, 10, 20, 0))
        assert result.success
        a.refresh_from_db()
        assert (a.status, a.submitted_date) == (Assignment.Status.SUBMITTED, date(2026, 1, 10))

    def test_late_but_before_cutoff(self, student):
        a = services.create_assignment(
            student, "Ch.2", date(2026, 1, 10), submission_deadline=kst(2026, 1, 12, 9, 0)
        )
        services.submit_assignment(principal_for(student), student, a.pk, now=kst(2026, 1, 11, 9, 0))
        a.refresh_from_db()
        assert a.status == Assignment.Status.LATE_SUBMITTED

    def test_locked_after_deadline(self, student):
        a = services.create_assignment(student, "Ch.2", date(2026, 1, 10))
        result = services.submit_assignment(principal_for(student), student, a.pk, now=kst(2026, 1, 11, 0, 0))
        assert not result.success
        a.refresh_from_db()
        assert a.submitted_date is None

    def test_linked_class_sets_cutoff(self, student):
        lesson = services.create_schedule(student, date(2026, 1, 10), time(16, 0), time(18, 0))
        a = services.create_assignment(student, "Ch.3", date(2026, 1, 10), linked_schedule=lesson)
        assert a.submission_deadline == kst(2026, 1, 10, 15, 0)

    def test_other_students_assignment(self, student, make_student):
        other = make_student()
        a = services.create_assignment(other, "Ch.2", date(2026, 1, 10))
        result = services.submit_assignment(principal_for(student), other, a.pk, now=kst(2026, 1, 9, 0, 0))
        assert not result.success

    def test_submit_view(self, student, login_as):
        a = services.create_assignment(student, "Ch.2", date(2099, 1, 10))
        response = login_as(student).post(f"/student/{student.pk}/assignments/{a.pk}/submit/")
        assert response.json() == {"success": True}
