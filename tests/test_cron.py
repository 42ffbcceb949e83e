from datetime import date
from io import StringIO
from unittest.mock import MagicMock, patch

import pytest
from django.core.management import call_command

from jobs.status import RunResult
from students.models import Assignment

URL = "/api/cron/update-status/"

pytestmark = pytest.mark.django_db


@pytest.fixture
def secret(settings):
    settings.CRON_SECRET = "s3cret"
    return "s3cret"


def test_get_is_a_health_probe(client):
    response = client.get(URL)
    assert response.status_code == 200
    assert "message" in response.json()


def test_missing_secret_is_rejected_before_any_work(client, secret):
    with patch("jobs.views.run_all") as run_all:
        response = client.post(URL)
    assert response.status_code == 401
    run_all.assert_not_called()


def test_wrong_secret_is_rejected(client, secret):
    with patch("jobs.views.run_all") as run_all:
        response = client.post(URL, HTTP_AUTHORIZATION="Bearer wrong")
    assert response.status_code == 401
    run_all.assert_not_called()


def test_bearer_secret(client, secret, make_student):
    Assignment.objects.create(student=make_student(), title="Old", due_date=date(2020, 1, 1))
    response = client.post(URL, HTTP_AUTHORIZATION=f"Bearer {secret}")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "assignments_updated": 1, "schedules_updated": 0}


def test_x_cron_secret_header(client, secret):
    with patch("jobs.views.run_all", return_value=RunResult(2, 3)):
        response = client.post(URL, HTTP_X_CRON_SECRET=secret)
    assert response.json() == {"ok": True, "assignments_updated": 2, "schedules_updated": 3}


def test_unconfigured_secret_still_runs(client, settings):
    settings.CRON_SECRET = ""
    with patch("jobs.views.run_all", return_value=RunResult()):
        response = client.post(URL)
    assert response.status_code == 200


def test_unexpected_error_is_generic_500(client, secret):
    with patch("jobs.views.run_all", side_effect=RuntimeError("secret detail")):
        response = client.post(URL, HTTP_X_CRON_SECRET=secret)
    assert response.status_code == 500
    assert response.json() == {"error": "Internal error"}


def test_update_statuses_command(make_student):
    Assignment.objects.create(student=make_student(), title="Old", due_date=date(2020, 1, 1))
    out = StringIO()
    call_command("update_statuses", stdout=out)
    assert "Updated 1 assignments, 0 schedules" in out.getvalue()


def test_rq_job_runs_inline(make_student):
    from jobs.tasks import update_statuses

    Assignment.objects.create(student=make_student(), title="Old", due_date=date(2020, 1, 1))
    assert update_statuses()["assignments_updated"] == 1


def test_apply_schedules_replaces_existing_job(settings):
    stale = MagicMock(func_name="jobs.tasks.update_statuses")
    other = MagicMock(func_name="jobs.tasks.something_else")
    scheduler = MagicMock()
    scheduler.get_jobs.return_value = [stale, other]
    with patch("jobs.management.commands.apply_schedules.get_scheduler", return_value=scheduler):
        call_command("apply_schedules", stdout=StringIO())
    scheduler.cancel.assert_called_once_with(stale)
    assert scheduler.cron.call_args.args[0] == settings.STATUS_UPDATE_CRON
