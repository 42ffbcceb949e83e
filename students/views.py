import logging

from django.db import DatabaseError
from django.http import Http404, JsonResponse
from django.shortcuts import redirect
from django.views.decorators.http import require_http_methods, require_POST

from accounts import directory, lifecycle
from accounts.gate import LOGIN_URL, home_path
from accounts.models import Role
from accounts.results import UNEXPECTED_ERROR, fail
from accounts.views import action_response

from . import services
from .forms import (
    AssignmentForm,
    AssignmentUpdateForm,
    LinkChildForm,
    NoteForm,
    ScheduleChangeForm,
    ScheduleForm,
    ScheduleUpdateForm,
    StudentProfileForm,
    UnitErrorForm,
    UnitForm,
    UnitUpdateForm,
)
from .models import ErrorType, Student, Unit
from .permissions import get_linked_student

logger = logging.getLogger(__name__)


def _student_or_404(student_id):
    student = directory.get_student_by_route_id(student_id)
    if student is None:
        raise Http404("Student not found")
    return student


def _admin_student_or_404(student_id):
    student = directory.get_student_by_id(student_id)
    if student is None:
        raise Http404("Student not found")
    return student


def _own_student(request, student_id):
    # the gate already checked ownership; this re-read guards direct calls
    student = _student_or_404(student_id)
    if request.principal is None or student.uid != request.principal.uid:
        raise Http404("Student not found")
    return student


def _parent_student(request, uid, student_id):
    student = get_linked_student(uid, student_id)
    if student is None:
        raise Http404("Student not found")
    return student


def _student_json(student):
    return {
        "id": student.pk,
        "uid": student.uid,
        "name": student.name,
        "phone": student.phone,
        "school_name": student.school_name,
        "school_type": student.school_type,
        "grade": student.grade,
        "parent_phone": student.parent_phone,
        "parent_relation": student.parent_relation,
        "approval_status": student.approval_status,
        "account_status": student.account_status,
        "created_at": student.created_at.isoformat(),
    }


def _assignment_json(a):
    return {
        "id": a.pk,
        "title": a.title,
        "due_date": a.due_date.isoformat(),
        "submission_deadline": a.submission_deadline.isoformat() if a.submission_deadline else None,
        "submitted_date": a.submitted_date.isoformat() if a.submitted_date else None,
        "linked_schedule_id": a.linked_schedule_id,
        "status": a.status,
    }


def _schedule_json(s):
    return {
        "id": s.pk,
        "date": s.date.isoformat(),
        "start_time": s.start_time.isoformat() if s.start_time else None,
        "end_time": s.end_time.isoformat() if s.end_time else None,
        "status": s.status,
        "is_regular": s.is_regular,
        "session_number": s.session_number,
        "change_type": s.change_type,
        "change_reason": s.change_reason,
        "origin_schedule_id": s.origin_schedule_id,
    }


def _assignments(student):
    return [_assignment_json(a) for a in student.assignments.order_by("-due_date", "-pk")]


def _schedules(student):
    return [_schedule_json(s) for s in student.schedules.order_by("date", "start_time")]


def _form_error(form):
    return JsonResponse({"success": False, "errors": form.errors.get_json_data()}, status=400)


def _changes(form, request):
    """Cleaned values for the fields the request actually sent."""
    return {key: value for key, value in form.cleaned_data.items() if key in request.POST}


def _unit_json(unit):
    return {
        "id": unit.pk,
        "name": unit.name,
        "grade": unit.grade,
        "subject": unit.subject,
        "status": unit.status,
        "difficulty": unit.difficulty,
        "completion_status": unit.completion_status,
        "errors": {t: getattr(unit, Unit.error_field(t)) for t in ErrorType.values},
    }


def _note_json(note):
    return {
        "id": note.pk,
        "unit_id": note.unit_id,
        "problem": note.problem,
        "error_type": note.error_type,
        "memo": note.memo,
        "is_resolved": note.is_resolved,
        "created_at": note.created_at.isoformat(),
    }


def _units(request, student):
    if request.method == "GET":
        return JsonResponse({"units": [_unit_json(u) for u in student.units.order_by("grade", "name")]})
    form = UnitForm(request.POST)
    if not form.is_valid():
        return _form_error(form)
    try:
        unit = services.create_unit(student, **form.cleaned_data)
    except DatabaseError:
        logger.exception("Creating unit failed for student %s", student.pk)
        return action_response(fail(UNEXPECTED_ERROR))
    return JsonResponse({"success": True, "unit": _unit_json(unit)}, status=201)


def _unit_update(request, student, unit_id):
    form = UnitUpdateForm(request.POST)
    if not form.is_valid():
        return _form_error(form)
    return action_response(services.update_unit(student, unit_id, _changes(form, request)))


def _unit_errors(request, student, unit_id):
    form = UnitErrorForm(request.POST)
    if not form.is_valid():
        return _form_error(form)
    data = form.cleaned_data
    return action_response(
        services.adjust_unit_error(student, unit_id, data["error_type"], data["delta"])
    )


def _notes(request, student):
    if request.method == "GET":
        return JsonResponse({"notes": [_note_json(n) for n in student.notes.order_by("-created_at", "-pk")]})
    form = NoteForm(request.POST)
    if not form.is_valid():
        return _form_error(form)
    data = form.cleaned_data
    unit = None
    if data.get("unit_id"):
        unit = student.units.filter(pk=data["unit_id"]).first()
        if unit is None:
            return action_response(fail("Unit not found."))
    try:
        note = services.create_note(
            student, data["problem"], error_type=data["error_type"], memo=data["memo"], unit=unit
        )
    except DatabaseError:
        logger.exception("Creating note failed for student %s", student.pk)
        return action_response(fail(UNEXPECTED_ERROR))
    return JsonResponse({"success": True, "note": _note_json(note)}, status=201)


# Student area


def student_dashboard(request, student_id):
    student = _own_student(request, student_id)
    return JsonResponse(services.dashboard_summary(student))


def student_assignments(request, student_id):
    student = _own_student(request, student_id)
    return JsonResponse({"assignments": _assignments(student)})


@require_POST
def submit_assignment(request, student_id, assignment_id):
    student = _own_student(request, student_id)
    return action_response(services.submit_assignment(request.principal, student, assignment_id))


def student_schedules(request, student_id):
    student = _own_student(request, student_id)
    return JsonResponse({"schedules": _schedules(student)})


@require_http_methods(["GET", "POST"])
def student_units(request, student_id):
    return _units(request, _own_student(request, student_id))


@require_POST
def student_unit_update(request, student_id, unit_id):
    return _unit_update(request, _own_student(request, student_id), unit_id)


@require_POST
def student_unit_delete(request, student_id, unit_id):
    return action_response(services.delete_unit(_own_student(request, student_id), unit_id))


@require_POST
def student_unit_errors(request, student_id, unit_id):
    return _unit_errors(request, _own_student(request, student_id), unit_id)


@require_http_methods(["GET", "POST"])
def student_notes(request, student_id):
    return _notes(request, _own_student(request, student_id))


@require_POST
def student_note_resolve(request, student_id, note_id):
    student = _own_student(request, student_id)
    resolved = request.POST.get("is_resolved", "true").lower() not in ("false", "0", "")
    return action_response(services.set_note_resolved(student, note_id, resolved))


@require_POST
def student_note_delete(request, student_id, note_id):
    return action_response(services.delete_note(_own_student(request, student_id), note_id))


def student_links(request, student_id):
    student = _own_student(request, student_id)
    parents = [
        {"uid": p.uid, "name": p.name, "phone_number": p.phone_number}
        for p in services.linked_parents(student)
    ]
    return JsonResponse({"parents": parents})


@require_POST
def student_unlink_parent(request, student_id, parent_uid):
    student = _own_student(request, student_id)
    return action_response(
        services.unlink_parent_from_student(request.principal, student.uid, parent_uid)
    )


# Parent area


def parent_home(request):
    principal = request.principal
    if principal is None or principal.role != Role.PARENT:
        return redirect(LOGIN_URL)
    return redirect(home_path(Role.PARENT, uid=principal.uid))


def parent_dashboard(request, uid):
    parent = directory.get_parent(uid)
    if parent is None:
        raise Http404("Parent not found")
    students = [
        {"id": s.pk, "uid": s.uid, "name": s.name, "grade": s.grade}
        for s in services.linked_students(parent)
    ]
    return JsonResponse({"parent": {"uid": parent.uid, "name": parent.name}, "students": students})


@require_POST
def parent_link_child(request, uid):
    form = LinkChildForm(request.POST)
    if not form.is_valid():
        return _form_error(form)
    return action_response(services.link_child_to_parent(request.principal, uid, **form.cleaned_data))


def parent_student(request, uid, student_id):
    student = _parent_student(request, uid, student_id)
    return JsonResponse(services.dashboard_summary(student))


def parent_student_assignments(request, uid, student_id):
    student = _parent_student(request, uid, student_id)
    return JsonResponse({"assignments": _assignments(student)})


def parent_student_schedules(request, uid, student_id):
    student = _parent_student(request, uid, student_id)
    return JsonResponse({"schedules": _schedules(student)})


@require_POST
def parent_unlink_student(request, uid, student_id):
    return action_response(services.unlink_student_from_parent(request.principal, uid, student_id))


# Admin area


def admin_students(request):
    qs = Student.objects.select_related("user").order_by("-created_at")
    approval = request.GET.get("approval_status")
    if approval in Student.ApprovalStatus.values:
        qs = qs.filter(approval_status=approval)
    return JsonResponse({"students": [_student_json(s) for s in qs]})


@require_http_methods(["GET", "POST"])
def admin_student_detail(request, student_id):
    if request.method == "POST":
        form = StudentProfileForm(request.POST)
        if not form.is_valid():
            return _form_error(form)
        return action_response(
            lifecycle.update_student(request.principal, student_id, _changes(form, request))
        )
    student = _admin_student_or_404(student_id)
    data = _student_json(student)
    data["summary"] = services.dashboard_summary(student)
    return JsonResponse(data)


@require_POST
def admin_student_delete(request, student_id):
    return action_response(lifecycle.delete_student(request.principal, student_id))


@require_POST
def admin_approve_student(request, student_id):
    return action_response(lifecycle.approve_student(request.principal, student_id))


@require_POST
def admin_account_status(request, student_id):
    return action_response(
        lifecycle.set_account_status(
            request.principal, student_id, request.POST.get("account_status", "")
        )
    )


@require_http_methods(["GET", "POST"])
def admin_student_assignments(request, student_id):
    student = _admin_student_or_404(student_id)
    if request.method == "GET":
        return JsonResponse({"assignments": _assignments(student)})
    form = AssignmentForm(request.POST)
    if not form.is_valid():
        return _form_error(form)
    data = form.cleaned_data
    linked = None
    if data.get("linked_schedule_id"):
        linked = student.schedules.filter(pk=data["linked_schedule_id"]).first()
        if linked is None:
            return action_response(fail("Linked class not found."))
    try:
        assignment = services.create_assignment(
            student,
            data["title"],
            data["due_date"],
            submission_deadline=data.get("submission_deadline"),
            linked_schedule=linked,
        )
    except DatabaseError:
        logger.exception("Creating assignment failed for student %s", student.pk)
        return action_response(fail(UNEXPECTED_ERROR))
    return JsonResponse({"success": True, "assignment": _assignment_json(assignment)}, status=201)


@require_POST
def admin_assignment_update(request, student_id, assignment_id):
    student = _admin_student_or_404(student_id)
    form = AssignmentUpdateForm(request.POST)
    if not form.is_valid():
        return _form_error(form)
    return action_response(services.update_assignment(student, assignment_id, _changes(form, request)))


@require_POST
def admin_assignment_delete(request, student_id, assignment_id):
    student = _admin_student_or_404(student_id)
    return action_response(services.delete_assignment(student, assignment_id))


@require_http_methods(["GET", "POST"])
def admin_student_schedules(request, student_id):
    student = _admin_student_or_404(student_id)
    if request.method == "GET":
        return JsonResponse({"schedules": _schedules(student)})
    form = ScheduleForm(request.POST)
    if not form.is_valid():
        return _form_error(form)
    try:
        schedule = services.create_schedule(student, **form.cleaned_data)
    except DatabaseError:
        logger.exception("Creating schedule failed for student %s", student.pk)
        return action_response(fail(UNEXPECTED_ERROR))
    return JsonResponse({"success": True, "schedule": _schedule_json(schedule)}, status=201)


@require_POST
def admin_schedule_update(request, student_id, schedule_id):
    student = _admin_student_or_404(student_id)
    form = ScheduleUpdateForm(request.POST)
    if not form.is_valid():
        return _form_error(form)
    changes = _changes(form, request)
    expected = {
        key[len("expected_"):]: changes.pop(key)
        for key in list(changes)
        if key.startswith("expected_")
    }
    return action_response(services.update_schedule(student, schedule_id, changes, expected=expected))


@require_POST
def admin_schedule_delete(request, student_id, schedule_id):
    student = _admin_student_or_404(student_id)
    return action_response(services.delete_schedule(student, schedule_id))


@require_POST
def admin_schedule_change(request, student_id, schedule_id):
    student = _admin_student_or_404(student_id)
    form = ScheduleChangeForm(request.POST)
    if not form.is_valid():
        return _form_error(form)
    return action_response(services.change_schedule(student, schedule_id, **form.cleaned_data))


@require_http_methods(["GET", "POST"])
def admin_student_units(request, student_id):
    return _units(request, _admin_student_or_404(student_id))


@require_POST
def admin_unit_update(request, student_id, unit_id):
    return _unit_update(request, _admin_student_or_404(student_id), unit_id)


@require_POST
def admin_unit_delete(request, student_id, unit_id):
    return action_response(services.delete_unit(_admin_student_or_404(student_id), unit_id))


@require_POST
def admin_unit_errors(request, student_id, unit_id):
    return _unit_errors(request, _admin_student_or_404(student_id), unit_id)


def admin_student_notes(request, student_id):
    student = _admin_student_or_404(student_id)
    return JsonResponse({"notes": [_note_json(n) for n in student.notes.order_by("-created_at", "-pk")]})


def admin_parents(request):
    return JsonResponse({"parents": services.parents_with_students()})
