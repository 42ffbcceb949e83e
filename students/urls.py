from django.urls import path
from . import views

app_name = "students"

urlpatterns = [
    # student area
    path("student/<str:student_id>/", views.student_dashboard, name="dashboard"),
    path("student/<str:student_id>/assignments/", views.student_assignments, name="assignments"),
    path(
        "student/<str:student_id>/assignments/<int:assignment_id>/submit/",
        views.submit_assignment,
        name="submit_assignment",
    ),
    path("student/<str:student_id>/schedules/", views.student_schedules, name="schedules"),
    path("student/<str:student_id>/units/", views.student_units, name="units"),
    path(
        "student/<str:student_id>/units/<int:unit_id>/",
        views.student_unit_update,
        name="unit_update",
    ),
    path(
        "student/<str:student_id>/units/<int:unit_id>/delete/",
        views.student_unit_delete,
        name="unit_delete",
    ),
    path(
        "student/<str:student_id>/units/<int:unit_id>/errors/",
        views.student_unit_errors,
        name="unit_errors",
    ),
    path("student/<str:student_id>/notes/", views.student_notes, name="notes"),
    path(
        "student/<str:student_id>/notes/<int:note_id>/resolve/",
        views.student_note_resolve,
        name="note_resolve",
    ),
    path(
        "student/<str:student_id>/notes/<int:note_id>/delete/",
        views.student_note_delete,
        name="note_delete",
    ),
    path("student/<str:student_id>/links/", views.student_links, name="links"),
    path(
        "student/<str:student_id>/links/<str:parent_uid>/unlink/",
        views.student_unlink_parent,
        name="unlink_parent",
    ),
    # parent area
    path("parent/", views.parent_home, name="parent_home"),
    path("parent/<str:uid>/dashboard/", views.parent_dashboard, name="parent_dashboard"),
    path("parent/<str:uid>/link/", views.parent_link_child, name="parent_link"),
    path("parent/<str:uid>/student/<str:student_id>/", views.parent_student, name="parent_student"),
    path(
        "parent/<str:uid>/student/<str:student_id>/assignments/",
        views.parent_student_assignments,
        name="parent_student_assignments",
    ),
    path(
        "parent/<str:uid>/student/<str:student_id>/schedules/",
        views.parent_student_schedules,
        name="parent_student_schedules",
    ),
    path(
        "parent/<str:uid>/student/<str:student_id>/unlink/",
        views.parent_unlink_student,
        name="parent_unlink",
    ),
    # admin area
    path("admin/students/", views.admin_students, name="admin_students"),
    path("admin/students/<str:student_id>/", views.admin_student_detail, name="admin_student"),
    path(
        "admin/students/<str:student_id>/delete/",
        views.admin_student_delete,
        name="admin_student_delete",
    ),
    path("admin/students/<str:student_id>/approve/", views.admin_approve_student, name="admin_approve"),
    path(
        "admin/students/<str:student_id>/account-status/",
        views.admin_account_status,
        name="admin_account_status",
    ),
    path(
        "admin/students/<str:student_id>/assignments/",
        views.admin_student_assignments,
        name="admin_assignments",
    ),
    path(
        "admin/students/<str:student_id>/assignments/<int:assignment_id>/",
        views.admin_assignment_update,
        name="admin_assignment_update",
    ),
    path(
        "admin/students/<str:student_id>/assignments/<int:assignment_id>/delete/",
        views.admin_assignment_delete,
        name="admin_assignment_delete",
    ),
    path(
        "admin/students/<str:student_id>/schedules/",
        views.admin_student_schedules,
        name="admin_schedules",
    ),
    path(
        "admin/students/<str:student_id>/schedules/<int:schedule_id>/",
        views.admin_schedule_update,
        name="admin_schedule_update",
    ),
    path(
        "admin/students/<str:student_id>/schedules/<int:schedule_id>/delete/",
        views.admin_schedule_delete,
        name="admin_schedule_delete",
    ),
    path(
        "admin/students/<str:student_id>/schedules/<int:schedule_id>/change/",
        views.admin_schedule_change,
        name="admin_schedule_change",
    ),
    path("admin/students/<str:student_id>/units/", views.admin_student_units, name="admin_units"),
    path(
        "admin/students/<str:student_id>/units/<int:unit_id>/",
        views.admin_unit_update,
        name="admin_unit_update",
    ),
    path(
        "admin/students/<str:student_id>/units/<int:unit_id>/delete/",
        views.admin_unit_delete,
        name="admin_unit_delete",
    ),
    path(
        "admin/students/<str:student_id>/units/<int:unit_id>/errors/",
        views.admin_unit_errors,
        name="admin_unit_errors",
    ),
    path("admin/students/<str:student_id>/notes/", views.admin_student_notes, name="admin_notes"),
    path("admin/parents/", views.admin_parents, name="admin_parents"),
]
