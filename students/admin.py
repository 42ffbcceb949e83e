from django.contrib import admin
from .models import Assignment, Note, ParentStudentLink, Schedule, Student, Unit

@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "grade", "approval_status", "account_status")
    list_filter = ("approval_status", "account_status")
    search_fields = ("name", "phone", "user__uid")

@admin.register(ParentStudentLink)
class PSLAdmin(admin.ModelAdmin):
    list_display = ("parent", "student", "linked_at")

@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ("id", "student", "title", "due_date", "submission_deadline", "status")
    list_filter = ("status",)

@admin.register(Schedule)
class ScheduleAdmin(admin.ModelAdmin):
    list_display = ("id", "student", "date", "start_time", "end_time", "status", "change_type")
    list_filter = ("status",)

@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ("id", "student", "name", "grade", "difficulty", "completion_status")
    list_filter = ("completion_status",)

admin.site.register(Note)
