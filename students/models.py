from django.conf import settings
from django.db import models


class Student(models.Model):
    class ApprovalStatus(models.TextChoices):
        PENDING = "PENDING", "Pending"
        APPROVED = "APPROVED", "Approved"

    class AccountStatus(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        INACTIVE = "INACTIVE", "Inactive"

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="student_record",
    )
    name = models.CharField(max_length=64)
    phone = models.CharField(max_length=32, blank=True)
    school_name = models.CharField(max_length=128, blank=True)
    school_type = models.CharField(max_length=32, blank=True)
    grade = models.CharField(max_length=16, blank=True)
    parent_phone = models.CharField(max_length=32, blank=True)
    parent_relation = models.CharField(max_length=32, blank=True)
    # gates dashboard access
    approval_status = models.CharField(
        max_length=16, choices=ApprovalStatus.choices, default=ApprovalStatus.PENDING
    )
    # gates login, independent of approval
    account_status = models.CharField(
        max_length=16, choices=AccountStatus.choices, default=AccountStatus.ACTIVE
    )
    created_at = models.DateTimeField(auto_now_add=True)

    @property
    def uid(self):
        return self.user.uid

    @property
    def is_inactive(self) -> bool:
        return self.account_status == self.AccountStatus.INACTIVE

    @property
    def is_pending(self) -> bool:
        return self.approval_status == self.ApprovalStatus.PENDING

    def __str__(self):
        return f"{self.name} (ID {self.pk})"


class ParentStudentLink(models.Model):
    parent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="student_links",
    )
    student = models.ForeignKey(
        Student, on_delete=models.CASCADE, related_name="parent_links"
    )
    linked_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [("parent", "student")]


class ErrorType(models.TextChoices):
    CONCEPT = "C", "Concept"
    CALCULATION = "M", "Calculation"
    READING = "R", "Reading"
    STRATEGY = "S", "Strategy"


class Unit(models.Model):
    class Level(models.TextChoices):
        HIGH = "HIGH", "High"
        MID = "MID", "Mid"
        LOW = "LOW", "Low"

    class Difficulty(models.TextChoices):
        HARD = "HARD", "Hard"
        MEDIUM = "MEDIUM", "Medium"
        EASY = "EASY", "Easy"

    class Completion(models.TextChoices):
        INCOMPLETE = "incomplete", "Incomplete"
        IN_PROGRESS = "in-progress", "In progress"
        COMPLETED = "completed", "Completed"

    ERROR_MAX = 99

    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="units")
    name = models.CharField(max_length=128)
    grade = models.CharField(max_length=16, blank=True)
    subject = models.CharField(max_length=64, blank=True)
    status = models.CharField(max_length=8, choices=Level.choices, default=Level.MID)
    difficulty = models.CharField(
        max_length=8, choices=Difficulty.choices, default=Difficulty.MEDIUM
    )
    completion_status = models.CharField(
        max_length=16, choices=Completion.choices, default=Completion.INCOMPLETE
    )
    # wrong answers per ErrorType, kept between 0 and ERROR_MAX
    error_c = models.PositiveSmallIntegerField(default=0)
    error_m = models.PositiveSmallIntegerField(default=0)
    error_r = models.PositiveSmallIntegerField(default=0)
    error_s = models.PositiveSmallIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    @staticmethod
    def error_field(error_type):
        return f"error_{error_type.lower()}"


class Assignment(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        OVERDUE = "overdue", "Overdue"
        EXPIRED = "expired", "Expired"
        SUBMITTED = "submitted", "Submitted"
        LATE_SUBMITTED = "late-submitted", "Submitted late"

    student = models.ForeignKey(
        Student, on_delete=models.CASCADE, related_name="assignments"
    )
    title = models.CharField(max_length=200)
    due_date = models.DateField()
    # final hand-in cutoff; end of due_date (UTC+9) when empty
    submission_deadline = models.DateTimeField(null=True, blank=True)
    submitted_date = models.DateField(null=True, blank=True)
    linked_schedule = models.ForeignKey(
        "Schedule", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=["status"], name="assignment_status_idx")]


class Schedule(models.Model):
    class Status(models.TextChoices):
        SCHEDULED = "scheduled", "Scheduled"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"
        POSTPONED = "postponed", "Postponed"
        CHANGED = "changed", "Changed"

    class ChangeType(models.TextChoices):
        MAKEUP = "makeup", "Make-up class"
        POSTPONE = "postpone", "Postponed"
        CANCEL = "cancel", "Cancelled"
        RESCHEDULE = "reschedule", "Rescheduled"

    student = models.ForeignKey(
        Student, on_delete=models.CASCADE, related_name="schedules"
    )
    date = models.DateField()
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)
    status = models.CharField(
        max_length=16, choices=Status.choices, default=Status.SCHEDULED
    )
    is_regular = models.BooleanField(default=False)
    session_number = models.PositiveIntegerField(null=True, blank=True)
    change_type = models.CharField(max_length=16, choices=ChangeType.choices, blank=True)
    change_reason = models.CharField(max_length=200, blank=True)
    # the class this one replaces after a postponement or change
    origin_schedule = models.ForeignKey(
        "self", on_delete=models.SET_NULL, null=True, blank=True, related_name="replacements"
    )

    class Meta:
        indexes = [models.Index(fields=["status"], name="schedule_status_idx")]


class Note(models.Model):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="notes")
    unit = models.ForeignKey(Unit, on_delete=models.SET_NULL, null=True, blank=True)
    problem = models.CharField(max_length=200)
    error_type = models.CharField(max_length=1, choices=ErrorType.choices, blank=True)
    memo = models.TextField(blank=True)
    is_resolved = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
