from django import forms

from .models import Assignment, ErrorType, Schedule, Unit


class LinkChildForm(forms.Form):
    student_name = forms.CharField(max_length=64)
    student_phone = forms.CharField(max_length=32)
    parent_phone = forms.CharField(max_length=32)


class AssignmentForm(forms.Form):
    title = forms.CharField(max_length=200)
    due_date = forms.DateField()
    submission_deadline = forms.DateTimeField(required=False)
    linked_schedule_id = forms.IntegerField(required=False)


class ScheduleForm(forms.Form):
    date = forms.DateField()
    start_time = forms.TimeField(required=False)
    end_time = forms.TimeField(required=False)
    is_regular = forms.BooleanField(required=False)
    session_number = forms.IntegerField(required=False, min_value=1)

    def clean(self):
        data = super().clean()
        start, end = data.get("start_time"), data.get("end_time")
        if start and end and end <= start:
            self.add_error("end_time", "End time must be after the start time.")
        return data


def _choices(choice_class, blank=False):
    choices = list(choice_class.choices)
    return [("", "---------")] + choices if blank else choices


class StudentProfileForm(forms.Form):
    name = forms.CharField(max_length=64, required=False)
    phone = forms.CharField(max_length=32, required=False)
    school_name = forms.CharField(max_length=128, required=False)
    school_type = forms.CharField(max_length=32, required=False)
    grade = forms.CharField(max_length=16, required=False)
    parent_phone = forms.CharField(max_length=32, required=False)
    parent_relation = forms.CharField(max_length=32, required=False)


class AssignmentUpdateForm(forms.Form):
    title = forms.CharField(max_length=200, required=False)
    due_date = forms.DateField(required=False)
    submission_deadline = forms.DateTimeField(required=False)
    status = forms.ChoiceField(choices=_choices(Assignment.Status), required=False)
    submitted_date = forms.DateField(required=False)


class ScheduleUpdateForm(ScheduleForm):
    """Partial edit; ``expected_*`` carry the values the editor loaded."""

    date = forms.DateField(required=False)
    status = forms.ChoiceField(choices=_choices(Schedule.Status), required=False)
    expected_date = forms.DateField(required=False)
    expected_start_time = forms.TimeField(required=False)
    expected_end_time = forms.TimeField(required=False)


class ScheduleChangeForm(forms.Form):
    change_type = forms.ChoiceField(choices=_choices(Schedule.ChangeType))
    reason = forms.CharField(max_length=200, required=False)
    new_date = forms.DateField(required=False)
    new_start_time = forms.TimeField(required=False)
    new_end_time = forms.TimeField(required=False)


class UnitForm(forms.Form):
    name = forms.CharField(max_length=128)
    grade = forms.CharField(max_length=16, required=False)
    subject = forms.CharField(max_length=64, required=False)
    status = forms.ChoiceField(choices=_choices(Unit.Level, blank=True), required=False)
    difficulty = forms.ChoiceField(choices=_choices(Unit.Difficulty, blank=True), required=False)
    completion_status = forms.ChoiceField(
        choices=_choices(Unit.Completion, blank=True), required=False
    )


class UnitUpdateForm(UnitForm):
    name = forms.CharField(max_length=128, required=False)


class UnitErrorForm(forms.Form):
    error_type = forms.ChoiceField(choices=_choices(ErrorType))
    delta = forms.IntegerField(min_value=-Unit.ERROR_MAX, max_value=Unit.ERROR_MAX)


class NoteForm(forms.Form):
    problem = forms.CharField(max_length=200)
    error_type = forms.ChoiceField(choices=_choices(ErrorType, blank=True), required=False)
    memo = forms.CharField(required=False, widget=forms.Textarea)
    unit_id = forms.IntegerField(required=False)
