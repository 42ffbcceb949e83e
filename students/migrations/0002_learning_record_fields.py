import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("students", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="unit",
            name="difficulty",
            field=models.CharField(
                choices=[("HARD", "Hard"), ("MEDIUM", "Medium"), ("EASY", "Easy")],
                default="MEDIUM",
                max_length=8,
            ),
        ),
        migrations.AddField(
            model_name="unit",
            name="completion_status",
            field=models.CharField(
                choices=[
                    ("incomplete", "Incomplete"),
                    ("in-progress", "In progress"),
                    ("completed", "Completed"),
                ],
                default="incomplete",
                max_length=16,
            ),
        ),
        migrations.AddField(
            model_name="unit",
            name="error_c",
            field=models.PositiveSmallIntegerField(default=0),
        ),
        migrations.AddField(
            model_name="unit",
            name="error_m",
            field=models.PositiveSmallIntegerField(default=0),
        ),
        migrations.AddField(
            model_name="unit",
            name="error_r",
            field=models.PositiveSmallIntegerField(default=0),
        ),
        migrations.AddField(
            model_name="unit",
            name="error_s",
            field=models.PositiveSmallIntegerField(default=0),
        ),
        migrations.AlterField(
            model_name="schedule",
            name="status",
            field=models.CharField(
                choices=[
                    ("scheduled", "Scheduled"),
                    ("completed", "Completed"),
                    ("cancelled", "Cancelled"),
                    ("postponed", "Postponed"),
                    ("changed", "Changed"),
                ],
                default="scheduled",
                max_length=16,
            ),
        ),
        migrations.AddField(
            model_name="schedule",
            name="change_type",
            field=models.CharField(
                blank=True,
                choices=[
                    ("makeup", "Make-up class"),
                    ("postpone", "Postponed"),
                    ("cancel", "Cancelled"),
                    ("reschedule", "Rescheduled"),
                ],
                max_length=16,
            ),
        ),
        migrations.AddField(
            model_name="schedule",
            name="change_reason",
            field=models.CharField(blank=True, max_length=200),
        ),
        migrations.AddField(
            model_name="schedule",
            name="origin_schedule",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="replacements",
                to="students.schedule",
            ),
        ),
        migrations.AlterField(
            model_name="note",
            name="error_type",
            field=models.CharField(
                blank=True,
                choices=[
                    ("C", "Concept"),
                    ("M", "Calculation"),
                    ("R", "Reading"),
                    ("S", "Strategy"),
                ],
                max_length=1,
            ),
        ),
    ]
