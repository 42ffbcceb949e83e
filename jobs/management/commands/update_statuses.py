from django.core.management.base import BaseCommand
from jobs.status import run_all


class Command(BaseCommand):
    help = "Recompute assignment and schedule statuses now"

    def handle(self, *args, **options):
        result = run_all()
        self.stdout.write(
            self.style.SUCCESS(
                f"Updated {result.assignments_updated} assignments, "
                f"{result.schedules_updated} schedules"
            )
        )
