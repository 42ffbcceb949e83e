from django.conf import settings
from django.core.management.base import BaseCommand
from django_rq import get_scheduler
from jobs.tasks import update_statuses


class Command(BaseCommand):
    help = "Apply the rq-scheduler cron schedule for the status update job"

    def add_arguments(self, parser):
        parser.add_argument("--cron", default=settings.STATUS_UPDATE_CRON)

    def handle(self, *args, **options):
        scheduler = get_scheduler("default")
        # Clear existing jobs for the updater to avoid duplicates
        for job in scheduler.get_jobs():
            if job.func_name.endswith("update_statuses"):
                scheduler.cancel(job)
        cron = options["cron"]
        scheduler.cron(cron, func=update_statuses, repeat=None, queue_name="default")
        self.stdout.write(self.style.SUCCESS(f"Scheduled status updates with cron '{cron}'"))
