from django.core.management.base import BaseCommand, CommandError
from accounts.models import ApprovalStatus, Role, User, synthetic_admin_uid


class Command(BaseCommand):
    help = "Create (or promote) the super admin used to approve other admins"

    def add_arguments(self, parser):
        parser.add_argument("--username", required=True)
        parser.add_argument("--password", required=True)
        parser.add_argument("--name", default="Super admin")

    def handle(self, *args, **options):
        username = options["username"].strip()
        if not username:
            raise CommandError("username must not be blank")
        user = User.objects.filter(username=username).first()
        if user is not None and user.role and user.role not in (Role.ADMIN, Role.SUPER_ADMIN):
            raise CommandError(f"{username} is already registered as {user.role}")
        if user is None:
            user = User(username=username, uid=synthetic_admin_uid())
        user.uid = user.uid or synthetic_admin_uid()
        user.role = Role.SUPER_ADMIN
        user.status = ApprovalStatus.APPROVED
        user.name = options["name"]
        user.set_password(options["password"])
        user.save()
        self.stdout.write(self.style.SUCCESS(f"Super admin {username} ready (uid {user.uid})"))
