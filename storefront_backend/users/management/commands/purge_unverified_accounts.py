from django.core.management.base import BaseCommand

from users.services.cleanup import UNVERIFIED_MAX_AGE_HOURS, purge_unverified_accounts


class Command(BaseCommand):
    help = "Delete accounts that never verified their email."

    def add_arguments(self, parser):
        parser.add_argument("--hours", type=int, default=UNVERIFIED_MAX_AGE_HOURS)

    def handle(self, *args, **options):
        deleted = purge_unverified_accounts(older_than_hours=options["hours"])
        self.stdout.write(self.style.SUCCESS(f"Cleanup completed. Deleted {deleted} unconfirmed accounts."))
