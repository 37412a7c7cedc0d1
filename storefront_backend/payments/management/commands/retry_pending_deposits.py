from django.core.management.base import BaseCommand

from payments.services.deposit_service import retry_pending_deposits


class Command(BaseCommand):
    help = "Credit captured deposits that were never finalized and expire abandoned ones."

    def add_arguments(self, parser):
        parser.add_argument("--max-attempts", type=int, default=5)
        parser.add_argument("--max-age-minutes", type=int, default=60)
        parser.add_argument("--limit", type=int, default=10)

    def handle(self, *args, **options):
        result = retry_pending_deposits(
            max_attempts=options["max_attempts"],
            max_age_minutes=options["max_age_minutes"],
            limit=options["limit"],
        )
        self.stdout.write(
            self.style.SUCCESS(f"Processed {result['processed']} deposit(s), {result['failed']} failed")
        )
