from django.core.management.base import BaseCommand

from orders.services.fulfillment import refresh_pending_orders


class Command(BaseCommand):
    help = "Poll the supplier for delivered keys on processing orders."

    def add_arguments(self, parser):
        parser.add_argument("--limit", type=int, default=50)

    def handle(self, *args, **options):
        counts = refresh_pending_orders(limit=options["limit"])
        self.stdout.write(
            self.style.SUCCESS(
                "Checked {checked}: {completed} completed, {failed} failed, "
                "{processing} still processing".format(**counts)
            )
        )
