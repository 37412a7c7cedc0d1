from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from catalog.models import Product
from supplier.services.exceptions import SupplierError
from supplier.services.sync import sync_all_products, sync_product


class Command(BaseCommand):
    help = "Sync supplier name/stock/price onto supplier-backed products."

    def add_arguments(self, parser):
        parser.add_argument("--product", help="Sync a single product (id or slug)")

    def _find_product(self, ident: str):
        product = Product.objects.filter(slug=ident).first()
        if product is not None:
            return product
        try:
            return Product.objects.filter(pk=ident).first()
        except ValidationError:
            return None

    def handle(self, *args, **options):
        ident = options.get("product")
        if ident:
            product = self._find_product(ident)
            if product is None:
                raise CommandError(f"Product not found: {ident}")
            try:
                sync_product(product)
            except SupplierError as exc:
                raise CommandError(f"Sync failed: {exc}") from exc
            self.stdout.write(self.style.SUCCESS(f"Synced {product.title} (stock={product.stock})"))
            return

        summary = sync_all_products()
        msg = f"Synced {summary.synced}/{summary.total} products ({summary.failed} failed)"
        if summary.failed:
            self.stdout.write(self.style.WARNING(msg))
        else:
            self.stdout.write(self.style.SUCCESS(msg))
