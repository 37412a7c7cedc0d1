# catalog/management/commands/seed_catalog.py

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from catalog.models import Category, Product

CATEGORIES = {
    "Social Accounts": ["Email Accounts", "Messenger Accounts"],
    "Software Licences": ["Office Suites", "Antivirus"],
    "Streaming": [],
}

PRODUCTS = [
    # (title, category, price, original_price, stock)
    ("Gmail Account (aged 1 year)", "Email Accounts", "2.50", "3.00", 120),
    ("Outlook Account", "Email Accounts", "1.20", None, 300),
    ("Telegram Account", "Messenger Accounts", "4.00", "5.00", 40),
    ("Office 2021 Pro Plus Key", "Office Suites", "12.00", "25.00", 50),
    ("Antivirus Premium 1 Year", "Antivirus", "9.90", "19.90", 0),
    ("Streaming Premium 1 Month", "Streaming", "3.50", None, 80),
]


class Command(BaseCommand):
    help = "Seed demo categories and products (idempotent)"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding catalog..."))

        by_name = {}
        for parent_name, children in CATEGORIES.items():
            parent, _ = Category.objects.get_or_create(name=parent_name, parent=None)
            by_name[parent_name] = parent
            for child_name in children:
                child, _ = Category.objects.get_or_create(name=child_name, parent=parent)
                by_name[child_name] = child

        created = 0
        for title, category_name, price, original_price, stock in PRODUCTS:
            _, was_created = Product.objects.get_or_create(
                title=title,
                defaults={
                    "category": by_name[category_name],
                    "price": Decimal(price),
                    "original_price": Decimal(original_price) if original_price else None,
                    "stock": stock,
                    "short_description": f"{title} - instant delivery",
                    "features": ["Instant delivery", "Replacement warranty"],
                },
            )
            created += int(was_created)

        self.stdout.write(self.style.SUCCESS(f"Catalog seeded ({created} new products)."))
