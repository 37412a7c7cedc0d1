# orders/services/stats.py

"""
DASHBOARD STATS

dashboard_stats(start, end) over [start, end) (local dates, end inclusive):
- revenue:            sum(total_price) of completed orders
- orders_by_status:   count per status
- deposits_total:     sum of completed deposit transactions
- new_users:          accounts created in range
- top_products:       top 5 by completed quantity
- daily:              [{date, revenue, orders}]
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db.models import Count, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from orders.models import Order
from wallet.models import Transaction

User = get_user_model()

TOP_PRODUCTS_LIMIT = 5


def _money(x) -> str:
    if x is None:
        return "0.00"
    return f"{Decimal(str(x)):.2f}"


def date_bounds(start_date, end_date):
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(start_date, time.min), tz)
    end = timezone.make_aware(datetime.combine(end_date, time.min), tz) + timedelta(days=1)
    return start, end


def dashboard_stats(*, start_date, end_date) -> dict:
    start, end = date_bounds(start_date, end_date)

    orders = Order.objects.filter(created_at__gte=start, created_at__lt=end)
    completed = orders.filter(status=Order.STATUS_COMPLETED)

    revenue = completed.aggregate(total=Sum("total_price")).get("total")

    by_status = {status: 0 for status, _ in Order.STATUS_CHOICES}
    for row in orders.values("status").annotate(n=Count("id")):
        by_status[row["status"]] = row["n"]

    deposits = Transaction.objects.filter(
        type=Transaction.TYPE_DEPOSIT,
        status=Transaction.STATUS_COMPLETED,
        created_at__gte=start,
        created_at__lt=end,
    ).aggregate(total=Sum("amount")).get("total")

    top_products = [
        {
            "product_id": str(row["product_id"]),
            "title": row["product__title"],
            "quantity": int(row["quantity"] or 0),
            "revenue": _money(row["revenue"]),
        }
        for row in completed.values("product_id", "product__title")
        .annotate(quantity=Sum("quantity"), revenue=Sum("total_price"))
        .order_by("-quantity", "-revenue")[:TOP_PRODUCTS_LIMIT]
    ]

    daily = [
        {"date": row["day"].isoformat(), "revenue": _money(row["revenue"]), "orders": row["n"]}
        for row in completed.annotate(day=TruncDate("created_at"))
        .values("day")
        .annotate(revenue=Sum("total_price"), n=Count("id"))
        .order_by("day")
    ]

    return {
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "revenue": _money(revenue),
        "orders_total": sum(by_status.values()),
        "orders_by_status": by_status,
        "deposits_total": _money(deposits),
        "new_users": User.objects.filter(created_at__gte=start, created_at__lt=end).count(),
        "top_products": top_products,
        "daily": daily,
    }
