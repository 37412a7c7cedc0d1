# orders/services/invoice_service.py

"""
INVOICES

- create_invoice(order) is idempotent: one invoice per order, later calls
  return the existing row (created=False).
- Only completed (or refunded after completion) orders are invoiced.
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction

from orders.models import Invoice, Order
from orders.models.invoice import generate_invoice_number
from orders.services.exceptions import InvoiceError

logger = logging.getLogger(__name__)

INVOICEABLE_STATES = {Order.STATUS_COMPLETED, Order.STATUS_REFUNDED}

MAX_NUMBER_ATTEMPTS = 5


def _details(order: Order) -> dict:
    return {
        "products": [
            {
                "title": order.product.title,
                "price": str(order.unit_price),
                "quantity": order.quantity,
            }
        ],
        "recipient": {
            "email": order.user.email,
            "name": getattr(order.user, "display_name", "") or "",
        },
        "order_number": order.order_number,
    }


def create_invoice(order: Order) -> tuple[Invoice, bool]:
    existing = Invoice.objects.filter(order=order).first()
    if existing is not None:
        return existing, False

    if order.status not in INVOICEABLE_STATES:
        raise InvoiceError(f"Order {order.order_number} is not completed")

    for _ in range(MAX_NUMBER_ATTEMPTS):
        try:
            with transaction.atomic():
                invoice = Invoice.objects.create(
                    invoice_number=generate_invoice_number(),
                    order=order,
                    user=order.user,
                    amount=order.total_price,
                    details=_details(order),
                    status=Invoice.STATUS_ISSUED,
                )
        except IntegrityError:
            # either the number collided or another request invoiced the order
            existing = Invoice.objects.filter(order=order).first()
            if existing is not None:
                return existing, False
            continue

        logger.info("Invoice issued", extra={"order_id": str(order.id), "invoice": invoice.invoice_number})
        return invoice, True

    raise InvoiceError("Could not allocate a unique invoice number")
