# orders/services/purchase_service.py

"""
PURCHASE SERVICE (APPLICATION SERVICE)

Purpose:
- Turn a purchase request (one product, or a whole cart) into paid orders.

Flow:
1) reserve_orders (ONE DB transaction):
   - lock the buyer's profile and the products
   - validate active + stock
   - create the order, debit the balance (purchase transaction), decrement stock
   Any failure rolls back every line.
2) security: fraud evaluation, then the purchase security event
3) admin notification per new order
4) fulfil each order (keys / supplier), outside the reservation transaction

Hard rules:
- Money values are computed server-side from Product.price.
- Quantities are whole units >= 1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction

from catalog.models import Product
from notifications.models import Notification
from notifications.services.notify import notify_admins
from orders.models import Order, OrderActivity
from orders.services.exceptions import (
    InvalidQuantityError,
    OutOfStockError,
    ProductUnavailableError,
    PurchaseError,
)
from orders.services.fulfillment import fulfil_order, log_activity
from security.models import SecurityEvent
from security.services.events import record_security_event
from security.services.fraud_detection import evaluate_purchase
from wallet.models import Transaction
from wallet.services.balance_service import lock_profile, update_user_balance
from wallet.services.exceptions import WalletError

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _to_int_qty(value) -> int:
    if isinstance(value, bool):
        raise InvalidQuantityError("quantity must be a whole integer unit")
    if isinstance(value, int):
        qty = value
    elif isinstance(value, str) and value.strip().isdigit():
        qty = int(value.strip())
    else:
        raise InvalidQuantityError("quantity must be a whole integer unit")

    if qty <= 0:
        raise InvalidQuantityError("quantity must be at least 1")
    return qty


@dataclass(frozen=True)
class PurchaseLine:
    product_id: object
    quantity: int = 1
    promotion_code: str = ""


@transaction.atomic
def reserve_orders(*, user, lines: list[PurchaseLine], idempotency_key: str = "") -> list[Order]:
    if not lines:
        raise PurchaseError("Nothing to purchase")

    # lock order: buyer profile first, then products by pk
    lock_profile(user)
    product_ids = sorted({str(line.product_id) for line in lines})
    products = {
        str(p.pk): p
        for p in Product.objects.select_for_update().filter(pk__in=product_ids).order_by("pk")
    }

    orders = []
    for line in lines:
        qty = _to_int_qty(line.quantity)
        product = products.get(str(line.product_id))

        if product is None or not product.is_active:
            raise ProductUnavailableError("Product is not available")

        if (product.stock or 0) < qty:
            raise OutOfStockError(
                f"Insufficient stock for {product.title}: available {product.stock}, requested {qty}"
            )

        unit_price = _money(product.price)
        total = _money(unit_price * qty)

        order = Order.objects.create(
            user=user,
            product=product,
            quantity=qty,
            unit_price=unit_price,
            total_price=total,
            status=Order.STATUS_PROCESSING if product.is_supplier_backed else Order.STATUS_PENDING,
            promotion_code=(line.promotion_code or "").strip()[:64],
            idempotency_key=(idempotency_key or "")[:255],
        )

        update_user_balance(
            user=user,
            amount=-total,
            tx_type=Transaction.TYPE_PURCHASE,
            description=f"Purchase of {qty} x {product.title}",
            payment_method="balance",
            transaction_id=order.order_number,
        )

        product.stock = product.stock - qty
        product.save(update_fields=["stock", "updated_at"])

        log_activity(
            order=order,
            action=OrderActivity.ACTION_CREATED,
            new_status=order.status,
            user=user,
            metadata={"quantity": qty, "total_price": str(total)},
        )
        orders.append(order)

    return orders


def place_orders(
    *,
    user,
    lines: list[PurchaseLine],
    idempotency_key: str = "",
    ip_address: str | None = None,
    user_agent: str = "",
) -> list[Order]:
    try:
        orders = reserve_orders(user=user, lines=lines, idempotency_key=idempotency_key)
    except (PurchaseError, WalletError) as exc:
        record_security_event(
            event_type=SecurityEvent.TYPE_PURCHASE,
            success=False,
            ip_address=ip_address,
            user_agent=user_agent,
            user=user,
            metadata={"reason": str(exc)},
        )
        logger.info("Purchase refused", extra={"user_id": str(user.pk), "reason": str(exc)})
        raise

    total = sum((o.total_price for o in orders), Decimal("0.00"))

    evaluate_purchase(user=user, amount=total, ip_address=ip_address)
    record_security_event(
        event_type=SecurityEvent.TYPE_PURCHASE,
        success=True,
        ip_address=ip_address,
        user_agent=user_agent,
        user=user,
        metadata={"orders": [o.order_number for o in orders], "amount": str(total)},
    )

    for order in orders:
        notify_admins(
            message=(
                f"New order {order.order_number}: {order.quantity} x {order.product.title} "
                f"({order.total_price}) by {user.email}"
            ),
            notification_type=Notification.TYPE_ORDER,
        )

    logger.info(
        "Orders placed",
        extra={"user_id": str(user.pk), "orders": len(orders), "amount": str(total)},
    )
    return [fulfil_order(order) for order in orders]


def purchase_product(
    *,
    user,
    product_id,
    quantity=1,
    promotion_code: str = "",
    idempotency_key: str = "",
    ip_address: str | None = None,
    user_agent: str = "",
) -> Order:
    orders = place_orders(
        user=user,
        lines=[PurchaseLine(product_id=product_id, quantity=quantity, promotion_code=promotion_code)],
        idempotency_key=idempotency_key,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return orders[0]
