# orders/services/fulfillment.py

"""
ORDER FULFILMENT

Purpose:
- Deliver keys for a reserved (already paid) order.

Local products:
- one generated key per unit ("ABC-DEF-GHI", uppercase letters), order completes.

Supplier-backed products:
- buyProducts, then poll getProducts for the delivered keys.
- delivered                -> completed
- still "in processing"    -> stays processing (refresh_order picks it up later)
- supplier refusal         -> refunded to the balance, stock restored, order failed
- transport error on buy   -> refunded as well: no supplier order id came back,
                              so there is nothing to poll (logged for reconciliation)
- transport error on poll  -> stays processing

Supplier calls never run inside the purchase DB transaction.
"""

from __future__ import annotations

import logging
import secrets
import string

from django.db import transaction
from django.utils import timezone

from catalog.models import Product
from notifications.models import Notification
from notifications.services.email import EMAIL_ORDER_PROCESSED, send_email_safely
from notifications.services.notify import notify_user
from orders.models import Order, OrderActivity
from siteconfig.services.currency import format_price
from supplier.services.client import active_api_config, buy_products, get_products
from supplier.services.exceptions import ProxyFetchError, SupplierError, SupplierResponseError
from wallet.models import Transaction
from wallet.services.balance_service import update_user_balance

logger = logging.getLogger(__name__)

LOCAL_KEY_ALPHABET = string.ascii_uppercase


def generate_local_key() -> str:
    return "-".join(
        "".join(secrets.choice(LOCAL_KEY_ALPHABET) for _ in range(3)) for _ in range(3)
    )


def refund_transaction_id(order: Order) -> str:
    return f"refund-{order.id}"


def log_activity(*, order: Order, action: str, old_status: str = "", new_status: str = "", user=None, metadata=None):
    return OrderActivity.objects.create(
        order=order,
        user=user,
        action=action,
        old_status=old_status,
        new_status=new_status,
        metadata=metadata or {},
    )


def _send_order_processed(order: Order):
    send_email_safely(
        to=order.user.email,
        email_type=EMAIL_ORDER_PROCESSED,
        data={
            "order_id": order.order_number,
            "product": order.product.title,
            "amount": format_price(order.total_price),
            "date": timezone.localtime(order.completed_at or timezone.now()).strftime("%Y-%m-%d %H:%M"),
        },
    )


def complete_order(order: Order, keys: list[str], *, actor=None) -> Order:
    old_status = order.status
    order.keys = list(keys)
    order.status = Order.STATUS_COMPLETED
    order.save(update_fields=["keys", "status", "updated_at"])

    log_activity(
        order=order,
        action=OrderActivity.ACTION_KEYS_DELIVERED,
        old_status=old_status,
        new_status=order.status,
        user=actor,
        metadata={"key_count": len(order.keys)},
    )
    notify_user(
        user=order.user,
        message=f"Order {order.order_number} is ready",
        notification_type=Notification.TYPE_ORDER,
    )
    transaction.on_commit(lambda: _send_order_processed(order))

    logger.info("Order completed", extra={"order_id": str(order.id), "keys": len(order.keys)})
    return order


@transaction.atomic
def fail_and_refund(order: Order, reason: str) -> Order:
    """
    Refund the buyer, put the units back in stock and mark the order failed.
    A no-op for orders that already reached a terminal state.
    """
    order = Order.objects.select_for_update().select_related("user", "product").get(pk=order.pk)
    if order.status not in {Order.STATUS_PENDING, Order.STATUS_PROCESSING}:
        return order

    already_refunded = Transaction.objects.filter(transaction_id=refund_transaction_id(order)).exists()
    if not already_refunded:
        update_user_balance(
            user=order.user,
            amount=order.total_price,
            tx_type=Transaction.TYPE_REFUND,
            description=f"Refund for {order.order_number}",
            payment_method="balance",
            transaction_id=refund_transaction_id(order),
        )

    product = Product.objects.select_for_update().get(pk=order.product_id)
    product.stock = (product.stock or 0) + order.quantity
    product.save(update_fields=["stock", "updated_at"])

    old_status = order.status
    order.status = Order.STATUS_FAILED
    order.failure_reason = (reason or "")[:255]
    order.save(update_fields=["status", "failure_reason", "updated_at"])

    log_activity(
        order=order,
        action=OrderActivity.ACTION_FAILED,
        old_status=old_status,
        new_status=order.status,
        metadata={"reason": order.failure_reason, "refunded": str(order.total_price)},
    )
    notify_user(
        user=order.user,
        message=f"Order {order.order_number} failed and {order.total_price} was returned to your balance",
        notification_type=Notification.TYPE_ORDER,
    )

    logger.warning("Order failed and refunded", extra={"order_id": str(order.id), "reason": reason})
    return order


def _collect_supplier_keys(order: Order, user_token: str) -> Order:
    try:
        delivery = get_products(order_id=order.external_order_id, user_token=user_token)
    except SupplierResponseError as exc:
        return fail_and_refund(order, str(exc))
    except SupplierError as exc:
        logger.warning(
            "Supplier poll failed, order left processing",
            extra={"order_id": str(order.id), "error": str(exc)},
        )
        return order

    if delivery.delivered:
        return complete_order(order, delivery.keys)

    logger.info("Supplier order still processing", extra={"order_id": str(order.id)})
    return order


def fulfil_order(order: Order) -> Order:
    product = order.product

    if not product.is_supplier_backed:
        return complete_order(order, [generate_local_key() for _ in range(order.quantity)])

    try:
        config = active_api_config()
        external_id = buy_products(
            kiosk_token=product.kiosk_token,
            user_token=config.user_token,
            quantity=order.quantity,
            promotion=order.promotion_code,
        )
    except ProxyFetchError as exc:
        logger.warning(
            "Supplier unreachable while placing order, refunding; reconcile with the supplier",
            extra={"order_id": str(order.id), "kiosk_token": product.kiosk_token, "error": str(exc)},
        )
        return fail_and_refund(order, f"Supplier unreachable: {exc}")
    except SupplierError as exc:
        logger.warning("Supplier order rejected", extra={"order_id": str(order.id), "error": str(exc)})
        return fail_and_refund(order, str(exc))

    order.external_order_id = external_id
    order.save(update_fields=["external_order_id", "updated_at"])
    log_activity(
        order=order,
        action=OrderActivity.ACTION_SUPPLIER_ORDER,
        old_status=order.status,
        new_status=order.status,
        metadata={"external_order_id": external_id},
    )

    return _collect_supplier_keys(order, config.user_token)


def refresh_order(order: Order) -> Order:
    """Poll the supplier again for a processing order."""
    if order.status != Order.STATUS_PROCESSING:
        return order

    if not order.external_order_id:
        return fulfil_order(order)

    config = active_api_config()
    return _collect_supplier_keys(order, config.user_token)


def refresh_pending_orders(*, limit: int = 50) -> dict:
    counts = {"checked": 0, "completed": 0, "failed": 0, "processing": 0}

    pending = (
        Order.objects.filter(status=Order.STATUS_PROCESSING)
        .exclude(external_order_id="")
        .select_related("user", "product")
        .order_by("created_at")[:limit]
    )

    for order in pending:
        counts["checked"] += 1
        try:
            order = refresh_order(order)
        except SupplierError as exc:
            logger.warning("Order refresh failed", extra={"order_id": str(order.id), "error": str(exc)})

        if order.status == Order.STATUS_COMPLETED:
            counts["completed"] += 1
        elif order.status == Order.STATUS_FAILED:
            counts["failed"] += 1
        else:
            counts["processing"] += 1

    return counts
