# orders/services/admin_service.py

"""
BACK-OFFICE ORDER OPERATIONS

- update_order_status: lifecycle-validated status change, logged as
  a status_changed activity. Refunds go through process_refund.
- process_refund: credit total_price back once (transaction id
  "refund-<order id>"), mark the order refunded.
"""

from __future__ import annotations

import logging

from django.db import transaction

from notifications.models import Notification
from notifications.services.notify import notify_user
from orders.models import Order, OrderActivity
from orders.services.exceptions import DuplicateRefundError, InvalidOrderTransitionError
from orders.services.fulfillment import log_activity, refund_transaction_id
from orders.services.order_lifecycle import REFUNDABLE_STATES, validate_transition
from wallet.models import Transaction
from wallet.services.balance_service import update_user_balance

logger = logging.getLogger(__name__)


@transaction.atomic
def update_order_status(*, order: Order, new_status: str, actor, note: str = "") -> Order:
    order = Order.objects.select_for_update().get(pk=order.pk)

    if new_status == Order.STATUS_REFUNDED:
        raise InvalidOrderTransitionError("Use the refund operation to refund an order")
    if new_status == order.status:
        return order

    validate_transition(order=order, target_status=new_status)

    old_status = order.status
    order.status = new_status
    order.save(update_fields=["status", "updated_at"])

    log_activity(
        order=order,
        action=OrderActivity.ACTION_STATUS_CHANGED,
        old_status=old_status,
        new_status=new_status,
        user=actor,
        metadata={"note": note} if note else {},
    )
    logger.info(
        "Order status changed",
        extra={"order_id": str(order.id), "from": old_status, "to": new_status, "actor": str(actor.pk)},
    )
    return order


@transaction.atomic
def process_refund(*, order: Order, actor, reason: str = "") -> Order:
    order = Order.objects.select_for_update().select_related("user").get(pk=order.pk)

    txn_id = refund_transaction_id(order)
    if order.status == Order.STATUS_REFUNDED or Transaction.objects.filter(transaction_id=txn_id).exists():
        raise DuplicateRefundError(f"Order {order.order_number} has already been refunded")

    if order.status not in REFUNDABLE_STATES:
        raise InvalidOrderTransitionError(
            f"Order {order.order_number} cannot be refunded from '{order.status}'"
        )

    update_user_balance(
        user=order.user,
        amount=order.total_price,
        tx_type=Transaction.TYPE_REFUND,
        description=f"Refund for {order.order_number}" + (f": {reason}" if reason else ""),
        payment_method="balance",
        transaction_id=txn_id,
    )

    old_status = order.status
    order.status = Order.STATUS_REFUNDED
    order.save(update_fields=["status", "updated_at"])

    log_activity(
        order=order,
        action=OrderActivity.ACTION_REFUNDED,
        old_status=old_status,
        new_status=order.status,
        user=actor,
        metadata={"amount": str(order.total_price), "reason": reason},
    )
    notify_user(
        user=order.user,
        message=f"Order {order.order_number} was refunded ({order.total_price})",
        notification_type=Notification.TYPE_ORDER,
    )
    logger.info("Order refunded", extra={"order_id": str(order.id), "actor": str(actor.pk)})
    return order
