"""
ORDER LIFECYCLE RULES

The only allowed status transitions for Order. No database writes here.
"""

from orders.models import Order
from orders.services.exceptions import InvalidOrderTransitionError

TERMINAL_STATES = {
    Order.STATUS_FAILED,
    Order.STATUS_REFUNDED,
    Order.STATUS_CANCELLED,
}

ALLOWED_TRANSITIONS = {
    Order.STATUS_PENDING: {
        Order.STATUS_PROCESSING,
        Order.STATUS_COMPLETED,
        Order.STATUS_FAILED,
        Order.STATUS_CANCELLED,
        Order.STATUS_REFUNDED,
    },
    Order.STATUS_PROCESSING: {
        Order.STATUS_COMPLETED,
        Order.STATUS_FAILED,
        Order.STATUS_CANCELLED,
        Order.STATUS_REFUNDED,
    },
    Order.STATUS_COMPLETED: {
        Order.STATUS_REFUNDED,
    },
}

REFUNDABLE_STATES = {
    Order.STATUS_PENDING,
    Order.STATUS_PROCESSING,
    Order.STATUS_COMPLETED,
}


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, order: Order, target_status: str):
    if not can_transition(from_status=order.status, to_status=target_status):
        raise InvalidOrderTransitionError(
            f"Order {order.order_number} cannot transition from "
            f"'{order.status}' to '{target_status}'"
        )
