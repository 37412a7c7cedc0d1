from .order import (
    AdminOrderSerializer,
    OrderActivitySerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    PurchaseSerializer,
    RefundSerializer,
)
from .invoice import InvoiceSerializer

__all__ = [
    "OrderSerializer",
    "AdminOrderSerializer",
    "OrderActivitySerializer",
    "OrderStatusUpdateSerializer",
    "PurchaseSerializer",
    "RefundSerializer",
    "InvoiceSerializer",
]
