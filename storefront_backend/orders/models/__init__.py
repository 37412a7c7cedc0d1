from .order import Order
from .order_activity import OrderActivity
from .invoice import Invoice

__all__ = ["Order", "OrderActivity", "Invoice"]
