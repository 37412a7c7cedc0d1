from .purchase import PurchaseThrottle, PurchaseView, error_response
from .orders import OrderViewSet
from .admin import AdminOrderViewSet, AdminStatsView

__all__ = [
    "PurchaseThrottle",
    "PurchaseView",
    "error_response",
    "OrderViewSet",
    "AdminOrderViewSet",
    "AdminStatsView",
]
