from .admin import AdminDepositViewSet
from .deposits import CheckPaymentView, DepositViewSet, FeePreviewView, RefreshBalanceView
from .webhook import PayPalWebhookView

__all__ = [
    "DepositViewSet",
    "FeePreviewView",
    "CheckPaymentView",
    "RefreshBalanceView",
    "PayPalWebhookView",
    "AdminDepositViewSet",
]
