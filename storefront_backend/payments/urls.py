# payments/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from payments.views import (
    AdminDepositViewSet,
    CheckPaymentView,
    DepositViewSet,
    FeePreviewView,
    PayPalWebhookView,
    RefreshBalanceView,
)

app_name = "payments"

router = SimpleRouter()
router.register(r"deposits", DepositViewSet, basename="deposits")
router.register(r"admin/deposits", AdminDepositViewSet, basename="admin-deposits")

urlpatterns = [
    path("fee/", FeePreviewView.as_view(), name="fee"),
    path("check-payment/", CheckPaymentView.as_view(), name="check-payment"),
    path("refresh-balance/", RefreshBalanceView.as_view(), name="refresh-balance"),
    path("webhooks/paypal/", PayPalWebhookView.as_view(), name="paypal-webhook"),
    path("", include(router.urls)),
]
