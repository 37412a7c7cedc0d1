# orders/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from orders.views import AdminOrderViewSet, AdminStatsView, OrderViewSet, PurchaseView

app_name = "orders"

router = SimpleRouter()
router.register(r"admin", AdminOrderViewSet, basename="admin-orders")
router.register(r"", OrderViewSet, basename="orders")

urlpatterns = [
    path("purchase/", PurchaseView.as_view(), name="purchase"),
    path("admin/stats/", AdminStatsView.as_view(), name="admin-stats"),
    path("", include(router.urls)),
]
