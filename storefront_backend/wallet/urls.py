# wallet/urls.py

from django.urls import path

from wallet.views import BalanceAdjustmentView, BalanceView, TransactionListView

app_name = "wallet"

urlpatterns = [
    path("balance/", BalanceView.as_view(), name="balance"),
    path("transactions/", TransactionListView.as_view(), name="transactions"),
    path("admin/adjust/", BalanceAdjustmentView.as_view(), name="admin-adjust"),
]
