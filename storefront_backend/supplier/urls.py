# supplier/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from supplier.views import ApiConfigViewSet, ProxySettingView, ProxyTestView, SyncLogViewSet, SyncView

app_name = "supplier"

router = DefaultRouter()
router.register(r"api-configs", ApiConfigViewSet, basename="api-configs")
router.register(r"sync-logs", SyncLogViewSet, basename="sync-logs")

urlpatterns = [
    path("proxy/", ProxySettingView.as_view(), name="proxy"),
    path("proxy/test/", ProxyTestView.as_view(), name="proxy-test"),
    path("sync/", SyncView.as_view(), name="sync"),
    path("", include(router.urls)),
]
