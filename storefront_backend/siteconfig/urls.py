# siteconfig/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from siteconfig.views import ConfigLookupView, CurrencyView, SiteSettingViewSet

app_name = "siteconfig"

router = DefaultRouter()
router.register(r"settings", SiteSettingViewSet, basename="settings")

urlpatterns = [
    path("lookup/", ConfigLookupView.as_view(), name="lookup"),
    path("currency/", CurrencyView.as_view(), name="currency"),
    path("", include(router.urls)),
]
