from .config import ConfigLookupView
from .settings import CurrencyView, SiteSettingViewSet

__all__ = [
    "ConfigLookupView",
    "SiteSettingViewSet",
    "CurrencyView",
]
