from .config import ApiConfigViewSet, ProxySettingView, ProxyTestView
from .sync import SyncLogViewSet, SyncView

__all__ = [
    "ApiConfigViewSet",
    "ProxySettingView",
    "ProxyTestView",
    "SyncView",
    "SyncLogViewSet",
]
