from .api_config import ApiConfig
from .proxy_setting import ProxySetting
from .sync_log import SyncLog

__all__ = ["ApiConfig", "ProxySetting", "SyncLog"]
