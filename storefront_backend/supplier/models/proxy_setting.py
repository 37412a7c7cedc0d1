# supplier/models/proxy_setting.py

from django.core.exceptions import ValidationError
from django.db import models


class ProxySetting(models.Model):
    """
    Singleton row describing how supplier calls are routed.

    Defaults to "direct" when no row exists; the proxy types are tried as
    fallbacks by fetch_with_fallback.
    """

    TYPE_DIRECT = "direct"
    TYPE_ALLORIGINS = "allorigins"
    TYPE_YPROXY = "yproxy"
    TYPE_CORSPROXY = "corsproxy"
    TYPE_CORS_ANYWHERE = "cors-anywhere"
    TYPE_JSONP = "jsonp"
    TYPE_CUSTOM = "custom"

    TYPE_CHOICES = (
        (TYPE_DIRECT, "Direct"),
        (TYPE_ALLORIGINS, "AllOrigins"),
        (TYPE_YPROXY, "AllOrigins RAW"),
        (TYPE_CORSPROXY, "corsproxy.io"),
        (TYPE_CORS_ANYWHERE, "CORS Anywhere"),
        (TYPE_JSONP, "JSONP proxy"),
        (TYPE_CUSTOM, "Custom"),
    )

    proxy_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_DIRECT)
    custom_url = models.CharField(max_length=500, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "proxy setting"

    def __str__(self):
        return self.proxy_type

    def clean(self):
        if self.proxy_type == self.TYPE_CUSTOM and not (self.custom_url or "").strip():
            raise ValidationError({"custom_url": "Custom proxy URL is required for the custom proxy type"})

    @classmethod
    def current(cls) -> "ProxySetting":
        obj = cls.objects.order_by("-updated_at").first()
        if obj is None:
            obj = cls.objects.create()
        return obj
