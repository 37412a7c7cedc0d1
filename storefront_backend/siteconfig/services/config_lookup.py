# siteconfig/services/config_lookup.py

from __future__ import annotations

from django.conf import settings


class ConfigKeyNotFound(Exception):
    pass


def lookup_public_config(key: str) -> str:
    """
    Resolve a browser-safe config value.

    Only keys in settings.PUBLIC_CONFIG_KEYS are served; secrets are never
    reachable through this path even if the key name is guessed.
    """
    allowed = getattr(settings, "PUBLIC_CONFIG_KEYS", {}) or {}
    value = allowed.get(key)
    if value in (None, ""):
        raise ConfigKeyNotFound(f"Config key {key} not found")
    return str(value)
