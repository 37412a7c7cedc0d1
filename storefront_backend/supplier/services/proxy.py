# supplier/services/proxy.py

"""
SUPPLIER PROXY ROUTING

Purpose:
- Route supplier GET requests directly or through a public CORS proxy.
- Fall back across proxies when the configured route fails.

Proxy URL shapes (target is URL-encoded unless noted):
- direct          -> target
- allorigins      -> https://api.allorigins.win/get?url=<target>   (JSON wrapper, body in "contents")
- yproxy          -> https://api.allorigins.win/raw?url=<target>
- corsproxy       -> https://corsproxy.io/?<target>
- cors-anywhere   -> https://cors-anywhere.herokuapp.com/<target>  (not encoded)
- jsonp           -> https://jsonp.afeld.me/?url=<target>
- custom          -> custom_url with "{url}" replaced, or custom_url + <target>

Fallback order:
- configured proxy, then allorigins / yproxy / corsproxy (skipping the one
  already tried), then direct. When everything fails the first error is raised.
"""

from __future__ import annotations

import json
import logging
import socket
import time
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from django.conf import settings

from supplier.models import ProxySetting
from supplier.services.exceptions import ProxyFetchError

logger = logging.getLogger(__name__)

FALLBACK_PROXIES = (
    ProxySetting.TYPE_ALLORIGINS,
    ProxySetting.TYPE_YPROXY,
    ProxySetting.TYPE_CORSPROXY,
)


@dataclass(frozen=True)
class ProxyConfig:
    proxy_type: str = ProxySetting.TYPE_DIRECT
    custom_url: str = ""

    @classmethod
    def from_setting(cls, setting: ProxySetting | None) -> "ProxyConfig":
        if setting is None:
            return cls()
        return cls(proxy_type=setting.proxy_type, custom_url=setting.custom_url or "")


def _encode(target: str) -> str:
    return quote(target, safe="")


def build_proxy_url(target: str, proxy_type: str, custom_url: str = "") -> str:
    if proxy_type == ProxySetting.TYPE_DIRECT:
        return target
    if proxy_type == ProxySetting.TYPE_ALLORIGINS:
        return f"https://api.allorigins.win/get?url={_encode(target)}"
    if proxy_type == ProxySetting.TYPE_YPROXY:
        return f"https://api.allorigins.win/raw?url={_encode(target)}"
    if proxy_type == ProxySetting.TYPE_CORSPROXY:
        return f"https://corsproxy.io/?{_encode(target)}"
    if proxy_type == ProxySetting.TYPE_CORS_ANYWHERE:
        return f"https://cors-anywhere.herokuapp.com/{target}"
    if proxy_type == ProxySetting.TYPE_JSONP:
        return f"https://jsonp.afeld.me/?url={_encode(target)}"
    if proxy_type == ProxySetting.TYPE_CUSTOM:
        base = (custom_url or "").strip()
        if not base:
            raise ProxyFetchError("Custom proxy URL is not configured")
        if "{url}" in base:
            return base.replace("{url}", _encode(target))
        return f"{base}{_encode(target)}"

    raise ProxyFetchError(f"Unknown proxy type: {proxy_type}")


def request_headers() -> dict[str, str]:
    return {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": "en-US,en;q=0.9,vi;q=0.8",
        "Cache-Control": "no-cache, no-store",
        "Pragma": "no-cache",
        "X-Requested-With": "XMLHttpRequest",
        "X-Request-Time": str(int(time.time() * 1000)),
        "Origin": "https://taphoammo.net",
        "Referer": "https://taphoammo.net/",
    }


def _safe_preview(text: str, limit: int = 300) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "...(truncated)"


def _parse_body(raw: str, proxy_type: str) -> Any:
    try:
        data = json.loads(raw)
    except ValueError:
        return raw

    if proxy_type == ProxySetting.TYPE_ALLORIGINS and isinstance(data, dict) and data.get("contents"):
        contents = data["contents"]
        try:
            return json.loads(contents)
        except (TypeError, ValueError):
            return contents

    return data


def fetch_via_proxy(target: str, config: ProxyConfig, *, timeout: float | None = None) -> Any:
    """
    GET target through one proxy route. Returns parsed JSON, or the raw text
    when the body is not JSON. Raises ProxyFetchError on transport failures.
    """
    if timeout is None:
        timeout = settings.SUPPLIER["TIMEOUT_SECONDS"]

    url = build_proxy_url(target, config.proxy_type, config.custom_url)
    req = Request(url, headers=request_headers(), method="GET")

    try:
        with urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        raise ProxyFetchError(f"HTTP error! Status: {e.code}") from e
    except socket.timeout as e:
        raise ProxyFetchError(f"Request timeout after {timeout} seconds") from e
    except URLError as e:
        raise ProxyFetchError(f"Network error via {config.proxy_type}: {e.reason}") from e

    logger.debug(
        "Supplier fetch ok",
        extra={"proxy_type": config.proxy_type, "preview": _safe_preview(raw)},
    )
    return _parse_body(raw, config.proxy_type)


def fetch_with_fallback(target: str, config: ProxyConfig | None = None) -> Any:
    config = config or ProxyConfig()

    try:
        return fetch_via_proxy(target, config)
    except ProxyFetchError as first_error:
        logger.warning(
            "Primary supplier route failed",
            extra={"proxy_type": config.proxy_type, "error": str(first_error)},
        )

        for proxy_type in FALLBACK_PROXIES:
            if proxy_type == config.proxy_type:
                continue
            try:
                return fetch_via_proxy(target, ProxyConfig(proxy_type=proxy_type))
            except ProxyFetchError as exc:
                logger.warning(
                    "Fallback supplier route failed",
                    extra={"proxy_type": proxy_type, "error": str(exc)},
                )

        try:
            return fetch_via_proxy(target, ProxyConfig(proxy_type=ProxySetting.TYPE_DIRECT))
        except ProxyFetchError as exc:
            logger.error("Direct supplier call failed", extra={"error": str(exc)})
            raise first_error
