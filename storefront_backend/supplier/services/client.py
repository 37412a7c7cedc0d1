# supplier/services/client.py

"""
SUPPLIER API CLIENT

Endpoints (all GET, responses carry success="true"|"false"):
- getStock?kioskToken=&userToken=                    -> {name, stock, price}
- buyProducts?kioskToken=&userToken=&quantity=[&promotion=] -> {order_id}
- getProducts?orderId=&userToken=                    -> {data: [{product: "<key>"}, ...]}

getProducts answers description="Order in processing!" until the supplier
has prepared the order; get_products polls for it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from urllib.parse import urlencode

from django.conf import settings

from supplier.models import ApiConfig, ProxySetting
from supplier.services.exceptions import (
    SupplierError,
    SupplierNotConfigured,
    SupplierResponseError,
)
from supplier.services.proxy import ProxyConfig, fetch_with_fallback

logger = logging.getLogger(__name__)

ORDER_PROCESSING_MESSAGE = "Order in processing!"

DELIVERY_DELIVERED = "delivered"
DELIVERY_PROCESSING = "processing"


@dataclass(frozen=True)
class StockInfo:
    name: str
    stock: int
    price: Decimal
    raw: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Delivery:
    status: str
    keys: list = field(default_factory=list)
    raw: dict = field(default_factory=dict)

    @property
    def delivered(self) -> bool:
        return self.status == DELIVERY_DELIVERED


# -----------------------------
# helpers
# -----------------------------
def active_api_config() -> ApiConfig:
    config = ApiConfig.objects.filter(is_active=True).order_by("created_at").first()
    if config is None:
        raise SupplierNotConfigured("No active API configuration found")
    return config


def _endpoint_url(endpoint: str, params: dict) -> str:
    query = urlencode({k: v for k, v in params.items() if v not in (None, "")})
    return f"{settings.SUPPLIER['API_BASE']}/{endpoint}?{query}"


def _is_success(payload: dict) -> bool:
    return str(payload.get("success", "")).strip().lower() == "true"


def _call(endpoint: str, params: dict) -> dict:
    url = _endpoint_url(endpoint, params)
    payload = fetch_with_fallback(url, ProxyConfig.from_setting(ProxySetting.current()))
    if not isinstance(payload, dict):
        raise SupplierResponseError(f"Supplier returned an unexpected {endpoint} response")
    return payload


def _to_int(value) -> int:
    try:
        return max(int(str(value).strip() or 0), 0)
    except (TypeError, ValueError):
        return 0


def _to_decimal(value) -> Decimal:
    try:
        return Decimal(str(value).strip() or "0")
    except (InvalidOperation, ValueError):
        return Decimal("0")


def _extract_keys(data) -> list[str]:
    if not isinstance(data, list):
        return [str(data)] if data else []
    keys = []
    for item in data:
        if isinstance(item, dict):
            keys.append(str(item.get("product") or item.get("key") or item.get("id") or ""))
        else:
            keys.append(str(item))
    return [k for k in keys if k]


# -----------------------------
# API
# -----------------------------
def get_stock(*, kiosk_token: str, user_token: str) -> StockInfo:
    payload = _call("getStock", {"kioskToken": kiosk_token, "userToken": user_token})
    if not _is_success(payload):
        raise SupplierResponseError(payload.get("description") or "Failed to fetch stock", payload)

    return StockInfo(
        name=str(payload.get("name") or ""),
        stock=_to_int(payload.get("stock")),
        price=_to_decimal(payload.get("price")),
        raw=payload,
    )


def buy_products(*, kiosk_token: str, user_token: str, quantity: int, promotion: str = "") -> str:
    """Place a supplier order and return the supplier order id."""
    payload = _call(
        "buyProducts",
        {
            "kioskToken": kiosk_token,
            "userToken": user_token,
            "quantity": int(quantity),
            "promotion": (promotion or "").strip(),
        },
    )
    order_id = payload.get("order_id")
    if not _is_success(payload) or not order_id:
        raise SupplierResponseError(payload.get("description") or "Failed to place order", payload)

    logger.info("Supplier order placed", extra={"supplier_order_id": str(order_id), "quantity": quantity})
    return str(order_id)


def get_products(
    *,
    order_id: str,
    user_token: str,
    attempts: int | None = None,
    delay_seconds: float | None = None,
) -> Delivery:
    """
    Poll getProducts for delivered keys.

    Returns a DELIVERY_PROCESSING result when the supplier is still preparing
    the order after every attempt. Any other supplier refusal raises
    SupplierResponseError; transport errors are retried and the last one raised.
    """
    if attempts is None:
        attempts = settings.SUPPLIER["POLL_ATTEMPTS"]
    if delay_seconds is None:
        delay_seconds = settings.SUPPLIER["POLL_DELAY_SECONDS"]
    attempts = max(int(attempts), 1)

    last_payload: dict = {}
    for attempt in range(1, attempts + 1):
        try:
            payload = _call("getProducts", {"orderId": order_id, "userToken": user_token})
        except SupplierResponseError:
            raise
        except SupplierError as exc:
            if attempt >= attempts:
                raise
            logger.warning(
                "Supplier poll failed, retrying",
                extra={"supplier_order_id": order_id, "attempt": attempt, "error": str(exc)},
            )
            time.sleep(delay_seconds)
            continue

        last_payload = payload
        if _is_success(payload) and payload.get("data"):
            return Delivery(status=DELIVERY_DELIVERED, keys=_extract_keys(payload["data"]), raw=payload)

        if payload.get("description") == ORDER_PROCESSING_MESSAGE:
            if attempt < attempts:
                time.sleep(delay_seconds)
            continue

        raise SupplierResponseError(
            payload.get("description") or "Unknown error while processing order", payload
        )

    return Delivery(status=DELIVERY_PROCESSING, raw=last_payload)
