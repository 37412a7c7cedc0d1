# payments/services/paypal.py
from __future__ import annotations

import base64
import json
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from django.conf import settings

from payments.services.exceptions import PayPalError

PAYPAL_BASES = {
    "sandbox": "https://api-m.sandbox.paypal.com",
    "live": "https://api-m.paypal.com",
}

# headers PayPal sends with every webhook delivery
WEBHOOK_HEADERS = {
    "auth_algo": "PAYPAL-AUTH-ALGO",
    "cert_url": "PAYPAL-CERT-URL",
    "transmission_id": "PAYPAL-TRANSMISSION-ID",
    "transmission_sig": "PAYPAL-TRANSMISSION-SIG",
    "transmission_time": "PAYPAL-TRANSMISSION-TIME",
}


def _paypal_cfg() -> dict:
    payments = getattr(settings, "PAYMENTS", {}) or {}
    cfg = (payments.get("PAYPAL") or {}) if isinstance(payments, dict) else {}
    return cfg if isinstance(cfg, dict) else {}


def _base_url() -> str:
    mode = (_paypal_cfg().get("MODE") or "sandbox").strip().lower()
    return PAYPAL_BASES.get(mode, PAYPAL_BASES["sandbox"])


def _credentials() -> tuple[str, str]:
    cfg = _paypal_cfg()
    client_id = (cfg.get("CLIENT_ID") or "").strip()
    secret = (cfg.get("CLIENT_SECRET") or "").strip()
    if not client_id or not secret:
        raise PayPalError(
            "PayPal credentials are not configured. "
            "Expected settings.PAYMENTS['PAYPAL']['CLIENT_ID'] and ['CLIENT_SECRET']."
        )
    return client_id, secret


def _safe_preview(text: str, limit: int = 800) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def _parse_json_or_text(raw: str) -> dict[str, Any]:
    raw = raw or ""
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {"kind": "text", "raw": raw}
    if isinstance(parsed, dict):
        return {"kind": "json", "json": parsed, "raw": raw}
    return {"kind": "json_non_object", "json": parsed, "raw": raw}


def _open(req: Request, *, timeout: int) -> dict[str, Any]:
    try:
        with urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
            parsed_any = _parse_json_or_text(raw)
    except HTTPError as e:
        raw = e.read().decode("utf-8", errors="replace") if e.fp is not None else ""
        parsed_any = _parse_json_or_text(raw)

        if parsed_any.get("kind") == "json":
            j = parsed_any.get("json") or {}
            details = j.get("details") or [{}]
            issue = details[0].get("issue") if isinstance(details, list) and details else None
            msg = issue or j.get("message") or j.get("error_description") or j.get("name") or "PayPal rejected request"
            raise PayPalError(f"PayPal HTTPError: {e.code} {msg}") from e

        preview = _safe_preview(parsed_any.get("raw") or str(e))
        raise PayPalError(f"PayPal HTTPError: {e.code} {preview}") from e
    except URLError as e:
        raise PayPalError(f"PayPal URLError: {e}") from e

    if parsed_any.get("kind") != "json":
        raise PayPalError(f"PayPal returned non-JSON: {_safe_preview(parsed_any.get('raw') or '')}")

    return parsed_any.get("json") or {}


def get_access_token() -> str:
    """OAuth2 client-credentials grant."""
    client_id, secret = _credentials()
    basic = base64.b64encode(f"{client_id}:{secret}".encode("utf-8")).decode("ascii")

    req = Request(
        f"{_base_url()}/v1/oauth2/token",
        data=urlencode({"grant_type": "client_credentials"}).encode("utf-8"),
        headers={
            "Authorization": f"Basic {basic}",
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        },
        method="POST",
    )
    parsed = _open(req, timeout=20)
    token = parsed.get("access_token")
    if not token:
        raise PayPalError("PayPal did not return an access token")
    return str(token)


def _request_json(method: str, path: str, *, body: dict | None = None, timeout: int = 25) -> dict[str, Any]:
    token = get_access_token()
    data = None
    if body is not None:
        data = json.dumps(body, ensure_ascii=False).encode("utf-8")

    req = Request(
        f"{_base_url()}{path}",
        data=data,
        headers={
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        },
        method=method,
    )
    return _open(req, timeout=timeout)


def _format_amount(amount) -> str:
    try:
        value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValueError("amount must be a valid Decimal") from exc
    return f"{value:.2f}"


def create_order(*, amount, currency: str, custom_id: str, description: str = "") -> dict:
    payload = {
        "intent": "CAPTURE",
        "purchase_units": [
            {
                "amount": {"currency_code": currency, "value": _format_amount(amount)},
                "custom_id": custom_id,
                "description": description[:127],
            }
        ],
    }
    return _request_json("POST", "/v2/checkout/orders", body=payload)


def get_order(order_id: str) -> dict:
    return _request_json("GET", f"/v2/checkout/orders/{order_id}")


def capture_order(order_id: str) -> dict:
    """
    Capture an approved order. An order captured earlier (by the buyer's
    browser or a previous attempt) is fetched instead.
    """
    try:
        return _request_json("POST", f"/v2/checkout/orders/{order_id}/capture", body={})
    except PayPalError as exc:
        if "ORDER_ALREADY_CAPTURED" not in str(exc):
            raise
    return get_order(order_id)


def approve_url(order_payload: dict) -> str:
    for link in order_payload.get("links") or []:
        if link.get("rel") in {"approve", "payer-action"}:
            return str(link.get("href") or "")
    return ""


def extract_capture(order_payload: dict) -> dict:
    """
    Flatten a checkout order into the fields a deposit needs:
    {order_id, order_status, capture_id, capture_status, amount, currency,
     custom_id, payer_email, payer_id}
    """
    units = order_payload.get("purchase_units") or [{}]
    unit = units[0] if units else {}
    captures = ((unit.get("payments") or {}).get("captures")) or []
    capture = captures[0] if captures else {}
    amount = capture.get("amount") or unit.get("amount") or {}
    payer = order_payload.get("payer") or {}

    try:
        value = Decimal(str(amount.get("value")))
    except (InvalidOperation, ValueError, TypeError):
        value = None

    return {
        "order_id": str(order_payload.get("id") or ""),
        "order_status": str(order_payload.get("status") or "").upper(),
        "capture_id": str(capture.get("id") or ""),
        "capture_status": str(capture.get("status") or "").upper(),
        "amount": value,
        "currency": str(amount.get("currency_code") or "").upper(),
        "custom_id": str(capture.get("custom_id") or unit.get("custom_id") or ""),
        "payer_email": str(payer.get("email_address") or ""),
        "payer_id": str(payer.get("payer_id") or ""),
    }


def verify_webhook_signature(*, headers, event: dict) -> bool:
    """
    Ask PayPal to verify a webhook delivery. Fails closed: a missing
    webhook id or signature header means "not verified".
    """
    webhook_id = (_paypal_cfg().get("WEBHOOK_ID") or "").strip()
    if not webhook_id:
        return False

    body = {field: headers.get(header) for field, header in WEBHOOK_HEADERS.items()}
    if not all(body.values()):
        return False

    body["webhook_id"] = webhook_id
    body["webhook_event"] = event

    parsed = _request_json("POST", "/v1/notifications/verify-webhook-signature", body=body)
    return str(parsed.get("verification_status") or "").upper() == "SUCCESS"
