# siteconfig/services/currency.py

"""
CURRENCY HELPERS

- format_vnd(1500000)          -> "1.500.000 ₫"   (0 decimals, "." grouping)
- format_usd(1234.5)           -> "$1,234.50"
- discount_percentage(p, o)    -> round((o - p) / o * 100), 0 when no discount
- site_currency()              -> SiteSetting "currency" {"code": "VND"|"USD"}, VND when unset
- format_price(amount)         -> format_currency in the site currency
- vnd_per_usd()                -> SiteSetting "usd_rate" {"vnd_per_usd": ...}, default 25000
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from siteconfig.models import SiteSetting

DEFAULT_VND_PER_USD = Decimal("25000")
USD_RATE_KEY = "usd_rate"
CURRENCY_KEY = "currency"
SUPPORTED_CURRENCIES = {"VND", "USD"}


def _dec(value) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None


def _setting_value(key: str, field: str):
    setting = SiteSetting.objects.filter(key=key).first()
    if setting is None or not isinstance(setting.value, dict):
        return None
    return setting.value.get(field)


def format_vnd(amount) -> str:
    value = (_dec(amount) or Decimal("0")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    grouped = f"{abs(int(value)):,}".replace(",", ".")
    return f"{sign}{grouped} ₫"


def format_usd(amount) -> str:
    value = (_dec(amount) or Decimal("0")).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_currency(amount, currency: str = "VND") -> str:
    if (currency or "").upper() == "USD":
        return format_usd(amount)
    return format_vnd(amount)


def discount_percentage(price, original_price) -> int:
    p = _dec(price)
    o = _dec(original_price)
    if p is None or o is None or o <= 0 or o <= p:
        return 0
    pct = (o - p) / o * Decimal("100")
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def price_with_discount(price, original_price=None, currency: str = "VND") -> dict:
    pct = discount_percentage(price, original_price)
    return {
        "formatted_price": format_currency(price, currency),
        "formatted_original_price": format_currency(original_price, currency) if pct else None,
        "discount_percentage": pct,
    }


def site_currency() -> str:
    code = str(_setting_value(CURRENCY_KEY, "code") or "VND").upper()
    return code if code in SUPPORTED_CURRENCIES else "VND"


def format_price(amount) -> str:
    return format_currency(amount, site_currency())


def vnd_per_usd() -> Decimal:
    rate = _dec(_setting_value(USD_RATE_KEY, "vnd_per_usd"))
    return rate if rate and rate > 0 else DEFAULT_VND_PER_USD
