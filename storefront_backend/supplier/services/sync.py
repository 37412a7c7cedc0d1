# supplier/services/sync.py

"""
PRODUCT SYNC

- check_stock(product)     live supplier stock for one supplier-backed product
- sync_product(product)    copy supplier name/stock/price onto the product, log it
- sync_all_products()      sync every active supplier-backed product

Every sync attempt writes a SyncLog row, success or error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.utils import timezone

from catalog.models import Product
from supplier.models import SyncLog
from supplier.services.client import StockInfo, active_api_config, get_stock
from supplier.services.exceptions import SupplierError

logger = logging.getLogger(__name__)


@dataclass
class SyncSummary:
    total: int = 0
    synced: int = 0
    failed: int = 0
    errors: list = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "synced": self.synced,
            "failed": self.failed,
            "errors": self.errors,
        }


def _require_supplier_backed(product: Product) -> str:
    token = (product.kiosk_token or "").strip()
    if not token:
        raise SupplierError(f"Product {product.pk} has no kiosk token")
    return token


def check_stock(product: Product) -> StockInfo:
    kiosk_token = _require_supplier_backed(product)
    config = active_api_config()
    return get_stock(kiosk_token=kiosk_token, user_token=config.user_token)


def _log(product, status: str, message: str, action: str = SyncLog.ACTION_SYNC) -> SyncLog:
    return SyncLog.objects.create(product=product, action=action, status=status, message=message[:2000])


def sync_product(product: Product) -> Product:
    """
    Raises SupplierError after logging it; the caller decides whether a
    single failure aborts a batch.
    """
    try:
        info = check_stock(product)
    except SupplierError as exc:
        _log(product, SyncLog.STATUS_ERROR, f"Failed to fetch product info: {exc}")
        logger.warning("Product sync failed", extra={"product_id": str(product.pk), "error": str(exc)})
        raise

    product.api_name = info.name[:255]
    product.api_stock = info.stock
    product.api_price = info.price
    product.stock = info.stock
    product.last_synced_at = timezone.now()
    product.save(
        update_fields=[
            "api_name",
            "api_stock",
            "api_price",
            "stock",
            "in_stock",
            "last_synced_at",
            "updated_at",
        ]
    )

    _log(
        product,
        SyncLog.STATUS_SUCCESS,
        f"Product updated: Name: {info.name}, Stock: {info.stock}, Price: {info.price}",
    )
    logger.info("Product synced", extra={"product_id": str(product.pk), "stock": info.stock})
    return product


def sync_all_products() -> SyncSummary:
    summary = SyncSummary()
    products = Product.objects.filter(is_active=True).exclude(kiosk_token="").order_by("created_at")

    for product in products:
        summary.total += 1
        try:
            sync_product(product)
            summary.synced += 1
        except SupplierError as exc:
            summary.failed += 1
            summary.errors.append({"product_id": str(product.pk), "error": str(exc)})

    _log(
        None,
        SyncLog.STATUS_SUCCESS if summary.failed == 0 else SyncLog.STATUS_ERROR,
        f"Synced {summary.synced}/{summary.total} products",
        action=SyncLog.ACTION_SYNC_ALL,
    )
    return summary
