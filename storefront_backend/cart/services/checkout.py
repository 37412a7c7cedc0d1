# cart/services/checkout.py

"""
CART CHECKOUT

- Every cart line becomes one order; all lines are debited in a single
  reservation transaction (see orders.services.purchase_service).
- Lines are priced from the current Product.price, not the add-time snapshot.
- The cart is emptied once the orders exist; a refused checkout leaves it intact.
"""

from __future__ import annotations

import logging

from cart.models import Cart
from orders.services.exceptions import PurchaseError
from orders.services.purchase_service import PurchaseLine, place_orders

logger = logging.getLogger(__name__)


class EmptyCartError(PurchaseError):
    pass


def get_active_cart(user) -> Cart:
    cart, _ = Cart.objects.get_or_create(user=user, is_active=True)
    return cart


def checkout_cart(
    *,
    user,
    cart: Cart,
    promotion_code: str = "",
    idempotency_key: str = "",
    ip_address: str | None = None,
    user_agent: str = "",
):
    items = list(cart.items.select_related("product").order_by("created_at"))
    if not items:
        raise EmptyCartError("Cart is empty")

    lines = [
        PurchaseLine(product_id=item.product_id, quantity=item.quantity, promotion_code=promotion_code)
        for item in items
    ]

    orders = place_orders(
        user=user,
        lines=lines,
        idempotency_key=idempotency_key,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    cart.items.all().delete()
    logger.info("Cart checked out", extra={"cart_id": str(cart.id), "orders": len(orders)})
    return orders
