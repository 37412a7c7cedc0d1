from .api import (
    ActiveCartView,
    AddCartItemView,
    CartItemView,
    CheckoutCartView,
    ClearCartView,
)

__all__ = [
    "ActiveCartView",
    "AddCartItemView",
    "CartItemView",
    "ClearCartView",
    "CheckoutCartView",
]
