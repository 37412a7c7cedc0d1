# cart/urls.py

from django.urls import path

from cart.views import ActiveCartView, AddCartItemView, CartItemView, CheckoutCartView, ClearCartView

app_name = "cart"

urlpatterns = [
    path("", ActiveCartView.as_view(), name="active-cart"),
    path("items/", AddCartItemView.as_view(), name="add-item"),
    path("items/<uuid:item_id>/", CartItemView.as_view(), name="item"),
    path("clear/", ClearCartView.as_view(), name="clear"),
    path("checkout/", CheckoutCartView.as_view(), name="checkout"),
]
