# cart/views/api.py

"""
CART API VIEWS

- GET    /api/cart/                     active cart (created on demand)
- POST   /api/cart/items/               add product (increments existing line)
- PATCH  /api/cart/items/<item_id>/     set quantity
- DELETE /api/cart/items/<item_id>/     remove line
- DELETE /api/cart/clear/               remove every line
- POST   /api/cart/checkout/            buy everything with the balance (Idempotency-Key supported)

Money is server-owned: unit_price is snapshotted from Product.price on add.
"""

from __future__ import annotations

from django.db import transaction
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from cart.models import CartItem
from cart.serializers import (
    AddCartItemInputSerializer,
    CartSerializer,
    CheckoutInputSerializer,
    UpdateCartItemInputSerializer,
)
from cart.services.checkout import EmptyCartError, checkout_cart, get_active_cart
from catalog.models import Product
from orders.serializers import OrderSerializer
from orders.services.exceptions import PurchaseError
from orders.views.purchase import IDEMPOTENCY_HEADER, PurchaseThrottle, error_response, purchase_error_response
from security.services.events import client_ip, client_user_agent
from wallet.services.exceptions import WalletError
from wallet.services.idempotency import process_with_idempotency


class ActiveCartView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: CartSerializer})
    def get(self, request):
        cart = get_active_cart(request.user)
        return Response(CartSerializer(cart).data)


class AddCartItemView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        request=AddCartItemInputSerializer,
        responses={200: CartSerializer},
        description="Add a product to the cart (increments quantity if already present)",
    )
    @transaction.atomic
    def post(self, request):
        serializer = AddCartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        product = get_object_or_404(Product, id=serializer.validated_data["product_id"], is_active=True)
        quantity = int(serializer.validated_data["quantity"])

        cart = get_active_cart(request.user)
        item, created = CartItem.objects.get_or_create(
            cart=cart,
            product=product,
            defaults={"quantity": quantity, "unit_price": product.price},
        )
        if not created:
            item.quantity = int(item.quantity or 0) + quantity
            item.unit_price = product.price
            item.save()

        if item.quantity > product.stock:
            transaction.set_rollback(True)
            return error_response(
                code="OUT_OF_STOCK",
                message=f"Only {product.stock} left for {product.title}",
                http_status=status.HTTP_409_CONFLICT,
            )

        return Response(CartSerializer(cart).data)


class CartItemView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=UpdateCartItemInputSerializer, responses={200: CartSerializer})
    @transaction.atomic
    def patch(self, request, item_id):
        serializer = UpdateCartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        cart = get_active_cart(request.user)
        item = get_object_or_404(CartItem.objects.select_related("product"), id=item_id, cart=cart)

        quantity = int(serializer.validated_data["quantity"])
        if quantity > item.product.stock:
            return error_response(
                code="OUT_OF_STOCK",
                message=f"Only {item.product.stock} left for {item.product.title}",
                http_status=status.HTTP_409_CONFLICT,
            )

        item.quantity = quantity
        item.save()
        return Response(CartSerializer(cart).data)

    @extend_schema(responses={200: CartSerializer})
    @transaction.atomic
    def delete(self, request, item_id):
        cart = get_active_cart(request.user)
        item = get_object_or_404(CartItem, id=item_id, cart=cart)
        item.delete()
        return Response(CartSerializer(cart).data)


class ClearCartView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: CartSerializer})
    @transaction.atomic
    def delete(self, request):
        cart = get_active_cart(request.user)
        cart.items.all().delete()
        return Response(CartSerializer(cart).data)


class CheckoutCartView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [PurchaseThrottle]

    @extend_schema(
        request=CheckoutInputSerializer,
        responses={201: OrderSerializer(many=True)},
        parameters=[
            OpenApiParameter(name=IDEMPOTENCY_HEADER, type=str, location=OpenApiParameter.HEADER, required=False)
        ],
    )
    def post(self, request):
        serializer = CheckoutInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        key = (request.headers.get(IDEMPOTENCY_HEADER) or "").strip()

        def run():
            orders = checkout_cart(
                user=request.user,
                cart=get_active_cart(request.user),
                promotion_code=serializer.validated_data.get("promotion_code", ""),
                idempotency_key=key,
                ip_address=client_ip(request),
                user_agent=client_user_agent(request),
            )
            return {"orders": OrderSerializer(orders, many=True).data}

        try:
            outcome = process_with_idempotency(key=key, request_type="checkout", user=request.user, fn=run)
        except EmptyCartError as exc:
            return error_response(code="EMPTY_CART", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)
        except (PurchaseError, WalletError) as exc:
            return purchase_error_response(exc)

        if not outcome.is_new:
            return Response(outcome.result, status=status.HTTP_200_OK, headers={"Idempotent-Replayed": "true"})
        return Response(outcome.result, status=status.HTTP_201_CREATED)
