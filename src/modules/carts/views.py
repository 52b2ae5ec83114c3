"""Cart API views (the authenticated user's own cart only)."""

from __future__ import annotations

from uuid import UUID

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.carts.dtos import CartItemDTO
from modules.carts.exceptions import CartItemNotFound
from modules.carts.serializers import (
    CartItemInputSerializer,
    CartQuantitySerializer,
    CartSerializer,
)
from modules.carts.services import build_cart_service


class CartViewSet(GenericViewSet):
    serializer_class = CartSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_cart_service()

    def list(self, request: Request) -> Response:
        """GET /api/v1/cart/"""
        cart = self._service.get_cart(request.user.id)
        return Response(CartSerializer(cart).data)

    @action(detail=False, methods=["post"])
    def items(self, request: Request) -> Response:
        """POST /api/v1/cart/items/"""
        serializer = CartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = self._service.add_item(
            request.user.id, CartItemDTO(**serializer.validated_data)
        )
        return Response(CartSerializer(cart).data, status=status.HTTP_201_CREATED)

    @action(
        detail=False,
        methods=["patch", "delete"],
        url_path=r"items/(?P<product_id>[^/.]+)",
    )
    def item(self, request: Request, product_id: str | None = None) -> Response:
        """PATCH/DELETE /api/v1/cart/items/{product_id}/"""
        try:
            product_uuid = UUID(str(product_id))
        except ValueError:
            raise CartItemNotFound(f"Product {product_id} is not in the cart.")

        if request.method == "DELETE":
            cart = self._service.remove_item(request.user.id, product_uuid)
            return Response(CartSerializer(cart).data)

        serializer = CartQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = self._service.update_item(
            request.user.id,
            CartItemDTO(
                product_id=product_uuid,
                quantity=serializer.validated_data["quantity"],
            ),
        )
        return Response(CartSerializer(cart).data)

    @action(detail=False, methods=["post"])
    def clear(self, request: Request) -> Response:
        """POST /api/v1/cart/clear/"""
        cart = self._service.clear_cart(request.user.id)
        return Response(CartSerializer(cart).data)
