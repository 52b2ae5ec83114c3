"""Cart service: the line-item source for order placement."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from django.db import transaction

from modules.carts.exceptions import CartItemNotFound
from modules.carts.models import CartItem
from modules.inventory.exceptions import InsufficientStock
from modules.products.exceptions import InactiveProduct, ProductNotFound

if TYPE_CHECKING:
    from modules.carts.dtos import CartItemDTO
    from modules.carts.models import Cart
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.inventory.services import InventoryLedger
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CartService:
    def __init__(
        self,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
        inventory_ledger: InventoryLedger,
    ) -> None:
        self._cart_repo = cart_repository
        self._product_repo = product_repository
        self._ledger = inventory_ledger

    def get_cart(self, user_id: int) -> Cart:
        return self._cart_repo.get_or_create_for_user(user_id)

    @transaction.atomic
    def add_item(self, user_id: int, dto: CartItemDTO) -> Cart:
        """Add ``dto.quantity`` of a product, merging with an existing line.

        Raises:
            ProductNotFound: product does not exist.
            InactiveProduct: product cannot be sold.
            InsufficientStock: total stock is below the cumulative quantity.
        """
        cart = self._cart_repo.get_or_create_for_user(user_id)
        item = self._cart_repo.get_item(cart, dto.product_id)
        quantity = dto.quantity + (item.quantity if item else 0)
        self._check_availability(dto.product_id, quantity)

        if item is None:
            item = CartItem(cart=cart, product_id=dto.product_id, quantity=quantity)
        else:
            item.quantity = quantity
        self._cart_repo.save_item(item)

        logger.info(
            "cart.item_added",
            user_id=user_id,
            product_id=str(dto.product_id),
            quantity=quantity,
        )
        return self._cart_repo.get_for_user(user_id)

    @transaction.atomic
    def update_item(self, user_id: int, dto: CartItemDTO) -> Cart:
        """Replace the quantity of an existing line.

        Raises:
            CartItemNotFound: product is not in the cart.
            InsufficientStock: total stock is below the new quantity.
        """
        cart = self._cart_repo.get_or_create_for_user(user_id)
        item = self._cart_repo.get_item(cart, dto.product_id)
        if item is None:
            raise CartItemNotFound(f"Product {dto.product_id} is not in the cart.")
        self._check_availability(dto.product_id, dto.quantity)

        item.quantity = dto.quantity
        self._cart_repo.save_item(item)
        logger.info(
            "cart.item_updated",
            user_id=user_id,
            product_id=str(dto.product_id),
            quantity=dto.quantity,
        )
        return self._cart_repo.get_for_user(user_id)

    @transaction.atomic
    def remove_item(self, user_id: int, product_id: UUID) -> Cart:
        cart = self._cart_repo.get_or_create_for_user(user_id)
        item = self._cart_repo.get_item(cart, product_id)
        if item is None:
            raise CartItemNotFound(f"Product {product_id} is not in the cart.")
        self._cart_repo.remove_item(item)
        logger.info("cart.item_removed", user_id=user_id, product_id=str(product_id))
        return self._cart_repo.get_for_user(user_id)

    @transaction.atomic
    def clear_cart(self, user_id: int) -> Cart:
        cart = self._cart_repo.get_or_create_for_user(user_id)
        self._cart_repo.clear(cart)
        return self._cart_repo.get_for_user(user_id)

    def _check_availability(self, product_id: UUID, quantity: int) -> None:
        product = self._product_repo.get_by_id(str(product_id))
        if not product:
            raise ProductNotFound(f"Product {product_id} not found.")
        if not product.is_sellable:
            raise InactiveProduct(f"Product {product.sku} is not available.")
        available = self._ledger.total_stock(product.id)
        if available < quantity:
            raise InsufficientStock(
                f"Product {product.sku}: requested {quantity}, available {available}.",
                available=available,
                requested=quantity,
            )


def build_cart_service() -> CartService:
    from modules.carts.repositories import CartDjangoRepository
    from modules.inventory.services import build_inventory_ledger
    from modules.products.repositories.django_repository import (
        ProductDjangoRepository,
    )

    return CartService(
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        inventory_ledger=build_inventory_ledger(),
    )
