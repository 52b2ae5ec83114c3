"""Cart repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.carts.models import Cart, CartItem


class ICartRepository(IRepository["Cart"]):
    @abstractmethod
    def get_for_user(self, user_id: int) -> Optional[Cart]:
        """The user's cart with items and products, ``None`` if never created."""

    @abstractmethod
    def get_or_create_for_user(self, user_id: int) -> Cart:
        """The user's cart, created empty on first use."""

    @abstractmethod
    def get_item(self, cart: Cart, product_id: UUID) -> Optional[CartItem]:
        """The cart line for a product."""

    @abstractmethod
    def save_item(self, item: CartItem) -> CartItem:
        """Persist a cart line."""

    @abstractmethod
    def remove_item(self, item: CartItem) -> None:
        """Delete a cart line."""

    @abstractmethod
    def clear(self, cart: Cart) -> int:
        """Delete every line of the cart and return how many were removed."""
