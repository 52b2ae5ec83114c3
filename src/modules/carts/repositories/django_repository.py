"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError

from modules.carts.models import Cart, CartItem
from modules.carts.repositories.interfaces import ICartRepository

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    def get_by_id(self, id: str) -> Optional[Cart]:
        try:
            return Cart.objects.prefetch_related("items__product").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Cart]:
        queryset = Cart.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def save(self, entity: Cart) -> Cart:
        entity.save()
        return entity

    def get_for_user(self, user_id: int) -> Optional[Cart]:
        return (
            Cart.objects.prefetch_related("items__product")
            .filter(user_id=user_id)
            .first()
        )

    def get_or_create_for_user(self, user_id: int) -> Cart:
        cart, created = Cart.objects.get_or_create(user_id=user_id)
        if created:
            logger.info("cart.created", cart_id=str(cart.id), user_id=user_id)
        return cart

    def get_item(self, cart: Cart, product_id: UUID) -> Optional[CartItem]:
        try:
            return CartItem.objects.filter(cart=cart, product_id=product_id).first()
        except (ValueError, ValidationError):
            return None

    def save_item(self, item: CartItem) -> CartItem:
        item.save()
        return item

    def remove_item(self, item: CartItem) -> None:
        item.delete()

    def clear(self, cart: Cart) -> int:
        count, _ = CartItem.objects.filter(cart=cart).delete()
        logger.info("cart.cleared", cart_id=str(cart.id), removed=count)
        return count
