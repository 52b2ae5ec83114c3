"""Cart domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import BadRequest, NotFound


class CartItemNotFound(NotFound):
    """The product is not in the user's cart."""


class EmptyCart(BadRequest):
    """An order was requested from a cart with no items."""

    default_code = "empty_cart"
