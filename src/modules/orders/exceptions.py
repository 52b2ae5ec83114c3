"""Order domain exceptions.

Raised by the Service Layer when business rules are violated and
rendered by ``api_exception_handler``.
"""

from __future__ import annotations

from modules.carts.exceptions import EmptyCart
from modules.core.exceptions import BadRequest, InvalidState, NotFound
from modules.inventory.exceptions import InsufficientStock
from modules.products.exceptions import InactiveProduct, ProductNotFound

__all__ = [
    "EmptyCart",
    "InactiveProduct",
    "InsufficientStock",
    "InvalidOrderStatus",
    "OrderNotFound",
    "OrderNotOwned",
    "ProductNotFound",
]


class OrderNotFound(NotFound):
    """The requested order does not exist."""


class InvalidOrderStatus(InvalidState):
    """An invalid status transition was attempted."""

    default_code = "invalid_order_status"


class OrderNotOwned(BadRequest):
    """The order belongs to another user."""

    default_code = "order_not_owned"
