"""Product domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import BadRequest, NotFound


class ProductNotFound(NotFound):
    """The requested product does not exist or has been soft-deleted."""


class InactiveProduct(BadRequest):
    """The product exists but cannot be sold."""

    default_code = "inactive_product"
