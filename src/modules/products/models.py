"""Product reference data.

Business rules implemented:
- SKU must be unique in the system (normalised to upper case).
- Inactive product cannot be sold or added to a cart (enforced at service layer).
- Price must be greater than zero.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).

Quantities are not stored here: stock lives in the inventory ledger,
one ``InventoryRecord`` per (product, depot).
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class Product(SoftDeleteModel):
    """Sellable product.

    ``price`` is the current list price; order lines snapshot it at
    placement time so later changes never alter historical totals.
    """

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
        ]

    @property
    def is_sellable(self) -> bool:
        return self.status == ProductStatus.ACTIVE and not self.is_deleted

    def clean(self) -> None:
        super().clean()
        if self.sku:
            self.sku = self.sku.strip().upper()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)
        if is_new:
            logger.info("product_created", product_id=str(self.id), sku=self.sku)

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"
