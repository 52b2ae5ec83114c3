"""Depot, InventoryRecord and StockMovement models.

Ledger rules:
- One ``InventoryRecord`` per (product, depot); ``quantity_on_hand`` never
  goes below zero (service check under row lock + database constraint).
- Every change of ``quantity_on_hand`` is paired with exactly one
  ``StockMovement`` written in the same transaction.
- ``StockMovement`` rows are append-only: ``new_quantity`` equals
  ``previous_quantity`` plus or minus ``quantity`` per ``MOVEMENT_SIGN``.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import AppendOnlyModel, BaseModel
from modules.inventory.constants import (
    DEFAULT_REORDER_LEVEL,
    MOVEMENT_SIGN,
    MovementKind,
    StockStatus,
)
from shared.domain.events import DomainEventMixin


class Depot(BaseModel):
    """Regional stock-holding location (RDC)."""

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)
    region = models.CharField(max_length=100, blank=True, default="")
    address = models.TextField(blank=True, default="")
    contact_number = models.CharField(max_length=20, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "depots"
        ordering = ["code"]

    def save(self, *args, **kwargs) -> None:
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class InventoryRecord(DomainEventMixin, BaseModel):
    """Quantity on hand of one product at one depot."""

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="inventory_records",
    )
    depot = models.ForeignKey(
        "inventory.Depot",
        on_delete=models.PROTECT,
        related_name="inventory_records",
    )
    quantity_on_hand = models.PositiveIntegerField(default=0)
    reorder_level = models.PositiveIntegerField(default=DEFAULT_REORDER_LEVEL)

    class Meta:
        db_table = "inventory_records"
        ordering = ["depot__code"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "depot"],
                name="inventory_records_product_depot_uniq",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity_on_hand__gte=0),
                name="inventory_records_quantity_non_negative",
            ),
        ]

    @property
    def stock_status(self) -> str:
        if self.quantity_on_hand == 0:
            return StockStatus.OUT_OF_STOCK
        if self.quantity_on_hand <= self.reorder_level:
            return StockStatus.LOW_STOCK
        return StockStatus.OK

    def __str__(self) -> str:
        return f"{self.product_id}@{self.depot_id}: {self.quantity_on_hand}"


class StockMovement(AppendOnlyModel):
    """Immutable audit row for one quantity change of an ``InventoryRecord``.

    ``actor`` is ``None`` for system-driven movements.  ``reference`` holds
    the business document that caused the movement (order number,
    transfer note...).
    """

    record = models.ForeignKey(
        "inventory.InventoryRecord",
        on_delete=models.PROTECT,
        related_name="movements",
    )
    kind = models.CharField(max_length=20, choices=MovementKind.choices)
    quantity = models.PositiveIntegerField()
    previous_quantity = models.PositiveIntegerField()
    new_quantity = models.PositiveIntegerField()
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )
    reason = models.CharField(max_length=255, blank=True, default="")
    reference = models.CharField(max_length=100, blank=True, default="")

    class Meta:
        db_table = "stock_movements"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["record", "created_at"], name="movements_record_idx"),
            models.Index(fields=["reference"], name="movements_reference_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="stock_movements_quantity_positive",
            ),
        ]

    @property
    def signed_quantity(self) -> int:
        return MOVEMENT_SIGN[self.kind] * self.quantity

    def __str__(self) -> str:
        return (
            f"{self.kind} {self.quantity} "
            f"({self.previous_quantity} -> {self.new_quantity})"
        )
