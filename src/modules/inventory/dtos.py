"""Inventory DTOs for the Service Layer.

Immutable Pydantic v2 contracts between the API layer and
``InventoryLedger``.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class ReservationLineDTO(BaseModel):
    """One product/quantity pair to reserve or release."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class AllocationDTO(BaseModel):
    """Quantity taken from one depot while reserving a line."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    depot_id: UUID
    quantity: int


class TransferResultDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    from_depot_id: UUID
    to_depot_id: UUID
    quantity: int
    source_quantity: int
    destination_quantity: int
