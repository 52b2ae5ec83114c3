"""Delivery DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class AssignDeliveryDTO(BaseModel):
    """Assignment request; destination falls back to the configured default."""

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    driver_id: UUID
    destination_latitude: Optional[Decimal] = None
    destination_longitude: Optional[Decimal] = None
    estimated_distance_km: Optional[Decimal] = None
    notes: str = ""

    @model_validator(mode="after")
    def coordinates_come_in_pairs(self) -> AssignDeliveryDTO:
        if (self.destination_latitude is None) != (self.destination_longitude is None):
            raise ValueError("Destination latitude and longitude go together.")
        return self


class CreateDriverDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    depot_id: UUID
    licence_number: str
    vehicle_number: str
    vehicle_type: str = ""

    @field_validator("licence_number", "vehicle_number")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field must not be blank.")
        return v.strip().upper()


class LocationDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: Decimal
    longitude: Decimal

    @field_validator("latitude")
    @classmethod
    def latitude_in_range(cls, v: Decimal) -> Decimal:
        if not Decimal("-90") <= v <= Decimal("90"):
            raise ValueError("Latitude must be between -90 and 90.")
        return v

    @field_validator("longitude")
    @classmethod
    def longitude_in_range(cls, v: Decimal) -> Decimal:
        if not Decimal("-180") <= v <= Decimal("180"):
            raise ValueError("Longitude must be between -180 and 180.")
        return v
