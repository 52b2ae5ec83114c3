"""Driver and Delivery models.

A delivery is created lazily when an order is first assigned and is
one-to-one with its order.  Coordinates are stored as given: no geocoding
or routing happens here.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel
from modules.deliveries.constants import (
    ACTIVE_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    DeliveryStatus,
    DriverStatus,
)
from shared.domain.events import DomainEventMixin


def _coordinate(**kwargs) -> models.DecimalField:
    return models.DecimalField(
        max_digits=10, decimal_places=7, null=True, blank=True, **kwargs
    )


class Driver(BaseModel):
    user: models.OneToOneField = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="driver",
    )
    depot: models.ForeignKey = models.ForeignKey(
        "inventory.Depot",
        on_delete=models.PROTECT,
        related_name="drivers",
    )
    licence_number: models.CharField = models.CharField(max_length=50, unique=True)
    vehicle_number: models.CharField = models.CharField(max_length=20)
    vehicle_type: models.CharField = models.CharField(
        max_length=50, blank=True, default=""
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=DriverStatus.choices,
        default=DriverStatus.AVAILABLE,
    )
    current_latitude: models.DecimalField = _coordinate()
    current_longitude: models.DecimalField = _coordinate()
    last_location_update: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )
    is_active: models.BooleanField = models.BooleanField(default=True)

    class Meta:
        db_table = "drivers"
        ordering = ["licence_number"]
        indexes = [
            models.Index(fields=["depot", "status"], name="drivers_depot_status_idx"),
        ]

    @property
    def is_assignable(self) -> bool:
        return self.is_active and self.status == DriverStatus.AVAILABLE

    def __str__(self) -> str:
        return f"{self.licence_number} ({self.status})"


class Delivery(DomainEventMixin, BaseModel):
    order: models.OneToOneField = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="delivery",
    )
    driver: models.ForeignKey = models.ForeignKey(
        "deliveries.Driver",
        on_delete=models.PROTECT,
        related_name="deliveries",
        null=True,
        blank=True,
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        default=DeliveryStatus.PENDING_ASSIGNMENT,
    )
    assigned_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    pickup_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    delivered_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    current_latitude: models.DecimalField = _coordinate()
    current_longitude: models.DecimalField = _coordinate()
    destination_latitude: models.DecimalField = _coordinate()
    destination_longitude: models.DecimalField = _coordinate()
    estimated_distance_km: models.DecimalField = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    notes: models.TextField = models.TextField(blank=True, default="")
    proof_of_delivery_url: models.URLField = models.URLField(blank=True, default="")

    class Meta:
        db_table = "deliveries"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status"], name="deliveries_status_idx"),
            models.Index(fields=["driver", "status"], name="deliveries_driver_idx"),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATES

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def __str__(self) -> str:
        return f"Delivery {self.order_id} ({self.status})"
