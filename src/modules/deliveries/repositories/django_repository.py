"""Django ORM implementations of the Delivery and Driver repositories."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from modules.core.outbox import record_domain_events
from modules.deliveries.constants import ACTIVE_STATES, DriverStatus
from modules.deliveries.models import Delivery, Driver
from modules.deliveries.repositories.interfaces import (
    IDeliveryRepository,
    IDriverRepository,
)

logger = structlog.get_logger(__name__)


class DeliveryDjangoRepository(IDeliveryRepository):
    def _queryset(self):
        return Delivery.objects.select_related("order", "driver", "driver__user")

    def get_by_id(self, id: str) -> Optional[Delivery]:
        try:
            return self._queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Delivery]:
        try:
            return (
                Delivery.objects.select_for_update(of=("self",))
                .select_related("order")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_order(self, order_id: str) -> Optional[Delivery]:
        try:
            return self._queryset().filter(order_id=order_id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_order_for_update(self, order_id: UUID) -> Optional[Delivery]:
        return Delivery.objects.select_for_update().filter(order_id=order_id).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Delivery]:
        queryset = self._queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_by_driver(self, driver_id: UUID) -> List[Delivery]:
        return self.list({"driver_id": driver_id})

    def list_by_depot(self, depot_id: UUID) -> List[Delivery]:
        return self.list({"order__depot_id": depot_id})

    def list_active(self) -> List[Delivery]:
        return self.list({"status__in": ACTIVE_STATES})

    def count_active_for_driver(self, driver_id: UUID) -> int:
        return Delivery.objects.filter(
            driver_id=driver_id, status__in=ACTIVE_STATES
        ).count()

    def update_location_for_driver(
        self, driver_id: UUID, status: str, latitude: Decimal, longitude: Decimal
    ) -> int:
        locked_ids = list(
            Delivery.objects.select_for_update()
            .filter(driver_id=driver_id, status=status)
            .order_by("id")
            .values_list("id", flat=True)
        )
        return Delivery.objects.filter(id__in=locked_ids).update(
            current_latitude=latitude,
            current_longitude=longitude,
            updated_at=timezone.now(),
        )

    @transaction.atomic
    def save(self, entity: Delivery) -> Delivery:
        """Persist a delivery and write its domain events to the outbox."""
        entity.save()
        event_count = record_domain_events(entity, topic="deliveries")
        logger.info(
            "delivery.saved",
            delivery_id=str(entity.id),
            status=entity.status,
            event_count=event_count,
        )
        return entity


class DriverDjangoRepository(IDriverRepository):
    def get_by_id(self, id: str) -> Optional[Driver]:
        try:
            return (
                Driver.objects.select_related("user", "depot").filter(id=id).first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Driver]:
        try:
            return Driver.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def exists_for_licence_or_user(self, licence_number: str, user_id: int) -> bool:
        return Driver.objects.filter(
            Q(licence_number__iexact=licence_number) | Q(user_id=user_id)
        ).exists()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Driver]:
        queryset = Driver.objects.select_related("user", "depot")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_available(self, depot_id: Optional[UUID] = None) -> List[Driver]:
        filters: Dict[str, Any] = {"is_active": True, "status": DriverStatus.AVAILABLE}
        if depot_id is not None:
            filters["depot_id"] = depot_id
        return self.list(filters)

    def stamp_location(
        self, driver: Driver, latitude: Decimal, longitude: Decimal, at: datetime
    ) -> Driver:
        driver.current_latitude = latitude
        driver.current_longitude = longitude
        driver.last_location_update = at
        driver.save(
            update_fields=[
                "current_latitude",
                "current_longitude",
                "last_location_update",
                "updated_at",
            ]
        )
        return driver

    def save(self, entity: Driver) -> Driver:
        entity.save()
        return entity
