"""Django ORM implementations of the inventory repositories."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, Sum
from django.db.models.functions import Coalesce

from modules.core.outbox import record_domain_events
from modules.inventory.models import Depot, InventoryRecord, StockMovement
from modules.inventory.repositories.interfaces import (
    IDepotRepository,
    IInventoryRepository,
)

logger = structlog.get_logger(__name__)


class DepotDjangoRepository(IDepotRepository):
    def get_by_id(self, id: str) -> Optional[Depot]:
        try:
            return Depot.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Depot]:
        queryset = Depot.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def save(self, entity: Depot) -> Depot:
        entity.save()
        return entity

    def get_by_code(self, code: str) -> Optional[Depot]:
        return Depot.objects.filter(code=code.strip().upper()).first()


class InventoryDjangoRepository(IInventoryRepository):
    """Ledger repository backed by Django ORM.

    Locks use ``select_for_update()`` ordered by depot code, which gives
    every caller the same acquisition order for a product's rows.
    """

    def get_by_id(self, id: str) -> Optional[InventoryRecord]:
        try:
            return (
                InventoryRecord.objects.select_related("product", "depot")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[InventoryRecord]:
        queryset = InventoryRecord.objects.select_related("product", "depot")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: InventoryRecord) -> InventoryRecord:
        """Persist the record and its collected domain events."""
        entity.save()
        record_domain_events(entity, topic="inventory")
        return entity

    def get_record(self, product_id: UUID, depot_id: UUID) -> Optional[InventoryRecord]:
        return InventoryRecord.objects.filter(
            product_id=product_id, depot_id=depot_id
        ).first()

    def lock_records(
        self, product_id: UUID, depot_ids: Optional[Iterable[UUID]] = None
    ) -> List[InventoryRecord]:
        queryset = (
            InventoryRecord.objects.select_for_update(of=("self",))
            .filter(product_id=product_id)
            .select_related("depot")
            .order_by("depot__code")
        )
        if depot_ids is not None:
            queryset = queryset.filter(depot_id__in=list(depot_ids))
        return list(queryset)

    def get_or_create_for_update(
        self, product_id: UUID, depot_id: UUID
    ) -> InventoryRecord:
        record, created = InventoryRecord.objects.get_or_create(
            product_id=product_id, depot_id=depot_id
        )
        if created:
            logger.info(
                "inventory.record_created",
                record_id=str(record.id),
                product_id=str(product_id),
                depot_id=str(depot_id),
            )
        return (
            InventoryRecord.objects.select_for_update(of=("self",))
            .select_related("depot")
            .get(id=record.id)
        )

    def total_stock(self, product_id: UUID) -> int:
        try:
            queryset = InventoryRecord.objects.filter(product_id=product_id)
            return queryset.aggregate(total=Coalesce(Sum("quantity_on_hand"), 0))[
                "total"
            ]
        except (ValueError, ValidationError):
            return 0

    def list_for_depot(self, depot_id: UUID) -> List[InventoryRecord]:
        return list(
            InventoryRecord.objects.filter(depot_id=depot_id)
            .select_related("product", "depot")
            .order_by("product__name")
        )

    def list_low_stock(self, depot_id: Optional[UUID] = None) -> List[InventoryRecord]:
        queryset = InventoryRecord.objects.filter(
            quantity_on_hand__lte=F("reorder_level")
        ).select_related("product", "depot")
        if depot_id is not None:
            queryset = queryset.filter(depot_id=depot_id)
        return list(queryset.order_by("quantity_on_hand", "depot__code"))

    def append_movement(self, movement: StockMovement) -> StockMovement:
        movement.save()
        return movement

    def movements_for_record(self, record_id: UUID) -> List[StockMovement]:
        return list(
            StockMovement.objects.filter(record_id=record_id).order_by(
                "created_at", "id"
            )
        )

    def movements_for_depot(self, depot_id: UUID) -> List[StockMovement]:
        return list(
            StockMovement.objects.filter(record__depot_id=depot_id)
            .select_related("record__product")
            .order_by("-created_at", "-id")
        )
