"""Inventory ledger service (Use Cases).

Owns per-(product, depot) quantities and the append-only movement trail.
Every public write is atomic: the record update and its ``StockMovement``
commit together or not at all.

Concurrency:
- Records are locked with ``SELECT FOR UPDATE`` before any read-check-write.
- Reservations lock products in product-id order and, per product, all
  depot records in depot-code order, so concurrent reservations and
  transfers acquire locks in the same global order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional
from uuid import UUID

import structlog
from django.db import transaction

from modules.inventory.constants import MOVEMENT_SIGN, MovementKind
from modules.inventory.dtos import AllocationDTO, ReservationLineDTO, TransferResultDTO
from modules.inventory.events import StockBelowReorderLevel
from modules.inventory.exceptions import (
    DepotNotFound,
    InsufficientStock,
    InvalidArgument,
    InventoryRecordNotFound,
    SameDepotTransfer,
)
from modules.inventory.models import StockMovement
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.inventory.models import Depot, InventoryRecord
    from modules.inventory.repositories.interfaces import (
        IDepotRepository,
        IInventoryRepository,
    )
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class InventoryLedger:
    """Application service for stock movements.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        inventory_repository: IInventoryRepository,
        depot_repository: IDepotRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._inventory_repo = inventory_repository
        self._depot_repo = depot_repository
        self._product_repo = product_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def adjust(
        self,
        product_id: UUID,
        depot_id: UUID,
        kind: str,
        quantity: int,
        actor_id: Optional[int] = None,
        reason: str = "",
        reference: str = "",
    ) -> int:
        """Apply one signed movement to a record and return the new quantity.

        ``RECEIVED``, ``RETURNED``, ``TRANSFERRED_IN`` and ``ADJUSTMENT`` add
        ``quantity``; ``SOLD``, ``DAMAGED`` and ``TRANSFERRED_OUT`` subtract it.
        A record is created on its first positive movement.

        Raises:
            InvalidArgument: unknown kind or non-positive quantity.
            ProductNotFound: product does not exist.
            DepotNotFound: depot does not exist.
            InsufficientStock: the movement would take stock below zero.
        """
        self._validate_movement(kind, quantity)

        if MOVEMENT_SIGN[kind] < 0:
            locked = self._inventory_repo.lock_records(product_id, [depot_id])
            if not locked:
                raise InsufficientStock(
                    f"No stock of product {product_id} at depot {depot_id}.",
                    available=0,
                    requested=quantity,
                )
            record = locked[0]
        else:
            self._require_product(product_id)
            self._require_depot(depot_id)
            record = self._inventory_repo.get_or_create_for_update(
                product_id, depot_id
            )

        return self._apply(record, kind, quantity, actor_id, reason, reference)

    @transaction.atomic
    def transfer(
        self,
        product_id: UUID,
        from_depot_id: UUID,
        to_depot_id: UUID,
        quantity: int,
        actor_id: Optional[int] = None,
        reason: Optional[str] = None,
        reference: str = "",
    ) -> TransferResultDTO:
        """Move stock between depots as one unit (two movements).

        Raises:
            SameDepotTransfer: source and destination are equal.
            InvalidArgument: non-positive quantity.
            DepotNotFound: either depot does not exist.
            InsufficientStock: source holds less than ``quantity``.
        """
        if str(from_depot_id) == str(to_depot_id):
            raise SameDepotTransfer("Cannot transfer stock to the same depot.")
        self._validate_movement(MovementKind.TRANSFERRED_OUT, quantity)

        source_depot = self._require_depot(from_depot_id)
        target_depot = self._require_depot(to_depot_id)
        self._require_product(product_id)

        log = logger.bind(
            product_id=str(product_id),
            from_depot=source_depot.code,
            to_depot=target_depot.code,
            quantity=quantity,
        )

        locked = {
            str(r.depot_id): r
            for r in self._inventory_repo.lock_records(
                product_id, [source_depot.id, target_depot.id]
            )
        }
        source = locked.get(str(source_depot.id))
        available = source.quantity_on_hand if source else 0
        if available < quantity:
            log.warning("inventory.transfer_rejected", available=available)
            raise InsufficientStock(
                f"Depot {source_depot.code} holds {available} units, "
                f"requested {quantity}.",
                available=available,
                requested=quantity,
            )

        destination = locked.get(str(target_depot.id))
        if destination is None:
            destination = self._inventory_repo.get_or_create_for_update(
                product_id, target_depot.id
            )

        source_quantity = self._apply(
            source,
            MovementKind.TRANSFERRED_OUT,
            quantity,
            actor_id,
            reason or f"Transfer to {target_depot.name}",
            reference,
        )
        destination_quantity = self._apply(
            destination,
            MovementKind.TRANSFERRED_IN,
            quantity,
            actor_id,
            reason or f"Transfer from {source_depot.name}",
            reference,
        )

        log.info("inventory.transferred")
        return TransferResultDTO(
            product_id=product_id,
            from_depot_id=source_depot.id,
            to_depot_id=target_depot.id,
            quantity=quantity,
            source_quantity=source_quantity,
            destination_quantity=destination_quantity,
        )

    @transaction.atomic
    def reserve_for_order(
        self,
        lines: Iterable[ReservationLineDTO],
        actor_id: Optional[int] = None,
        reference: str = "",
    ) -> List[AllocationDTO]:
        """Decrement stock for every line, splitting across depots if needed.

        Depots are drained greedily in depot-code order, one ``SOLD``
        movement per depot touched.  A shortfall on any line aborts the
        whole reservation: the atomic block rolls back earlier lines.

        Raises:
            InsufficientStock: aggregated stock of a product is below the
                requested quantity.
        """
        log = logger.bind(reference=reference)
        allocations: List[AllocationDTO] = []

        for line in _merge_lines(lines):
            records = self._inventory_repo.lock_records(line.product_id)
            available = sum(r.quantity_on_hand for r in records)
            if available < line.quantity:
                log.warning(
                    "inventory.reservation_rejected",
                    product_id=str(line.product_id),
                    requested=line.quantity,
                    available=available,
                )
                raise InsufficientStock(
                    f"Product {line.product_id}: requested {line.quantity}, "
                    f"available {available}.",
                    available=available,
                    requested=line.quantity,
                )

            remaining = line.quantity
            for record in records:
                if remaining == 0:
                    break
                take = min(record.quantity_on_hand, remaining)
                if take == 0:
                    continue
                self._apply(
                    record,
                    MovementKind.SOLD,
                    take,
                    actor_id,
                    "Order reservation",
                    reference,
                )
                allocations.append(
                    AllocationDTO(
                        product_id=line.product_id,
                        depot_id=record.depot_id,
                        quantity=take,
                    )
                )
                remaining -= take

        log.info("inventory.reserved", allocation_count=len(allocations))
        return allocations

    @transaction.atomic
    def release_for_order(
        self,
        lines: Iterable[ReservationLineDTO],
        actor_id: Optional[int] = None,
        reference: str = "",
    ) -> List[AllocationDTO]:
        """Return reserved quantities to stock with ``RETURNED`` movements.

        Each line goes back to the first depot (depot-code order) currently
        holding stock of the product, or to the product's first record when
        every depot is empty.  Only the total is guaranteed to be restored,
        not the original depot split.

        Raises:
            InventoryRecordNotFound: the product has no record at any depot.
        """
        allocations: List[AllocationDTO] = []
        for line in _merge_lines(lines):
            records = self._inventory_repo.lock_records(line.product_id)
            if not records:
                raise InventoryRecordNotFound(
                    f"No inventory record for product {line.product_id}."
                )
            target = next((r for r in records if r.quantity_on_hand > 0), records[0])
            self._apply(
                target,
                MovementKind.RETURNED,
                line.quantity,
                actor_id,
                "Order cancelled",
                reference,
            )
            allocations.append(
                AllocationDTO(
                    product_id=line.product_id,
                    depot_id=target.depot_id,
                    quantity=line.quantity,
                )
            )

        logger.info("inventory.released", reference=reference, lines=len(allocations))
        return allocations

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def total_stock(self, product_id: UUID) -> int:
        return self._inventory_repo.total_stock(product_id)

    def get_record(self, record_id: str) -> InventoryRecord:
        record = self._inventory_repo.get_by_id(record_id)
        if not record:
            raise InventoryRecordNotFound(f"Inventory record {record_id} not found.")
        return record

    def list_depots(self) -> List[Depot]:
        return self._depot_repo.list({"is_active": True})

    def get_depot(self, depot_id: str) -> Depot:
        """Raises ``DepotNotFound`` for a missing depot."""
        return self._require_depot(depot_id)

    def inventory_for_depot(self, depot_id: str) -> List[InventoryRecord]:
        depot = self._require_depot(depot_id)
        return self._inventory_repo.list_for_depot(depot.id)

    def low_stock(self, depot_id: Optional[str] = None) -> List[InventoryRecord]:
        if depot_id is not None:
            depot_id = self._require_depot(depot_id).id
        return self._inventory_repo.list_low_stock(depot_id)

    def movement_history(self, record_id: str) -> List[StockMovement]:
        record = self.get_record(record_id)
        return self._inventory_repo.movements_for_record(record.id)

    def depot_movements(self, depot_id: str) -> List[StockMovement]:
        depot = self._require_depot(depot_id)
        return self._inventory_repo.movements_for_depot(depot.id)

    def replay(self, record_id: str) -> int:
        """Recompute a record's quantity from its movement trail."""
        record = self.get_record(record_id)
        quantity = 0
        for movement in self._inventory_repo.movements_for_record(record.id):
            quantity += movement.signed_quantity
        return quantity

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply(
        self,
        record: InventoryRecord,
        kind: str,
        quantity: int,
        actor_id: Optional[int],
        reason: str,
        reference: str,
    ) -> int:
        """Update a locked record and append its movement."""
        previous = record.quantity_on_hand
        new = previous + MOVEMENT_SIGN[kind] * quantity
        if new < 0:
            raise InsufficientStock(
                f"Record {record.id} holds {previous} units, cannot remove {quantity}.",
                available=previous,
                requested=quantity,
            )

        record.quantity_on_hand = new
        if previous > record.reorder_level >= new:
            record.add_domain_event(
                StockBelowReorderLevel(
                    aggregate_id=record.id,
                    product_id=str(record.product_id),
                    depot_id=str(record.depot_id),
                    quantity_on_hand=new,
                    reorder_level=record.reorder_level,
                )
            )
        self._inventory_repo.save(record)
        self._inventory_repo.append_movement(
            StockMovement(
                record=record,
                kind=kind,
                quantity=quantity,
                previous_quantity=previous,
                new_quantity=new,
                actor_id=actor_id,
                reason=reason,
                reference=reference,
            )
        )

        logger.info(
            "inventory.adjusted",
            record_id=str(record.id),
            kind=str(kind),
            quantity=quantity,
            previous=previous,
            new=new,
            reference=reference,
        )
        return new

    @staticmethod
    def _validate_movement(kind: str, quantity: int) -> None:
        if kind not in MOVEMENT_SIGN:
            raise InvalidArgument(f"Unknown movement kind {kind!r}.")
        if quantity is None or quantity <= 0:
            raise InvalidArgument("Quantity must be a positive integer.")

    def _require_depot(self, depot_id) -> Depot:
        depot = self._depot_repo.get_by_id(str(depot_id))
        if not depot:
            raise DepotNotFound(f"Depot {depot_id} not found.")
        return depot

    def _require_product(self, product_id) -> None:
        if not self._product_repo.get_by_id(str(product_id)):
            raise ProductNotFound(f"Product {product_id} not found.")


def _merge_lines(lines: Iterable[ReservationLineDTO]) -> List[ReservationLineDTO]:
    """Combine duplicate products and sort by product id (lock order)."""
    totals: dict[UUID, int] = {}
    for line in lines:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
    return [
        ReservationLineDTO(product_id=product_id, quantity=quantity)
        for product_id, quantity in sorted(totals.items(), key=lambda i: str(i[0]))
    ]


def build_inventory_ledger() -> InventoryLedger:
    """Ledger wired with the Django ORM repositories."""
    from modules.inventory.repositories import (
        DepotDjangoRepository,
        InventoryDjangoRepository,
    )
    from modules.products.repositories.django_repository import (
        ProductDjangoRepository,
    )

    return InventoryLedger(
        inventory_repository=InventoryDjangoRepository(),
        depot_repository=DepotDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )
