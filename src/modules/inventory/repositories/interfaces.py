"""Inventory repository interfaces.

``IInventoryRepository`` covers the ledger aggregate (records and their
movements); ``IDepotRepository`` the depot reference data.  Every
``lock_*`` / ``*_for_update`` method must be called inside a transaction.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Iterable, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.inventory.models import Depot, InventoryRecord, StockMovement


class IDepotRepository(IRepository["Depot"]):
    @abstractmethod
    def get_by_code(self, code: str) -> Optional[Depot]:
        """Retrieve a depot by its code."""


class IInventoryRepository(IRepository["InventoryRecord"]):
    """Repository contract for inventory records and stock movements."""

    @abstractmethod
    def get_record(self, product_id: UUID, depot_id: UUID) -> Optional[InventoryRecord]:
        """Retrieve the record for a (product, depot) pair without locking."""

    @abstractmethod
    def lock_records(
        self, product_id: UUID, depot_ids: Optional[Iterable[UUID]] = None
    ) -> List[InventoryRecord]:
        """Lock the product's records (optionally restricted to depots).

        Rows are locked and returned in depot-code order.
        """

    @abstractmethod
    def get_or_create_for_update(
        self, product_id: UUID, depot_id: UUID
    ) -> InventoryRecord:
        """Return the locked record for the pair, creating it at zero if absent."""

    @abstractmethod
    def total_stock(self, product_id: UUID) -> int:
        """Sum of ``quantity_on_hand`` across depots (0 when none)."""

    @abstractmethod
    def list_for_depot(self, depot_id: UUID) -> List[InventoryRecord]:
        """Records held at a depot with their products."""

    @abstractmethod
    def list_low_stock(self, depot_id: Optional[UUID] = None) -> List[InventoryRecord]:
        """Records whose quantity is at or below their reorder level."""

    @abstractmethod
    def append_movement(self, movement: StockMovement) -> StockMovement:
        """Persist a new movement row."""

    @abstractmethod
    def movements_for_record(self, record_id: UUID) -> List[StockMovement]:
        """Movements of a record in (created_at, id) order."""

    @abstractmethod
    def movements_for_depot(self, depot_id: UUID) -> List[StockMovement]:
        """Movements of all records held at a depot, newest first."""
