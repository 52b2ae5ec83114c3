"""Delivery and Driver repository interfaces."""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.deliveries.models import Delivery, Driver


class IDeliveryRepository(IRepository["Delivery"]):
    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Delivery]:
        """Retrieve a delivery with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def get_by_order(self, order_id: str) -> Optional[Delivery]:
        """The delivery of an order, if one was ever assigned."""

    @abstractmethod
    def get_by_order_for_update(self, order_id: UUID) -> Optional[Delivery]:
        """Locked variant of ``get_by_order``."""

    @abstractmethod
    def list_by_driver(self, driver_id: UUID) -> List[Delivery]: ...

    @abstractmethod
    def list_by_depot(self, depot_id: UUID) -> List[Delivery]: ...

    @abstractmethod
    def list_active(self) -> List[Delivery]: ...

    @abstractmethod
    def count_active_for_driver(self, driver_id: UUID) -> int: ...

    @abstractmethod
    def update_location_for_driver(
        self, driver_id: UUID, status: str, latitude: Decimal, longitude: Decimal
    ) -> int:
        """Lock the driver's deliveries in ``status`` and copy coordinates onto them."""


class IDriverRepository(IRepository["Driver"]):
    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Driver]:
        """Retrieve a driver with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def exists_for_licence_or_user(self, licence_number: str, user_id: int) -> bool: ...

    @abstractmethod
    def list_available(self, depot_id: Optional[UUID] = None) -> List[Driver]: ...

    @abstractmethod
    def stamp_location(
        self, driver: Driver, latitude: Decimal, longitude: Decimal, at: datetime
    ) -> Driver: ...
