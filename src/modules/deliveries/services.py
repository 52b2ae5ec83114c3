"""Delivery dispatcher service layer (Use Cases).

Assigns confirmed orders to drivers and walks deliveries through their
lifecycle, keeping order status and driver availability in step.

Business rules enforced:
- Only CONFIRMED orders can be assigned, only to active AVAILABLE drivers.
- Transitions follow ``VALID_TRANSITIONS``; the staff setter may bypass
  the table when ``DELIVERY_STATUS_OVERRIDE_ENABLED`` is set.
- Side effects are attached to the target status.

Locks are taken order, then delivery, then driver.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Dict, List, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.core.exceptions import InvalidArgument
from modules.deliveries.constants import DeliveryStatus, DriverStatus
from modules.deliveries.events import (
    DeliveryAssigned,
    DeliveryCompleted,
    DeliveryFailed,
)
from modules.deliveries.exceptions import (
    DeliveryNotFound,
    DriverAlreadyExists,
    DriverBusy,
    DriverNotFound,
    DriverUnavailable,
    InvalidDeliveryTransition,
)
from modules.deliveries.models import Delivery, Driver
from modules.inventory.exceptions import DepotNotFound
from modules.orders.constants import OrderStatus
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound

if TYPE_CHECKING:
    from modules.deliveries.dtos import (
        AssignDeliveryDTO,
        CreateDriverDTO,
        LocationDTO,
    )
    from modules.deliveries.repositories.interfaces import (
        IDeliveryRepository,
        IDriverRepository,
    )
    from modules.inventory.repositories.interfaces import IDepotRepository
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.services import OrderService

logger = structlog.get_logger(__name__)

SideEffect = Callable[[Delivery, str], None]


class DeliveryService:
    """Application service for Delivery use-cases.

    Receives repositories and the order workflow via constructor
    injection (DIP).
    """

    def __init__(
        self,
        delivery_repository: IDeliveryRepository,
        driver_repository: IDriverRepository,
        order_repository: IOrderRepository,
        order_service: OrderService,
    ) -> None:
        self._delivery_repo = delivery_repository
        self._driver_repo = driver_repository
        self._order_repo = order_repository
        self._order_service = order_service
        self._side_effects: Dict[str, SideEffect] = {
            DeliveryStatus.ASSIGNED: self._on_assigned,
            DeliveryStatus.PICKED_UP: self._on_picked_up,
            DeliveryStatus.IN_TRANSIT: self._on_in_transit,
            DeliveryStatus.DELIVERED: self._on_delivered,
            DeliveryStatus.FAILED: self._on_failed,
            DeliveryStatus.RETURNED: self._on_failed,
        }

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def assign(self, dto: AssignDeliveryDTO) -> Delivery:
        """Assign a confirmed order to an available driver.

        Reuses the order's delivery when one exists.  The destination is
        the given one or ``DELIVERY_DEFAULT_DESTINATION``.  The driver goes
        ON_DELIVERY and the order READY_FOR_DELIVERY.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: order is not CONFIRMED.
            DriverNotFound: driver does not exist.
            DriverUnavailable: driver is inactive or not AVAILABLE.
        """
        log = logger.bind(order_id=str(dto.order_id), driver_id=str(dto.driver_id))

        order = self._order_repo.get_for_update(str(dto.order_id))
        if not order:
            raise OrderNotFound(f"Order {dto.order_id} not found.")
        if order.status != OrderStatus.CONFIRMED:
            raise InvalidOrderStatus(
                f"Order must be CONFIRMED before assignment (status is {order.status})."
            )

        delivery = self._delivery_repo.get_by_order_for_update(order.id)
        if delivery is None:
            delivery = Delivery(order=order, status=DeliveryStatus.PENDING_ASSIGNMENT)

        driver = self._driver_repo.get_for_update(str(dto.driver_id))
        if not driver:
            raise DriverNotFound(f"Driver {dto.driver_id} not found.")
        if not driver.is_assignable:
            log.warning("delivery.driver_unavailable", driver_status=driver.status)
            raise DriverUnavailable(f"Driver {driver.licence_number} is not available.")

        default_lat, default_lng = settings.DELIVERY_DEFAULT_DESTINATION
        if dto.destination_latitude is not None:
            delivery.destination_latitude = dto.destination_latitude
            delivery.destination_longitude = dto.destination_longitude
        else:
            delivery.destination_latitude = Decimal(default_lat)
            delivery.destination_longitude = Decimal(default_lng)
        delivery.estimated_distance_km = dto.estimated_distance_km or Decimal(
            settings.DELIVERY_DEFAULT_DISTANCE_KM
        )
        delivery.driver = driver
        delivery.notes = dto.notes

        old_status = delivery.status
        delivery.status = DeliveryStatus.ASSIGNED
        self._on_assigned(delivery, old_status)

        driver.status = DriverStatus.ON_DELIVERY
        self._driver_repo.save(driver)

        self._order_service.sync_from_delivery(
            order.id,
            OrderStatus.READY_FOR_DELIVERY,
            f"Assigned to driver {driver.licence_number}",
        )
        log.info("delivery.assigned", delivery_id=str(delivery.id))
        return self._delivery_repo.get_by_id(str(delivery.id)) or delivery

    def pickup(self, delivery_id: UUID) -> Delivery:
        return self._advance(delivery_id, DeliveryStatus.PICKED_UP)

    def start(self, delivery_id: UUID) -> Delivery:
        return self._advance(delivery_id, DeliveryStatus.IN_TRANSIT)

    def arrive(self, delivery_id: UUID) -> Delivery:
        return self._advance(delivery_id, DeliveryStatus.ARRIVED)

    def complete(self, delivery_id: UUID, proof_of_delivery_url: str = "") -> Delivery:
        return self._advance(
            delivery_id, DeliveryStatus.DELIVERED, proof_url=proof_of_delivery_url
        )

    def fail(self, delivery_id: UUID, reason: str = "") -> Delivery:
        return self._advance(delivery_id, DeliveryStatus.FAILED, notes=reason)

    def return_to_depot(self, delivery_id: UUID, reason: str = "") -> Delivery:
        return self._advance(delivery_id, DeliveryStatus.RETURNED, notes=reason)

    def update_status(
        self, delivery_id: UUID, new_status: str, notes: str = ""
    ) -> Delivery:
        """Staff setter.

        Enforces the transition table unless
        ``DELIVERY_STATUS_OVERRIDE_ENABLED`` is set.  Side effects of the
        target status always apply.

        Raises:
            DeliveryNotFound: delivery does not exist.
            InvalidDeliveryTransition: unknown status or illegal move.
        """
        if new_status not in DeliveryStatus.values:
            raise InvalidDeliveryTransition(f"Unknown delivery status {new_status!r}.")
        return self._advance(
            delivery_id,
            new_status,
            notes=notes,
            enforce=not settings.DELIVERY_STATUS_OVERRIDE_ENABLED,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_delivery(self, delivery_id: str) -> Delivery:
        delivery = self._delivery_repo.get_by_id(str(delivery_id))
        if not delivery:
            raise DeliveryNotFound(f"Delivery {delivery_id} not found.")
        return delivery

    def get_by_order(self, order_id: str) -> Delivery:
        delivery = self._delivery_repo.get_by_order(str(order_id))
        if not delivery:
            raise DeliveryNotFound(f"No delivery for order {order_id}.")
        return delivery

    def list_by_driver(self, driver_id: UUID) -> List[Delivery]:
        return self._delivery_repo.list_by_driver(driver_id)

    def list_by_depot(self, depot_id: UUID) -> List[Delivery]:
        return self._delivery_repo.list_by_depot(depot_id)

    def list_active(self) -> List[Delivery]:
        return self._delivery_repo.list_active()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @transaction.atomic
    def _advance(
        self,
        delivery_id,
        new_status: str,
        notes: str = "",
        proof_url: str = "",
        enforce: bool = True,
    ) -> Delivery:
        """Move a delivery to ``new_status`` under order and delivery locks."""
        found = self._delivery_repo.get_by_id(str(delivery_id))
        if not found:
            raise DeliveryNotFound(f"Delivery {delivery_id} not found.")

        self._order_repo.get_for_update(str(found.order_id))
        delivery = self._delivery_repo.get_for_update(str(found.id))

        log = logger.bind(
            delivery_id=str(delivery.id),
            current_status=delivery.status,
            new_status=new_status,
        )
        if enforce and not delivery.can_transition_to(new_status):
            log.warning("delivery.invalid_transition")
            raise InvalidDeliveryTransition(
                f"Cannot move delivery from {delivery.status} to {new_status}."
            )

        old_status = delivery.status
        delivery.status = new_status
        if notes:
            delivery.notes = notes
        if proof_url:
            delivery.proof_of_delivery_url = proof_url

        side_effect = self._side_effects.get(new_status)
        if side_effect is not None:
            side_effect(delivery, old_status)
        else:
            self._delivery_repo.save(delivery)

        log.info("delivery.status_updated", old_status=old_status)
        return self._delivery_repo.get_by_id(str(delivery.id))

    def _release_driver(self, delivery: Delivery) -> None:
        if delivery.driver_id is None:
            return
        driver = self._driver_repo.get_for_update(str(delivery.driver_id))
        if driver and driver.status == DriverStatus.ON_DELIVERY:
            driver.status = DriverStatus.AVAILABLE
            self._driver_repo.save(driver)
            logger.info("delivery.driver_released", driver_id=str(driver.id))

    def _sync_order(self, delivery: Delivery, order_status: str) -> None:
        self._order_service.sync_from_delivery(
            delivery.order_id, order_status, f"Delivery {delivery.status.lower()}"
        )

    def _on_assigned(self, delivery: Delivery, old_status: str) -> None:
        delivery.assigned_at = timezone.now()
        delivery.add_domain_event(
            DeliveryAssigned(
                aggregate_id=delivery.id,
                order_id=str(delivery.order_id),
                driver_id=str(delivery.driver_id or ""),
            )
        )
        self._delivery_repo.save(delivery)

    def _on_picked_up(self, delivery: Delivery, old_status: str) -> None:
        delivery.pickup_at = timezone.now()
        self._delivery_repo.save(delivery)
        self._sync_order(delivery, OrderStatus.OUT_FOR_DELIVERY)

    def _on_in_transit(self, delivery: Delivery, old_status: str) -> None:
        self._delivery_repo.save(delivery)
        self._sync_order(delivery, OrderStatus.OUT_FOR_DELIVERY)

    def _on_delivered(self, delivery: Delivery, old_status: str) -> None:
        delivery.delivered_at = timezone.now()
        delivery.add_domain_event(
            DeliveryCompleted(
                aggregate_id=delivery.id,
                order_id=str(delivery.order_id),
                driver_id=str(delivery.driver_id or ""),
            )
        )
        self._delivery_repo.save(delivery)
        self._sync_order(delivery, OrderStatus.DELIVERED)
        self._release_driver(delivery)

    def _on_failed(self, delivery: Delivery, old_status: str) -> None:
        delivery.add_domain_event(
            DeliveryFailed(
                aggregate_id=delivery.id,
                order_id=str(delivery.order_id),
                status=delivery.status,
                reason=delivery.notes,
            )
        )
        self._delivery_repo.save(delivery)
        self._sync_order(delivery, OrderStatus.FAILED_DELIVERY)
        self._release_driver(delivery)


class DriverService:
    """Application service for driver records, availability and location."""

    def __init__(
        self,
        driver_repository: IDriverRepository,
        delivery_repository: IDeliveryRepository,
        depot_repository: IDepotRepository,
    ) -> None:
        self._driver_repo = driver_repository
        self._delivery_repo = delivery_repository
        self._depot_repo = depot_repository

    @transaction.atomic
    def create_driver(self, dto: CreateDriverDTO) -> Driver:
        """Register an existing user as a driver at a depot.

        Raises:
            DepotNotFound: depot does not exist.
            DriverAlreadyExists: licence number or user already registered.
        """
        depot = self._require_depot(dto.depot_id)
        if self._driver_repo.exists_for_licence_or_user(dto.licence_number, dto.user_id):
            raise DriverAlreadyExists(
                f"Licence {dto.licence_number} or user {dto.user_id} is already "
                f"registered as a driver."
            )

        driver = Driver(
            user_id=dto.user_id,
            depot=depot,
            licence_number=dto.licence_number,
            vehicle_number=dto.vehicle_number,
            vehicle_type=dto.vehicle_type,
            status=DriverStatus.AVAILABLE,
        )
        self._driver_repo.save(driver)
        logger.info(
            "driver.created",
            driver_id=str(driver.id),
            depot_id=str(depot.id),
            licence_number=driver.licence_number,
        )
        return driver

    @transaction.atomic
    def update_status(self, driver_id: UUID, new_status: str) -> Driver:
        """Raises ``InvalidArgument`` for an unknown status."""
        if new_status not in DriverStatus.values:
            raise InvalidArgument(f"Unknown driver status {new_status!r}.")
        driver = self._lock(driver_id)
        old_status = driver.status
        driver.status = new_status
        self._driver_repo.save(driver)
        logger.info(
            "driver.status_updated",
            driver_id=str(driver.id),
            old_status=old_status,
            new_status=new_status,
        )
        return driver

    @transaction.atomic
    def update_location(self, driver_id: UUID, location: LocationDTO) -> Driver:
        """Stamp the driver's position and copy it onto IN_TRANSIT deliveries.

        The deliveries are locked before the driver, the same order
        ``DeliveryService`` uses when it releases a driver.

        Raises:
            DriverNotFound: driver does not exist.
        """
        found = self._driver_repo.get_by_id(str(driver_id))
        if not found:
            raise DriverNotFound(f"Driver {driver_id} not found.")

        updated = self._delivery_repo.update_location_for_driver(
            found.id,
            DeliveryStatus.IN_TRANSIT,
            location.latitude,
            location.longitude,
        )
        driver = self._lock(found.id)
        self._driver_repo.stamp_location(
            driver, location.latitude, location.longitude, timezone.now()
        )
        logger.info(
            "driver.location_updated",
            driver_id=str(driver.id),
            deliveries_updated=updated,
        )
        return driver

    @transaction.atomic
    def deactivate(self, driver_id: UUID) -> Driver:
        """Take a driver out of service.

        Raises:
            DriverBusy: the driver still has active deliveries.
        """
        driver = self._lock(driver_id)
        active = self._delivery_repo.count_active_for_driver(driver.id)
        if active:
            raise DriverBusy(
                f"Driver {driver.licence_number} has {active} active deliveries."
            )
        driver.is_active = False
        driver.status = DriverStatus.OFF_DUTY
        self._driver_repo.save(driver)
        logger.info("driver.deactivated", driver_id=str(driver.id))
        return driver

    def get_driver(self, driver_id: str) -> Driver:
        driver = self._driver_repo.get_by_id(str(driver_id))
        if not driver:
            raise DriverNotFound(f"Driver {driver_id} not found.")
        return driver

    def list_drivers(self, depot_id: Optional[str] = None) -> List[Driver]:
        filters: Dict[str, object] = {"is_active": True}
        if depot_id is not None:
            filters["depot_id"] = self._require_depot(depot_id).id
        return self._driver_repo.list(filters)

    def list_available(self, depot_id: Optional[str] = None) -> List[Driver]:
        if depot_id is not None:
            depot_id = self._require_depot(depot_id).id
        return self._driver_repo.list_available(depot_id)

    def _require_depot(self, depot_id):
        depot = self._depot_repo.get_by_id(str(depot_id))
        if not depot:
            raise DepotNotFound(f"Depot {depot_id} not found.")
        return depot

    def _lock(self, driver_id) -> Driver:
        driver = self._driver_repo.get_for_update(str(driver_id))
        if not driver:
            raise DriverNotFound(f"Driver {driver_id} not found.")
        return driver


def build_delivery_service() -> DeliveryService:
    """Dispatcher wired with the Django ORM repositories."""
    from modules.deliveries.repositories import (
        DeliveryDjangoRepository,
        DriverDjangoRepository,
    )
    from modules.orders.repositories import OrderDjangoRepository
    from modules.orders.services import build_order_service

    return DeliveryService(
        delivery_repository=DeliveryDjangoRepository(),
        driver_repository=DriverDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        order_service=build_order_service(),
    )


def build_driver_service() -> DriverService:
    from modules.deliveries.repositories import (
        DeliveryDjangoRepository,
        DriverDjangoRepository,
    )
    from modules.inventory.repositories import DepotDjangoRepository

    return DriverService(
        driver_repository=DriverDjangoRepository(),
        delivery_repository=DeliveryDjangoRepository(),
        depot_repository=DepotDjangoRepository(),
    )
