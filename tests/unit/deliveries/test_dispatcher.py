"""Unit tests for DeliveryService.

Covers:
- Assignment guards and the default destination.
- The sequential lifecycle and its order/driver side effects (scenario E).
- Failure and return paths releasing the driver.
- The staff setter with and without the override flag.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.core.models import OutboxEvent
from modules.deliveries.constants import DeliveryStatus, DriverStatus
from modules.deliveries.dtos import AssignDeliveryDTO
from modules.deliveries.exceptions import (
    DeliveryNotFound,
    DriverNotFound,
    DriverUnavailable,
    InvalidDeliveryTransition,
)
from modules.deliveries.models import Delivery, Driver
from modules.deliveries.services import build_delivery_service
from modules.orders.constants import OrderStatus
from modules.orders.exceptions import InvalidOrderStatus
from modules.orders.models import Order

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return build_delivery_service()


@pytest.fixture()
def assigned(service, confirmed_order, driver):
    return service.assign(AssignDeliveryDTO(order_id=confirmed_order.id, driver_id=driver.id))


def _order_status(order) -> str:
    return Order.objects.get(id=order.id).status


def _driver_status(driver) -> str:
    return Driver.objects.get(id=driver.id).status


class TestAssign:
    def test_assignment_uses_default_destination(self, assigned, confirmed_order, driver):
        assert assigned.status == DeliveryStatus.ASSIGNED
        assert assigned.driver_id == driver.id
        assert assigned.assigned_at is not None
        assert assigned.destination_latitude == Decimal("6.9271000")
        assert assigned.destination_longitude == Decimal("79.8612000")
        assert assigned.estimated_distance_km == Decimal("15.50")
        assert _order_status(confirmed_order) == OrderStatus.READY_FOR_DELIVERY
        assert _driver_status(driver) == DriverStatus.ON_DELIVERY
        assert OutboxEvent.objects.filter(event_type="DeliveryAssigned").count() == 1

    def test_explicit_destination(self, service, confirmed_order, driver):
        delivery = service.assign(
            AssignDeliveryDTO(
                order_id=confirmed_order.id,
                driver_id=driver.id,
                destination_latitude=Decimal("7.2906"),
                destination_longitude=Decimal("80.6337"),
                estimated_distance_km=Decimal("3.20"),
            )
        )

        assert delivery.destination_latitude == Decimal("7.2906")
        assert delivery.estimated_distance_km == Decimal("3.20")

    def test_half_a_coordinate_pair_is_rejected(self):
        with pytest.raises(ValueError):
            AssignDeliveryDTO(
                order_id=uuid4(), driver_id=uuid4(), destination_latitude=Decimal("7")
            )

    def test_order_must_be_confirmed(self, service, pending_order, driver):
        with pytest.raises(InvalidOrderStatus):
            service.assign(AssignDeliveryDTO(order_id=pending_order.id, driver_id=driver.id))

        assert not Delivery.objects.exists()
        assert _driver_status(driver) == DriverStatus.AVAILABLE

    def test_unknown_driver(self, service, confirmed_order):
        with pytest.raises(DriverNotFound):
            service.assign(AssignDeliveryDTO(order_id=confirmed_order.id, driver_id=uuid4()))

    @pytest.mark.parametrize("driver_status", [DriverStatus.OFF_DUTY, DriverStatus.ON_BREAK])
    def test_driver_must_be_available(self, service, confirmed_order, driver, driver_status):
        driver.status = driver_status
        driver.save()

        with pytest.raises(DriverUnavailable):
            service.assign(AssignDeliveryDTO(order_id=confirmed_order.id, driver_id=driver.id))
        assert _order_status(confirmed_order) == OrderStatus.CONFIRMED

    def test_inactive_driver(self, service, confirmed_order, driver):
        driver.is_active = False
        driver.save()

        with pytest.raises(DriverUnavailable):
            service.assign(AssignDeliveryDTO(order_id=confirmed_order.id, driver_id=driver.id))


class TestLifecycle:
    def test_scenario_e_full_delivery(self, service, assigned, confirmed_order, driver):
        delivery = service.pickup(assigned.id)
        assert delivery.status == DeliveryStatus.PICKED_UP
        assert delivery.pickup_at is not None
        assert _order_status(confirmed_order) == OrderStatus.OUT_FOR_DELIVERY

        assert service.start(assigned.id).status == DeliveryStatus.IN_TRANSIT
        assert _order_status(confirmed_order) == OrderStatus.OUT_FOR_DELIVERY
        assert service.arrive(assigned.id).status == DeliveryStatus.ARRIVED

        delivery = service.complete(assigned.id, "https://pod.example.com/1.jpg")

        assert delivery.status == DeliveryStatus.DELIVERED
        assert delivery.delivered_at is not None
        assert delivery.proof_of_delivery_url == "https://pod.example.com/1.jpg"
        order = Order.objects.get(id=confirmed_order.id)
        assert order.status == OrderStatus.DELIVERED
        assert order.actual_delivery_date is not None
        assert _driver_status(driver) == DriverStatus.AVAILABLE

    def test_steps_cannot_be_skipped(self, service, assigned):
        with pytest.raises(InvalidDeliveryTransition):
            service.complete(assigned.id)
        with pytest.raises(InvalidDeliveryTransition):
            service.arrive(assigned.id)

    def test_failure_releases_driver(self, service, assigned, confirmed_order, driver):
        service.pickup(assigned.id)
        service.start(assigned.id)

        delivery = service.fail(assigned.id, "Customer not home")

        assert delivery.status == DeliveryStatus.FAILED
        assert delivery.notes == "Customer not home"
        assert _order_status(confirmed_order) == OrderStatus.FAILED_DELIVERY
        assert _driver_status(driver) == DriverStatus.AVAILABLE
        event = OutboxEvent.objects.get(event_type="DeliveryFailed")
        assert event.payload["reason"] == "Customer not home"

    def test_return_to_depot(self, service, assigned, confirmed_order, driver):
        delivery = service.return_to_depot(assigned.id, "Address not found")

        assert delivery.status == DeliveryStatus.RETURNED
        assert _order_status(confirmed_order) == OrderStatus.FAILED_DELIVERY
        assert _driver_status(driver) == DriverStatus.AVAILABLE

    def test_terminal_delivery_does_not_move(self, service, assigned):
        service.fail(assigned.id)

        with pytest.raises(InvalidDeliveryTransition):
            service.pickup(assigned.id)

    def test_unknown_delivery(self, service):
        with pytest.raises(DeliveryNotFound):
            service.pickup(uuid4())


class TestStaffSetter:
    def test_enforces_table_by_default(self, service, assigned):
        with pytest.raises(InvalidDeliveryTransition):
            service.update_status(assigned.id, DeliveryStatus.DELIVERED)

    def test_unknown_status(self, service, assigned):
        with pytest.raises(InvalidDeliveryTransition):
            service.update_status(assigned.id, "TELEPORTED")

    def test_override_still_applies_side_effects(
        self, service, assigned, confirmed_order, driver, settings
    ):
        settings.DELIVERY_STATUS_OVERRIDE_ENABLED = True

        delivery = service.update_status(assigned.id, DeliveryStatus.DELIVERED, "Manual")

        assert delivery.status == DeliveryStatus.DELIVERED
        assert _order_status(confirmed_order) == OrderStatus.DELIVERED
        assert _driver_status(driver) == DriverStatus.AVAILABLE


class TestQueries:
    def test_lookups(self, service, assigned, confirmed_order, driver, depot_cmb):
        assert service.get_by_order(confirmed_order.id).id == assigned.id
        assert [d.id for d in service.list_by_driver(driver.id)] == [assigned.id]
        assert [d.id for d in service.list_by_depot(depot_cmb.id)] == [assigned.id]
        assert [d.id for d in service.list_active()] == [assigned.id]

        service.fail(assigned.id)

        assert service.list_active() == []

    def test_missing_delivery_for_order(self, service, confirmed_order):
        with pytest.raises(DeliveryNotFound):
            service.get_by_order(confirmed_order.id)
