"""Unit tests for DriverService."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from django.contrib.auth import get_user_model

from modules.core.exceptions import InvalidArgument
from modules.deliveries.constants import DeliveryStatus, DriverStatus
from modules.deliveries.dtos import AssignDeliveryDTO, CreateDriverDTO, LocationDTO
from modules.deliveries.exceptions import DriverAlreadyExists, DriverBusy, DriverNotFound
from modules.deliveries.models import Delivery
from modules.deliveries.services import build_delivery_service, build_driver_service
from modules.inventory.exceptions import DepotNotFound

pytestmark = pytest.mark.unit

User = get_user_model()


@pytest.fixture()
def service():
    return build_driver_service()


@pytest.fixture()
def driver_user():
    return User.objects.create_user(username="driver2", password="testpass123")


class TestCreateDriver:
    def test_creates_available_driver(self, service, driver_user, depot_kdy):
        driver = service.create_driver(
            CreateDriverDTO(
                user_id=driver_user.id,
                depot_id=depot_kdy.id,
                licence_number=" b7654321 ",
                vehicle_number="cp-lj-5678",
                vehicle_type="Van",
            )
        )

        assert driver.status == DriverStatus.AVAILABLE
        assert driver.is_active
        assert driver.licence_number == "B7654321"
        assert driver.vehicle_number == "CP-LJ-5678"
        assert driver.depot_id == depot_kdy.id

    def test_duplicate_licence_is_case_insensitive(self, service, driver, driver_user, depot_cmb):
        with pytest.raises(DriverAlreadyExists):
            service.create_driver(
                CreateDriverDTO(
                    user_id=driver_user.id,
                    depot_id=depot_cmb.id,
                    licence_number="b1234567",
                    vehicle_number="WP-XY-0001",
                )
            )

    def test_user_already_a_driver(self, service, driver, depot_cmb):
        with pytest.raises(DriverAlreadyExists):
            service.create_driver(
                CreateDriverDTO(
                    user_id=driver.user_id,
                    depot_id=depot_cmb.id,
                    licence_number="C0000001",
                    vehicle_number="WP-XY-0001",
                )
            )

    def test_unknown_depot(self, service, driver_user):
        with pytest.raises(DepotNotFound):
            service.create_driver(
                CreateDriverDTO(
                    user_id=driver_user.id,
                    depot_id=uuid4(),
                    licence_number="C0000001",
                    vehicle_number="WP-XY-0001",
                )
            )

    def test_blank_licence_is_rejected(self):
        with pytest.raises(ValueError):
            CreateDriverDTO(
                user_id=1, depot_id=uuid4(), licence_number="  ", vehicle_number="X"
            )


class TestStatusAndLocation:
    def test_update_status(self, service, driver):
        assert service.update_status(driver.id, DriverStatus.ON_BREAK).status == (
            DriverStatus.ON_BREAK
        )

    def test_unknown_status(self, service, driver):
        with pytest.raises(InvalidArgument):
            service.update_status(driver.id, "ASLEEP")

    def test_unknown_driver(self, service):
        with pytest.raises(DriverNotFound):
            service.update_status(uuid4(), DriverStatus.ON_BREAK)

    def test_location_is_copied_to_in_transit_deliveries_only(
        self, service, driver, confirmed_order
    ):
        dispatcher = build_delivery_service()
        delivery = dispatcher.assign(
            AssignDeliveryDTO(order_id=confirmed_order.id, driver_id=driver.id)
        )

        service.update_location(
            driver.id, LocationDTO(latitude=Decimal("6.9"), longitude=Decimal("79.9"))
        )
        delivery.refresh_from_db()
        assert delivery.current_latitude is None

        dispatcher.pickup(delivery.id)
        dispatcher.start(delivery.id)
        updated = service.update_location(
            driver.id, LocationDTO(latitude=Decimal("6.95"), longitude=Decimal("79.85"))
        )

        delivery.refresh_from_db()
        assert delivery.status == DeliveryStatus.IN_TRANSIT
        assert delivery.current_latitude == Decimal("6.95")
        assert delivery.current_longitude == Decimal("79.85")
        assert updated.current_latitude == Decimal("6.95")
        assert updated.last_location_update is not None

    def test_deliveries_are_locked_before_the_driver(self, service, driver):
        delivery_repo, driver_repo = service._delivery_repo, service._driver_repo
        tracker = MagicMock()
        tracker.deliveries.side_effect = delivery_repo.update_location_for_driver
        tracker.driver.side_effect = driver_repo.get_for_update

        with patch.object(
            delivery_repo, "update_location_for_driver", tracker.deliveries
        ), patch.object(driver_repo, "get_for_update", tracker.driver):
            service.update_location(
                driver.id, LocationDTO(latitude=Decimal("6.9"), longitude=Decimal("79.9"))
            )

        assert [name for name, _, _ in tracker.mock_calls] == ["deliveries", "driver"]

    def test_location_for_unknown_driver(self, service):
        with pytest.raises(DriverNotFound):
            service.update_location(
                uuid4(), LocationDTO(latitude=Decimal("6.9"), longitude=Decimal("79.9"))
            )

    def test_location_range_is_validated(self):
        with pytest.raises(ValueError):
            LocationDTO(latitude=Decimal("91"), longitude=Decimal("0"))


class TestDeactivate:
    def test_deactivate_idle_driver(self, service, driver):
        driver = service.deactivate(driver.id)

        assert driver.is_active is False
        assert driver.status == DriverStatus.OFF_DUTY
        assert service.list_drivers() == []

    def test_busy_driver_cannot_be_deactivated(self, service, driver, confirmed_order):
        build_delivery_service().assign(
            AssignDeliveryDTO(order_id=confirmed_order.id, driver_id=driver.id)
        )

        with pytest.raises(DriverBusy):
            service.deactivate(driver.id)
        assert Delivery.objects.get().driver.is_active


class TestQueries:
    def test_available_drivers_by_depot(self, service, driver, depot_cmb, depot_kdy):
        assert [d.id for d in service.list_available(depot_cmb.id)] == [driver.id]
        assert service.list_available(depot_kdy.id) == []

        service.update_status(driver.id, DriverStatus.OFF_DUTY)

        assert service.list_available() == []

    def test_list_drivers_requires_known_depot(self, service, driver, depot_cmb):
        assert [d.id for d in service.list_drivers(depot_cmb.id)] == [driver.id]
        with pytest.raises(DepotNotFound):
            service.list_drivers(str(uuid4()))

    def test_get_driver(self, service, driver):
        assert service.get_driver(driver.id).id == driver.id
        with pytest.raises(DriverNotFound):
            service.get_driver("not-a-uuid")
