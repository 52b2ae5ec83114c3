"""Unit tests for domain events and the in-memory bus."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.core.outbox import serialize_event_payload
from modules.inventory.events import StockBelowReorderLevel
from modules.orders.constants import OrderStatus
from modules.orders.events import OrderPlaced, OrderStatusChanged
from modules.orders.models import Order
from shared.infrastructure.bus import InMemoryEventBus, event_bus

pytestmark = pytest.mark.unit


class RecordingHandler:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


def test_order_registers_and_clears_domain_events():
    order = Order(order_number="ORD-TEST-000001", status=OrderStatus.PENDING)

    assert order.domain_events == []

    event = OrderPlaced(aggregate_id=order.id, order_number=order.order_number)
    order.add_domain_event(event)

    assert order.domain_events == [event]
    assert event.event_name == "OrderPlaced"

    order.clear_domain_events()
    assert order.domain_events == []


def test_event_round_trips_through_outbox_payload():
    event = OrderStatusChanged(
        aggregate_id=uuid4(),
        old_status=OrderStatus.PENDING,
        new_status=OrderStatus.CONFIRMED,
    )

    rebuilt = OrderStatusChanged.from_payload(serialize_event_payload(event))

    assert rebuilt == event


class TestInMemoryEventBus:
    def test_publish_reaches_subscribers_of_that_class_only(self):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(OrderPlaced, handler)

        placed = OrderPlaced(aggregate_id=uuid4())
        bus.publish(placed)
        bus.publish(OrderStatusChanged(aggregate_id=uuid4()))

        assert handler.events == [placed]

    def test_subscribing_twice_does_not_duplicate_delivery(self):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(OrderPlaced, handler)
        bus.subscribe(OrderPlaced, handler)

        bus.publish(OrderPlaced(aggregate_id=uuid4()))

        assert len(handler.events) == 1

    def test_event_class_lookup_by_name(self):
        bus = InMemoryEventBus()
        bus.subscribe(OrderPlaced, RecordingHandler())

        assert bus.event_class_for("OrderPlaced") is OrderPlaced
        assert bus.event_class_for("Unknown") is None

    def test_app_handlers_are_registered_on_startup(self):
        for name in ("OrderPlaced", "PaymentSucceeded", "DeliveryFailed"):
            assert event_bus.event_class_for(name) is not None
        assert event_bus.event_class_for("StockBelowReorderLevel") is StockBelowReorderLevel
