"""BaseModel, soft delete and the outbox model."""

from decimal import Decimal

import pytest
from freezegun import freeze_time

from modules.core.models import EventStatus, OutboxEvent
from modules.products.models import Product

pytestmark = pytest.mark.unit


class TestBaseModel:
    def test_primary_key_is_uuid7(self, product):
        assert product.id.version == 7

    def test_update_fields_refreshes_updated_at(self, product):
        product.name = "Samba Rice 10kg"
        with freeze_time("2030-01-01 08:00:00"):
            product.save(update_fields=["name"])
        product.refresh_from_db()

        assert product.name == "Samba Rice 10kg"
        assert product.updated_at.year == 2030


class TestSoftDelete:
    def test_delete_only_stamps_deleted_at(self, product):
        count, _ = product.delete()

        assert count == 1
        assert product.is_deleted
        assert Product.objects.filter(id=product.id).exists()
        assert not Product.objects.alive().filter(id=product.id).exists()
        assert product.delete() == (0, {})

    def test_restore(self, product):
        product.delete()
        product.restore()

        assert Product.objects.alive().filter(id=product.id).exists()

    def test_bulk_delete(self, product, product_b):
        count, _ = Product.objects.filter(sku__in=["SKU-X", "SKU-Y"]).delete()

        assert count == 2
        assert Product.objects.dead().count() == 2


class TestOutboxEvent:
    def _event(self) -> OutboxEvent:
        return OutboxEvent.objects.create(
            event_type="OrderPlaced",
            aggregate_id="agg-1",
            payload={"total_amount": str(Decimal("10.00"))},
            topic="orders",
        )

    def test_defaults_to_pending(self):
        event = self._event()

        assert event.status == EventStatus.PENDING
        assert event.retry_count == 0
        assert list(OutboxEvent.objects.relayable(5)) == [event]

    def test_failed_events_are_retried_until_the_limit(self):
        event = self._event()

        for _ in range(2):
            event.mark_as_failed("boom")

        assert event.status == EventStatus.FAILED
        assert event.retry_count == 2
        assert list(OutboxEvent.objects.relayable(3)) == [event]
        assert list(OutboxEvent.objects.relayable(2)) == []

    def test_mark_as_published(self):
        event = self._event()
        event.mark_as_failed("boom")

        event.mark_as_published()

        assert event.status == EventStatus.PUBLISHED
        assert event.processed_at is not None
        assert event.error_message is None
        assert list(OutboxEvent.objects.relayable(5)) == []
