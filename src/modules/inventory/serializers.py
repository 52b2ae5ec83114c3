"""Inventory DRF serializers for API input/output."""

from __future__ import annotations

from rest_framework import serializers

from modules.inventory.constants import MovementKind
from modules.inventory.models import Depot, InventoryRecord, StockMovement

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class AdjustStockSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    depot_id = serializers.UUIDField()
    kind = serializers.ChoiceField(choices=MovementKind.choices)
    quantity = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(required=False, default="", allow_blank=True)
    reference = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=100
    )


class TransferStockSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    from_depot_id = serializers.UUIDField()
    to_depot_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    reference = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=100
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class DepotSerializer(serializers.ModelSerializer):
    class Meta:
        model = Depot
        fields = [
            "id",
            "code",
            "name",
            "region",
            "address",
            "contact_number",
            "email",
            "is_active",
        ]
        read_only_fields = fields


class InventoryRecordSerializer(serializers.ModelSerializer):
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    depot_code = serializers.CharField(source="depot.code", read_only=True)
    stock_status = serializers.CharField(read_only=True)

    class Meta:
        model = InventoryRecord
        fields = [
            "id",
            "product_id",
            "product_sku",
            "product_name",
            "depot_id",
            "depot_code",
            "quantity_on_hand",
            "reorder_level",
            "stock_status",
            "updated_at",
        ]
        read_only_fields = fields


class StockMovementSerializer(serializers.ModelSerializer):
    class Meta:
        model = StockMovement
        fields = [
            "id",
            "record_id",
            "kind",
            "quantity",
            "previous_quantity",
            "new_quantity",
            "actor_id",
            "reason",
            "reference",
            "created_at",
        ]
        read_only_fields = fields
