"""Delivery and Driver DRF serializers for API input/output."""

from __future__ import annotations

from rest_framework import serializers

from modules.deliveries.constants import DeliveryStatus, DriverStatus
from modules.deliveries.models import Delivery, Driver

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class AssignDeliverySerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    driver_id = serializers.UUIDField()
    destination_latitude = serializers.DecimalField(
        max_digits=10, decimal_places=7, required=False, allow_null=True
    )
    destination_longitude = serializers.DecimalField(
        max_digits=10, decimal_places=7, required=False, allow_null=True
    )
    estimated_distance_km = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class DeliveryStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=DeliveryStatus.choices)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, default="", allow_blank=True)


class CompleteDeliverySerializer(serializers.Serializer):
    proof_of_delivery_url = serializers.URLField(
        required=False, default="", allow_blank=True
    )


class CreateDriverSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    depot_id = serializers.UUIDField()
    licence_number = serializers.CharField(max_length=50)
    vehicle_number = serializers.CharField(max_length=20)
    vehicle_type = serializers.CharField(
        max_length=50, required=False, default="", allow_blank=True
    )


class DriverStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=DriverStatus.choices)


class LocationSerializer(serializers.Serializer):
    latitude = serializers.DecimalField(max_digits=10, decimal_places=7)
    longitude = serializers.DecimalField(max_digits=10, decimal_places=7)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class DriverSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)
    depot_code = serializers.CharField(source="depot.code", read_only=True)

    class Meta:
        model = Driver
        fields = [
            "id",
            "user_id",
            "username",
            "depot_id",
            "depot_code",
            "licence_number",
            "vehicle_number",
            "vehicle_type",
            "status",
            "current_latitude",
            "current_longitude",
            "last_location_update",
            "is_active",
        ]
        read_only_fields = fields


class DeliverySerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)
    delivery_address = serializers.CharField(
        source="order.delivery_address", read_only=True
    )
    contact_number = serializers.CharField(
        source="order.contact_number", read_only=True
    )
    vehicle_number = serializers.CharField(
        source="driver.vehicle_number", read_only=True, default=None
    )

    class Meta:
        model = Delivery
        fields = [
            "id",
            "order_id",
            "order_number",
            "driver_id",
            "vehicle_number",
            "status",
            "delivery_address",
            "contact_number",
            "assigned_at",
            "pickup_at",
            "delivered_at",
            "current_latitude",
            "current_longitude",
            "destination_latitude",
            "destination_longitude",
            "estimated_distance_km",
            "notes",
            "proof_of_delivery_url",
        ]
        read_only_fields = fields
