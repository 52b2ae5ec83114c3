"""Payment DRF serializers for API input/output."""

from __future__ import annotations

from rest_framework import serializers

from modules.payments.models import Payment


class InitiatePaymentSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    return_url = serializers.URLField(required=False, allow_null=True, default=None)
    cancel_url = serializers.URLField(required=False, allow_null=True, default=None)


class PayHereNotificationSerializer(serializers.Serializer):
    """Gateway notification body (form-encoded or JSON)."""

    merchant_id = serializers.CharField()
    order_id = serializers.CharField()
    payhere_amount = serializers.CharField()
    payhere_currency = serializers.CharField()
    status_code = serializers.IntegerField(required=False, allow_null=True, default=None)
    md5sig = serializers.CharField()
    payment_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    method = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    status_message = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    card_holder_name = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    card_no = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    card_expiry = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    customer_token = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    recurring_token = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    custom_1 = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    custom_2 = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class PaymentInitiationSerializer(serializers.Serializer):
    payment_reference = serializers.CharField()
    payment_url = serializers.URLField()
    form_data = serializers.DictField(child=serializers.CharField(allow_blank=True))
    message = serializers.CharField()


class PaymentSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "payment_reference",
            "order_id",
            "order_number",
            "amount",
            "currency",
            "status",
            "gateway_payment_id",
            "method",
            "card_no",
            "created_at",
            "completed_at",
        ]
        read_only_fields = fields
