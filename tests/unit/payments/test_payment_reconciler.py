"""Unit tests for PaymentService.

Covers:
- Initiation guards and the signed checkout form.
- Notification reconciliation (scenarios C and D).
- Idempotent success: one confirmation and one invoice per order.
"""

from __future__ import annotations

import hashlib
from decimal import Decimal

import pytest
from django.core import mail

from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.exceptions import OrderNotFound
from modules.orders.models import Order, OrderStatusHistory
from modules.payments.constants import PaymentStatus
from modules.payments.dtos import InitiatePaymentDTO, PayHereNotificationDTO
from modules.payments.exceptions import (
    InvalidSignature,
    PaymentAlreadyCompleted,
    PaymentNotAllowed,
    PaymentNotFound,
)
from modules.payments.models import Payment
from modules.payments.services import build_payment_service

pytestmark = pytest.mark.unit

MERCHANT_ID = "1211149"
SECRET = "test-merchant-secret"


def _md5(value: str) -> str:
    return hashlib.md5(value.encode()).hexdigest().upper()


def notification(gateway_order_id, status_code=2, amount="1000.00", md5sig=None, **extra):
    sig = md5sig or _md5(
        MERCHANT_ID
        + gateway_order_id
        + amount
        + "LKR"
        + ("null" if status_code is None else str(status_code))
        + _md5(SECRET)
    )
    return PayHereNotificationDTO(
        merchant_id=MERCHANT_ID,
        order_id=gateway_order_id,
        payhere_amount=amount,
        payhere_currency="LKR",
        status_code=status_code,
        md5sig=sig,
        payment_id="320025071278",
        method="VISA",
        **extra,
    )


@pytest.fixture()
def service():
    return build_payment_service()


@pytest.fixture()
def online_order(place_order, customer, stocked):
    return place_order(customer, [(stocked, 4)], payment_method=PaymentMethod.ONLINE_PAYMENT)


@pytest.fixture()
def initiated(service, customer, online_order):
    result = service.initiate(customer.id, InitiatePaymentDTO(order_id=online_order.id))
    return Payment.objects.get(payment_reference=result.payment_reference)


class TestInitiate:
    def test_creates_pending_payment_and_signed_form(self, service, customer, online_order):
        result = service.initiate(customer.id, InitiatePaymentDTO(order_id=online_order.id))

        payment = Payment.objects.get(payment_reference=result.payment_reference)
        assert payment.status == PaymentStatus.PENDING
        assert payment.amount == Decimal("1000.00")
        assert payment.gateway_order_id.startswith(f"{online_order.order_number}-")
        assert result.payment_url == "https://sandbox.payhere.lk/pay/checkout"

        form = result.form_data
        assert form["order_id"] == payment.gateway_order_id
        assert form["amount"] == "1000.00"
        assert form["first_name"] == "Nimal"
        assert form["last_name"] == "Perera"
        assert form["custom_1"] == payment.payment_reference
        assert form["hash"] == _md5(
            MERCHANT_ID + payment.gateway_order_id + "1000.00" + "LKR" + _md5(SECRET)
        )

    def test_other_users_order(self, service, other_customer, online_order):
        with pytest.raises(PaymentNotAllowed):
            service.initiate(other_customer.id, InitiatePaymentDTO(order_id=online_order.id))

    def test_cash_on_delivery_order(self, service, customer, pending_order):
        with pytest.raises(PaymentNotAllowed):
            service.initiate(customer.id, InitiatePaymentDTO(order_id=pending_order.id))

    def test_order_not_pending(self, service, customer, online_order, order_service):
        order_service.confirm_order(online_order.id)

        with pytest.raises(PaymentNotAllowed):
            service.initiate(customer.id, InitiatePaymentDTO(order_id=online_order.id))
        assert not Payment.objects.exists()

    def test_unknown_order(self, service, customer):
        with pytest.raises(OrderNotFound):
            service.initiate(
                customer.id,
                InitiatePaymentDTO(order_id="00000000-0000-0000-0000-000000000000"),
            )

    def test_already_paid_order(self, service, customer, online_order, initiated):
        initiated.status = PaymentStatus.SUCCESS
        initiated.save()

        with pytest.raises(PaymentAlreadyCompleted):
            service.initiate(customer.id, InitiatePaymentDTO(order_id=online_order.id))


class TestHandleNotification:
    def test_scenario_c_success_confirms_order_once(
        self, service, initiated, online_order, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            payment = service.handle_notification(notification(initiated.gateway_order_id))

        assert payment.status == PaymentStatus.SUCCESS
        assert payment.completed_at is not None
        assert payment.gateway_payment_id == "320025071278"
        assert Order.objects.get(id=online_order.id).status == OrderStatus.CONFIRMED
        assert len(mail.outbox) == 1

        with django_capture_on_commit_callbacks(execute=True):
            again = service.handle_notification(notification(initiated.gateway_order_id))

        assert again.status == PaymentStatus.SUCCESS
        confirmations = OrderStatusHistory.objects.filter(
            order_id=online_order.id, new_status=OrderStatus.CONFIRMED
        )
        assert confirmations.count() == 1
        assert len(mail.outbox) == 1
        assert OutboxEvent.objects.filter(event_type="PaymentSucceeded").count() == 1

    def test_scenario_d_bad_signature_changes_nothing(self, service, initiated, online_order):
        with pytest.raises(InvalidSignature):
            service.handle_notification(
                notification(initiated.gateway_order_id, md5sig="0" * 32)
            )

        initiated.refresh_from_db()
        assert initiated.status == PaymentStatus.PENDING
        assert initiated.gateway_payment_id == ""
        assert Order.objects.get(id=online_order.id).status == OrderStatus.PENDING

    def test_lowercase_signature_is_accepted(self, service, initiated):
        sig = _md5(
            MERCHANT_ID + initiated.gateway_order_id + "1000.00" + "LKR" + "0" + _md5(SECRET)
        )

        payment = service.handle_notification(
            notification(initiated.gateway_order_id, status_code=0, md5sig=sig.lower())
        )

        assert payment.status == PaymentStatus.PROCESSING

    def test_unknown_gateway_order_id(self, service, initiated):
        with pytest.raises(PaymentNotFound):
            service.handle_notification(notification("ORD-NOPE-1"))

    def test_failure_leaves_order_pending(self, service, initiated, online_order):
        payment = service.handle_notification(
            notification(initiated.gateway_order_id, status_code=-2, status_message="Declined")
        )

        assert payment.status == PaymentStatus.FAILED
        assert payment.status_message == "Declined"
        assert payment.completed_at is None
        assert Order.objects.get(id=online_order.id).status == OrderStatus.PENDING
        assert OutboxEvent.objects.filter(event_type="PaymentFailed").count() == 1

    def test_success_on_sibling_of_paid_order_is_ignored(
        self, service, customer, online_order, initiated
    ):
        sibling = Payment.objects.create(
            order=online_order,
            user=customer,
            amount=online_order.total_amount,
            gateway_order_id=f"{online_order.order_number}-retry",
        )
        service.handle_notification(notification(initiated.gateway_order_id))

        result = service.handle_notification(notification(sibling.gateway_order_id))

        assert result.status == PaymentStatus.PENDING
        assert Payment.objects.filter(status=PaymentStatus.SUCCESS).count() == 1

    @pytest.mark.parametrize("status_code", [0, None, -2])
    def test_stale_notification_after_success_is_ignored(
        self, service, initiated, status_code
    ):
        service.handle_notification(notification(initiated.gateway_order_id))

        result = service.handle_notification(
            notification(initiated.gateway_order_id, status_code=status_code)
        )

        assert result.status == PaymentStatus.SUCCESS
        initiated.refresh_from_db()
        assert initiated.status == PaymentStatus.SUCCESS
        assert initiated.status_code == 2
        assert initiated.completed_at is not None

    def test_chargeback_after_success_is_applied(self, service, initiated, online_order):
        service.handle_notification(notification(initiated.gateway_order_id))

        result = service.handle_notification(
            notification(initiated.gateway_order_id, status_code=-3)
        )

        assert result.status == PaymentStatus.CHARGEDBACK
        assert OutboxEvent.objects.filter(event_type="PaymentFailed").count() == 1


class TestQueries:
    def test_get_by_reference_scoped_to_owner(self, service, initiated, customer, other_customer):
        ref = initiated.payment_reference

        assert service.get_by_reference(ref, user_id=customer.id).id == initiated.id
        with pytest.raises(PaymentNotFound):
            service.get_by_reference(ref, user_id=other_customer.id)

    def test_list_by_order_and_user(self, service, initiated, online_order, customer, other_customer):
        assert [p.id for p in service.list_by_order(online_order.id, user_id=customer.id)] == [
            initiated.id
        ]
        assert [p.id for p in service.list_by_user(customer.id)] == [initiated.id]
        with pytest.raises(OrderNotFound):
            service.list_by_order(online_order.id, user_id=other_customer.id)
