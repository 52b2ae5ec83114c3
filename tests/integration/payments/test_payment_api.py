"""Integration tests for the payment endpoints.

The notification endpoint is called by the gateway: unauthenticated,
form-encoded, and answered 200 unless the signature or body is bad.
"""

from __future__ import annotations

import hashlib

import pytest
from django.core import mail
from rest_framework.test import APIClient

from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.models import Order
from modules.payments.constants import PaymentStatus
from modules.payments.models import Payment

pytestmark = pytest.mark.integration

MERCHANT_ID = "1211149"
SECRET = "test-merchant-secret"


def _md5(value: str) -> str:
    return hashlib.md5(value.encode()).hexdigest().upper()


def _notification(gateway_order_id, status_code="2", amount="1000.00"):
    return {
        "merchant_id": MERCHANT_ID,
        "order_id": gateway_order_id,
        "payhere_amount": amount,
        "payhere_currency": "LKR",
        "status_code": status_code,
        "md5sig": _md5(
            MERCHANT_ID + gateway_order_id + amount + "LKR" + status_code + _md5(SECRET)
        ),
        "payment_id": "320025071278",
        "method": "VISA",
        "card_no": "************1292",
    }


@pytest.fixture()
def online_order(place_order, customer, stocked):
    return place_order(customer, [(stocked, 4)], payment_method=PaymentMethod.ONLINE_PAYMENT)


@pytest.fixture()
def initiated(customer_client, online_order):
    response = customer_client.post(
        "/api/v1/payments/initiate/", {"order_id": str(online_order.id)}, format="json"
    )
    assert response.status_code == 201
    return Payment.objects.get(payment_reference=response.json()["payment_reference"])


class TestInitiateApi:
    def test_returns_checkout_form(self, customer_client, online_order):
        response = customer_client.post(
            "/api/v1/payments/initiate/",
            {"order_id": str(online_order.id), "return_url": "https://shop.example.com/ok"},
            format="json",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["payment_url"] == "https://sandbox.payhere.lk/pay/checkout"
        assert data["form_data"]["return_url"] == "https://shop.example.com/ok"
        assert data["form_data"]["merchant_id"] == MERCHANT_ID
        assert data["message"] == "Payment initiated successfully"

    def test_cash_order_is_rejected(self, customer_client, pending_order):
        response = customer_client.post(
            "/api/v1/payments/initiate/", {"order_id": str(pending_order.id)}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "payment_not_allowed"

    def test_requires_authentication(self, api_client, online_order):
        response = api_client.post(
            "/api/v1/payments/initiate/", {"order_id": str(online_order.id)}, format="json"
        )
        assert response.status_code == 401


class TestNotifyApi:
    def test_success_notification_confirms_order(
        self, api_client, initiated, online_order, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.post(
                "/api/v1/payments/notify/", _notification(initiated.gateway_order_id)
            )

        assert response.status_code == 200
        assert response.json() == {"status": "received"}
        initiated.refresh_from_db()
        assert initiated.status == PaymentStatus.SUCCESS
        assert initiated.card_no == "************1292"
        assert Order.objects.get(id=online_order.id).status == OrderStatus.CONFIRMED
        assert len(mail.outbox) == 1

    def test_repeated_notification_is_acknowledged_once(
        self, api_client, initiated, django_capture_on_commit_callbacks
    ):
        body = _notification(initiated.gateway_order_id)
        with django_capture_on_commit_callbacks(execute=True):
            api_client.post("/api/v1/payments/notify/", body)
        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.post("/api/v1/payments/notify/", body)

        assert response.status_code == 200
        assert len(mail.outbox) == 1

    def test_bad_signature_is_rejected(self, api_client, initiated):
        body = _notification(initiated.gateway_order_id)
        body["md5sig"] = "0" * 32

        response = api_client.post("/api/v1/payments/notify/", body)

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "security_violation"
        initiated.refresh_from_db()
        assert initiated.status == PaymentStatus.PENDING

    def test_malformed_body_is_acknowledged(self, api_client, initiated):
        response = api_client.post("/api/v1/payments/notify/", {"order_id": "x"})

        assert response.status_code == 200
        assert response.json() == {"status": "received"}
        initiated.refresh_from_db()
        assert initiated.status == PaymentStatus.PENDING

    def test_unknown_payment_is_acknowledged(self, api_client, initiated):
        response = api_client.post("/api/v1/payments/notify/", _notification("ORD-UNKNOWN-1"))

        assert response.status_code == 200
        initiated.refresh_from_db()
        assert initiated.status == PaymentStatus.PENDING


class TestPaymentQueriesApi:
    def test_by_reference_is_owner_scoped(
        self, customer_client, staff_client, initiated, other_customer
    ):
        url = f"/api/v1/payments/reference/{initiated.payment_reference}/"
        other = APIClient()
        other.force_authenticate(user=other_customer)

        assert customer_client.get(url).json()["status"] == PaymentStatus.PENDING
        assert staff_client.get(url).status_code == 200
        assert other.get(url).status_code == 404

    def test_by_order_and_mine(self, customer_client, initiated, online_order):
        by_order = customer_client.get(f"/api/v1/payments/order/{online_order.id}/")
        mine = customer_client.get("/api/v1/payments/mine/")

        assert [p["payment_reference"] for p in by_order.json()] == [initiated.payment_reference]
        assert mine.json()["count"] == 1
        assert mine.json()["results"][0]["order_number"] == online_order.order_number
