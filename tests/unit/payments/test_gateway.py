"""Unit tests for the PayHere signing helpers."""

from __future__ import annotations

import hashlib
from decimal import Decimal

import pytest

from modules.payments.constants import PaymentStatus
from modules.payments.gateway import (
    PayHereGateway,
    format_amount,
    map_status_code,
    md5_upper,
)

pytestmark = pytest.mark.unit

MERCHANT_ID = "1211149"
SECRET = "test-merchant-secret"


def _md5(value: str) -> str:
    return hashlib.md5(value.encode()).hexdigest().upper()


@pytest.fixture()
def gateway():
    return PayHereGateway.from_settings()


class TestHashing:
    def test_md5_upper(self):
        assert md5_upper("abc") == "900150983CD24FB0D6963F7D28E17F72"

    @pytest.mark.parametrize(
        ("amount", "expected"),
        [
            (Decimal("1000"), "1000.00"),
            (Decimal("99.5"), "99.50"),
            ("12.345", "12.35"),
            (7, "7.00"),
        ],
    )
    def test_format_amount(self, amount, expected):
        assert format_amount(amount) == expected

    def test_payment_hash(self, gateway):
        expected = _md5(MERCHANT_ID + "ORD-1-17" + "1000.00" + "LKR" + _md5(SECRET))

        assert gateway.payment_hash("ORD-1-17", Decimal("1000"), "LKR") == expected

    def test_notification_hash(self, gateway):
        expected = _md5(MERCHANT_ID + "ORD-1-17" + "1000.00" + "LKR" + "2" + _md5(SECRET))

        assert gateway.notification_hash(MERCHANT_ID, "ORD-1-17", "1000.00", "LKR", 2) == expected

    def test_missing_status_code_is_signed_as_null(self, gateway):
        expected = _md5(MERCHANT_ID + "ORD-1-17" + "1000.00" + "LKR" + "null" + _md5(SECRET))

        assert (
            gateway.notification_hash(MERCHANT_ID, "ORD-1-17", "1000.00", "LKR", None)
            == expected
        )


class TestVerifyNotification:
    def test_accepts_either_case(self, gateway):
        sig = gateway.notification_hash(MERCHANT_ID, "ORD-1-17", "1000.00", "LKR", 2)

        assert gateway.verify_notification(MERCHANT_ID, "ORD-1-17", "1000.00", "LKR", 2, sig)
        assert gateway.verify_notification(
            MERCHANT_ID, "ORD-1-17", "1000.00", "LKR", 2, sig.lower()
        )

    def test_rejects_tampered_fields(self, gateway):
        sig = gateway.notification_hash(MERCHANT_ID, "ORD-1-17", "1000.00", "LKR", 0)

        assert not gateway.verify_notification(
            MERCHANT_ID, "ORD-1-17", "1000.00", "LKR", 2, sig
        )
        assert not gateway.verify_notification(
            MERCHANT_ID, "ORD-1-17", "1.00", "LKR", 0, sig
        )

    def test_rejects_missing_signature(self, gateway):
        assert not gateway.verify_notification(
            MERCHANT_ID, "ORD-1-17", "1000.00", "LKR", 2, None
        )


class TestStatusMapping:
    @pytest.mark.parametrize(
        ("code", "status"),
        [
            (2, PaymentStatus.SUCCESS),
            (0, PaymentStatus.PROCESSING),
            (-1, PaymentStatus.CANCELLED),
            (-2, PaymentStatus.FAILED),
            (-3, PaymentStatus.CHARGEDBACK),
            (7, PaymentStatus.PENDING),
            (None, PaymentStatus.PENDING),
        ],
    )
    def test_map_status_code(self, code, status):
        assert map_status_code(code) == status
