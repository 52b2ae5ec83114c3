"""PayHere checkout signing and notification verification.

Only the hashing contract and status mapping are implemented; the gateway
itself is an external collaborator.

    initiation:   UPPER(MD5(merchant_id + order_id + amount + currency + UPPER(MD5(secret))))
    notification: UPPER(MD5(merchant_id + order_id + payhere_amount
                            + payhere_currency + status_code + UPPER(MD5(secret))))

A missing status_code is signed as the literal "null".
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.conf import settings

from modules.payments.constants import STATUS_CODE_MAP, PaymentStatus


def md5_upper(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest().upper()


def format_amount(amount) -> str:
    """Two-decimal string, as the gateway signs it."""
    return str(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def map_status_code(status_code: Optional[int]) -> str:
    if status_code is None:
        return PaymentStatus.PENDING
    return STATUS_CODE_MAP.get(int(status_code), PaymentStatus.PENDING)


@dataclass(frozen=True)
class PayHereGateway:
    merchant_id: str
    merchant_secret: str
    currency: str
    checkout_url: str
    notify_url: str
    return_url: str
    cancel_url: str
    country: str

    @classmethod
    def from_settings(cls) -> PayHereGateway:
        return cls(
            merchant_id=settings.PAYHERE_MERCHANT_ID,
            merchant_secret=settings.PAYHERE_MERCHANT_SECRET,
            currency=settings.PAYHERE_CURRENCY,
            checkout_url=(
                settings.PAYHERE_SANDBOX_URL
                if settings.PAYHERE_SANDBOX
                else settings.PAYHERE_PRODUCTION_URL
            ),
            notify_url=settings.PAYHERE_NOTIFY_URL,
            return_url=settings.PAYHERE_RETURN_URL,
            cancel_url=settings.PAYHERE_CANCEL_URL,
            country=settings.PAYHERE_COUNTRY,
        )

    @property
    def _hashed_secret(self) -> str:
        return md5_upper(self.merchant_secret)

    def payment_hash(self, gateway_order_id: str, amount, currency: str) -> str:
        return md5_upper(
            self.merchant_id
            + gateway_order_id
            + format_amount(amount)
            + currency
            + self._hashed_secret
        )

    def notification_hash(
        self,
        merchant_id: str,
        order_id: str,
        payhere_amount: str,
        payhere_currency: str,
        status_code: Optional[int],
    ) -> str:
        return md5_upper(
            merchant_id
            + order_id
            + payhere_amount
            + payhere_currency
            + ("null" if status_code is None else str(status_code))
            + self._hashed_secret
        )

    def verify_notification(
        self,
        merchant_id: str,
        order_id: str,
        payhere_amount: str,
        payhere_currency: str,
        status_code: Optional[int],
        md5sig: Optional[str],
    ) -> bool:
        expected = self.notification_hash(
            merchant_id, order_id, payhere_amount, payhere_currency, status_code
        )
        return hmac.compare_digest(
            expected.encode("utf-8"), (md5sig or "").upper().encode("utf-8")
        )
