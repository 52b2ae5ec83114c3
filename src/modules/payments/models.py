"""Payment model.

Business rules implemented:
- ``payment_reference`` (``PAY-<millis>-<rand>``) and ``gateway_order_id``
  are unique.
- At most one SUCCESS payment per order, backed by a partial unique
  constraint on top of the service check.
- Gateway metadata is overwritten by every accepted notification.
"""

from __future__ import annotations

import secrets
import time
from decimal import Decimal
from typing import Any

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel
from modules.payments.constants import PAYMENT_REFERENCE_MAX_RETRIES, PaymentStatus
from shared.domain.events import DomainEventMixin


class Payment(DomainEventMixin, BaseModel):
    payment_reference: models.CharField = models.CharField(
        max_length=40, unique=True, editable=False
    )
    gateway_order_id: models.CharField = models.CharField(max_length=64, unique=True)
    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    amount: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    currency: models.CharField = models.CharField(max_length=3, default="LKR")
    status: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )

    # Gateway fields, written by the notification callback
    gateway_payment_id: models.CharField = models.CharField(
        max_length=64, blank=True, default=""
    )
    status_code: models.IntegerField = models.IntegerField(null=True, blank=True)
    status_message: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    md5sig: models.CharField = models.CharField(max_length=64, blank=True, default="")
    method: models.CharField = models.CharField(max_length=32, blank=True, default="")
    card_holder_name: models.CharField = models.CharField(
        max_length=128, blank=True, default=""
    )
    card_no: models.CharField = models.CharField(max_length=32, blank=True, default="")
    card_expiry: models.CharField = models.CharField(
        max_length=8, blank=True, default=""
    )
    customer_token: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    recurring_token: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    completed_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "payments"
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["order"],
                condition=models.Q(status=PaymentStatus.SUCCESS),
                name="payments_one_success_per_order",
            ),
        ]
        indexes = [
            models.Index(fields=["order", "-created_at"], name="payments_order_idx"),
            models.Index(fields=["user", "-created_at"], name="payments_user_idx"),
        ]

    @staticmethod
    def generate_payment_reference() -> str:
        """``PAY-<epoch millis>-<0..9999>``."""
        return f"PAY-{int(time.time() * 1000)}-{secrets.randbelow(10000)}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.payment_reference:
            for _ in range(PAYMENT_REFERENCE_MAX_RETRIES):
                candidate = self.generate_payment_reference()
                if not Payment.objects.filter(payment_reference=candidate).exists():
                    self.payment_reference = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique payment_reference after "
                    f"{PAYMENT_REFERENCE_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.payment_reference} ({self.status})"
