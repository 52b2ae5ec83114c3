"""Payment domain constants and gateway status codes."""

from django.db import models


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PROCESSING = "PROCESSING", "Processing"
    SUCCESS = "SUCCESS", "Success"
    CANCELLED = "CANCELLED", "Cancelled"
    FAILED = "FAILED", "Failed"
    CHARGEDBACK = "CHARGEDBACK", "Charged back"


SUCCESS_STATUS_CODE = 2

# Gateway status_code -> PaymentStatus; anything else maps to PENDING.
STATUS_CODE_MAP: dict[int, str] = {
    2: PaymentStatus.SUCCESS,
    0: PaymentStatus.PROCESSING,
    -1: PaymentStatus.CANCELLED,
    -2: PaymentStatus.FAILED,
    -3: PaymentStatus.CHARGEDBACK,
}

FAILURE_STATES: set[str] = {
    PaymentStatus.CANCELLED,
    PaymentStatus.FAILED,
    PaymentStatus.CHARGEDBACK,
}

PAYMENT_REFERENCE_MAX_RETRIES = 5
