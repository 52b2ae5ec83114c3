"""Payment DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class InitiatePaymentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None


class PaymentInitiationDTO(BaseModel):
    """Checkout URL plus the signed form the client posts to the gateway."""

    model_config = ConfigDict(frozen=True)

    payment_reference: str
    payment_url: str
    form_data: Dict[str, str]
    message: str = "Payment initiated successfully"


class PayHereNotificationDTO(BaseModel):
    """Server-to-server notification posted by the gateway."""

    model_config = ConfigDict(frozen=True)

    merchant_id: str
    order_id: str
    payhere_amount: str
    payhere_currency: str
    status_code: Optional[int] = None
    md5sig: str
    payment_id: Optional[str] = None
    method: Optional[str] = None
    status_message: Optional[str] = None
    card_holder_name: Optional[str] = None
    card_no: Optional[str] = None
    card_expiry: Optional[str] = None
    customer_token: Optional[str] = None
    recurring_token: Optional[str] = None
    custom_1: Optional[str] = None
    custom_2: Optional[str] = None
