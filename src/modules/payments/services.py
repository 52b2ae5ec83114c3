"""Payment service layer (Use Cases).

Initiates gateway checkouts and reconciles the gateway's server-to-server
notifications with payments and orders.

Business rules enforced:
- Only the owner's PENDING orders paid online can be initiated.
- An order has at most one SUCCESS payment.
- Notifications are authenticated by their md5 signature.
- Notifications are idempotent: a repeated success never confirms the
  order (or sends its invoice) twice, and a successful payment only
  changes again on a chargeback.

Locks are taken order first, then payment, the same order used by the
order workflow.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, List, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.exceptions import OrderNotFound
from modules.payments.constants import (
    FAILURE_STATES,
    SUCCESS_STATUS_CODE,
    PaymentStatus,
)
from modules.payments.dtos import PaymentInitiationDTO
from modules.payments.events import PaymentFailed, PaymentSucceeded
from modules.payments.exceptions import (
    InvalidSignature,
    PaymentAlreadyCompleted,
    PaymentNotAllowed,
    PaymentNotFound,
)
from modules.payments.gateway import format_amount, map_status_code
from modules.payments.models import Payment

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.services import OrderService
    from modules.payments.dtos import InitiatePaymentDTO, PayHereNotificationDTO
    from modules.payments.gateway import PayHereGateway
    from modules.payments.repositories.interfaces import IPaymentRepository

logger = structlog.get_logger(__name__)


class PaymentService:
    """Application service for Payment use-cases.

    Receives repositories, the order workflow and the gateway via
    constructor injection (DIP).
    """

    def __init__(
        self,
        payment_repository: IPaymentRepository,
        order_repository: IOrderRepository,
        order_service: OrderService,
        gateway: PayHereGateway,
    ) -> None:
        self._payment_repo = payment_repository
        self._order_repo = order_repository
        self._order_service = order_service
        self._gateway = gateway

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def initiate(self, user_id: int, dto: InitiatePaymentDTO) -> PaymentInitiationDTO:
        """Create a PENDING payment and the signed gateway form for it.

        Raises:
            OrderNotFound: order does not exist.
            PaymentNotAllowed: order belongs to another user, is not
                PENDING, or is not paid online.
            PaymentAlreadyCompleted: the order already has a SUCCESS payment.
        """
        log = logger.bind(user_id=user_id, order_id=str(dto.order_id))

        order = self._order_repo.get_for_update(str(dto.order_id))
        if not order:
            raise OrderNotFound(f"Order {dto.order_id} not found.")
        if order.user_id != user_id:
            raise PaymentNotAllowed("Order does not belong to this user.")
        if order.status != OrderStatus.PENDING:
            raise PaymentNotAllowed(
                f"Order is not in PENDING status. Current status: {order.status}."
            )
        if order.payment_method != PaymentMethod.ONLINE_PAYMENT:
            raise PaymentNotAllowed("Order payment method is not ONLINE_PAYMENT.")
        if self._payment_repo.has_success_for_order(order.id):
            raise PaymentAlreadyCompleted()

        payment = Payment(
            order=order,
            user_id=user_id,
            amount=order.total_amount,
            currency=self._gateway.currency,
            status=PaymentStatus.PENDING,
            gateway_order_id=f"{order.order_number}-{int(time.time() * 1000)}",
        )
        self._payment_repo.save(payment)

        form_data = self._build_form_data(payment, order, dto)
        log.info(
            "payment.initiated",
            payment_reference=payment.payment_reference,
            gateway_order_id=payment.gateway_order_id,
            amount=format_amount(payment.amount),
        )
        return PaymentInitiationDTO(
            payment_reference=payment.payment_reference,
            payment_url=self._gateway.checkout_url,
            form_data=form_data,
        )

    @transaction.atomic
    def handle_notification(self, dto: PayHereNotificationDTO) -> Payment:
        """Apply a gateway notification to its payment.

        Steps:
        1. Verify the md5 signature.
        2. Lock the order, then the payment.
        3. Ignore a repeated success (this payment or a sibling already
           succeeded) and, once SUCCESS, anything but a chargeback.
        4. Overwrite gateway metadata and map the status code.
        5. On entering SUCCESS, confirm the order if it is still PENDING;
           the invoice is sent after commit by the confirmation.

        Raises:
            InvalidSignature: signature mismatch.
            PaymentNotFound: no payment for the gateway order id.
        """
        log = logger.bind(
            gateway_order_id=dto.order_id,
            status_code=dto.status_code,
        )
        log.info("payment.notification_received")

        if not self._gateway.verify_notification(
            dto.merchant_id,
            dto.order_id,
            dto.payhere_amount,
            dto.payhere_currency,
            dto.status_code,
            dto.md5sig,
        ):
            log.warning("payment.notification_invalid_signature")
            raise InvalidSignature()

        found = self._payment_repo.get_by_gateway_order_id(dto.order_id)
        if not found:
            log.warning("payment.notification_unknown_order")
            raise PaymentNotFound(f"Payment not found for order: {dto.order_id}.")

        order = self._order_repo.get_for_update(str(found.order_id))
        payment = self._payment_repo.get_for_update(str(found.id))
        log = log.bind(payment_reference=payment.payment_reference)

        is_success_code = dto.status_code == SUCCESS_STATUS_CODE
        if is_success_code and payment.status == PaymentStatus.SUCCESS:
            log.info("payment.notification_duplicate")
            return payment
        if is_success_code and self._payment_repo.has_success_for_order(
            payment.order_id, exclude_id=payment.id
        ):
            log.info("payment.notification_duplicate", reason="order_already_paid")
            return payment

        new_status = map_status_code(dto.status_code)
        if (
            payment.status == PaymentStatus.SUCCESS
            and new_status != PaymentStatus.CHARGEDBACK
        ):
            log.info("payment.notification_stale", incoming_status=new_status)
            return payment

        self._apply_gateway_fields(payment, dto)
        old_status = payment.status
        payment.status = new_status

        if payment.status == PaymentStatus.SUCCESS:
            payment.completed_at = timezone.now()
            payment.add_domain_event(
                PaymentSucceeded(
                    aggregate_id=payment.id,
                    order_id=str(payment.order_id),
                    payment_reference=payment.payment_reference,
                    amount=format_amount(payment.amount),
                )
            )
        elif payment.status in FAILURE_STATES:
            payment.add_domain_event(
                PaymentFailed(
                    aggregate_id=payment.id,
                    order_id=str(payment.order_id),
                    payment_reference=payment.payment_reference,
                    status=payment.status,
                )
            )
        self._payment_repo.save(payment)
        log.info("payment.updated", old_status=old_status, new_status=payment.status)

        if payment.status == PaymentStatus.SUCCESS and order.status == OrderStatus.PENDING:
            self._order_service.confirm_order(order.id)
            log.info("payment.order_confirmed", order_number=order.order_number)
        return payment

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_reference(
        self, payment_reference: str, user_id: Optional[int] = None
    ) -> Payment:
        """Retrieve a payment; with ``user_id`` only the owner's.

        Raises:
            PaymentNotFound: missing, or owned by someone else.
        """
        payment = self._payment_repo.get_by_reference(payment_reference)
        if not payment or (user_id is not None and payment.user_id != user_id):
            raise PaymentNotFound(f"Payment {payment_reference} not found.")
        return payment

    def list_by_order(self, order_id: str, user_id: Optional[int] = None) -> List[Payment]:
        """Payments of an order; with ``user_id`` only for the owner's order.

        Raises:
            OrderNotFound: missing, or owned by someone else.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order or (user_id is not None and order.user_id != user_id):
            raise OrderNotFound(f"Order {order_id} not found.")
        return self._payment_repo.list_by_order(order.id)

    def list_by_user(self, user_id: int) -> List[Payment]:
        return self._payment_repo.list_by_user(user_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_form_data(
        self, payment: Payment, order: Order, dto: InitiatePaymentDTO
    ) -> dict[str, str]:
        user = order.user
        full_name = user.get_full_name() or user.get_username()
        first_name, _, last_name = full_name.partition(" ")
        return {
            "merchant_id": self._gateway.merchant_id,
            "return_url": dto.return_url or self._gateway.return_url,
            "cancel_url": dto.cancel_url or self._gateway.cancel_url,
            "notify_url": self._gateway.notify_url,
            "order_id": payment.gateway_order_id,
            "items": f"Order {order.order_number}",
            "currency": payment.currency,
            "amount": format_amount(payment.amount),
            "first_name": first_name,
            "last_name": last_name,
            "email": user.email or "",
            "phone": order.contact_number,
            "address": order.delivery_address,
            "city": "",
            "country": self._gateway.country,
            "hash": self._gateway.payment_hash(
                payment.gateway_order_id, payment.amount, payment.currency
            ),
            "custom_1": payment.payment_reference,
            "custom_2": order.order_number,
        }

    @staticmethod
    def _apply_gateway_fields(payment: Payment, dto: PayHereNotificationDTO) -> None:
        payment.gateway_payment_id = dto.payment_id or ""
        payment.status_code = dto.status_code
        payment.status_message = dto.status_message or ""
        payment.md5sig = dto.md5sig
        payment.method = dto.method or ""
        payment.card_holder_name = dto.card_holder_name or ""
        payment.card_no = dto.card_no or ""
        payment.card_expiry = dto.card_expiry or ""
        payment.customer_token = dto.customer_token or ""
        payment.recurring_token = dto.recurring_token or ""


def build_payment_service() -> PaymentService:
    """Payment service wired with the Django ORM repositories and settings."""
    from modules.orders.repositories import OrderDjangoRepository
    from modules.orders.services import build_order_service
    from modules.payments.gateway import PayHereGateway
    from modules.payments.repositories import PaymentDjangoRepository

    return PaymentService(
        payment_repository=PaymentDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        order_service=build_order_service(),
        gateway=PayHereGateway.from_settings(),
    )
