"""Payment repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.payments.models import Payment


class IPaymentRepository(IRepository["Payment"]):
    @abstractmethod
    def get_by_reference(self, payment_reference: str) -> Optional[Payment]:
        """Retrieve a payment by its public reference."""

    @abstractmethod
    def get_by_gateway_order_id(self, gateway_order_id: str) -> Optional[Payment]:
        """Retrieve a payment by the order id sent to the gateway."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Payment]:
        """Retrieve a payment with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def has_success_for_order(
        self, order_id: UUID, exclude_id: Optional[UUID] = None
    ) -> bool:
        """True when the order already has a SUCCESS payment."""

    @abstractmethod
    def list_by_order(self, order_id: UUID) -> List[Payment]:
        """Payments of an order, newest first."""

    @abstractmethod
    def list_by_user(self, user_id: int) -> List[Payment]:
        """Payments made by a user, newest first."""
