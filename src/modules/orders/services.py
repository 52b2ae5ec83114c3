"""Order service layer (Use Cases).

Orchestrates placement, confirmation, cancellation and status
progression of orders.  All write operations are atomic: the service
defines the unit-of-work boundary.

Business rules enforced:
- An order is placed from a non-empty cart; prices are snapshotted.
- Stock is reserved through ``InventoryLedger`` in the same transaction.
- Status transitions follow ``VALID_TRANSITIONS`` unless the staff
  override flag is set.
- History is recorded on every status change.
- Side effects are attached to the target status, not to the caller.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.inventory.dtos import ReservationLineDTO
from modules.orders.constants import CANCELLABLE_STATES, OrderStatus
from modules.orders.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderPlaced,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    EmptyCart,
    InactiveProduct,
    InsufficientStock,
    InvalidOrderStatus,
    OrderNotFound,
    OrderNotOwned,
    ProductNotFound,
)
from modules.orders.tasks import send_order_invoice

if TYPE_CHECKING:
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.inventory.services import InventoryLedger
    from modules.orders.dtos import PlaceOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

SideEffect = Callable[["Order", str, Optional[int]], None]


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        cart_repository: ICartRepository,
        inventory_ledger: InventoryLedger,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._cart_repo = cart_repository
        self._ledger = inventory_ledger
        self._side_effects: Dict[str, SideEffect] = {
            OrderStatus.CONFIRMED: self._on_confirmed,
            OrderStatus.CANCELLED: self._on_cancelled,
            OrderStatus.DELIVERED: self._on_delivered,
        }

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def place_order(self, user_id: int, dto: PlaceOrderDTO) -> Order:
        """Turn the user's cart into a PENDING order with reserved stock.

        Steps:
        1. Read the cart lines; an empty cart is rejected.
        2. For each line, check the product is sellable and that total
           stock across depots covers it (advisory, unlocked).
        3. Persist order + items with current prices as snapshots.
        4. Reserve stock through the ledger, referencing the order number.
        5. Record the initial history and clear the cart.

        Any failure rolls back the whole unit: no order is left behind
        and no stock is decremented.

        Raises:
            EmptyCart: the cart has no items.
            ProductNotFound: a product does not exist.
            InactiveProduct: a product cannot be sold.
            InsufficientStock: stock does not cover a line.
        """
        log = logger.bind(user_id=user_id)
        log.info("order.placement_started")

        cart = self._cart_repo.get_for_user(user_id)
        cart_items = list(cart.items.all()) if cart else []
        if not cart_items:
            raise EmptyCart("Cart is empty.")

        repo_items = []
        for cart_item in sorted(cart_items, key=lambda i: str(i.product_id)):
            product = self._product_repo.get_by_id(str(cart_item.product_id))
            if not product:
                raise ProductNotFound(f"Product {cart_item.product_id} not found.")
            if not product.is_sellable:
                raise InactiveProduct(f"Product {product.sku} is not available.")
            available = self._ledger.total_stock(product.id)
            if available < cart_item.quantity:
                raise InsufficientStock(
                    f"Product {product.sku}: requested {cart_item.quantity}, "
                    f"available {available}.",
                    available=available,
                    requested=cart_item.quantity,
                )
            repo_items.append(
                {
                    "product_id": product.id,
                    "quantity": cart_item.quantity,
                    "unit_price": product.price,
                }
            )

        order = self._order_repo.create(
            {
                "user_id": user_id,
                "items": repo_items,
                "delivery_address": dto.delivery_address,
                "contact_number": dto.contact_number,
                "payment_method": dto.payment_method,
                "notes": dto.notes or "",
                "estimated_delivery_date": timezone.now()
                + timedelta(days=settings.ORDER_ESTIMATED_DELIVERY_DAYS),
            }
        )

        allocations = self._ledger.reserve_for_order(
            [
                ReservationLineDTO(product_id=i["product_id"], quantity=i["quantity"])
                for i in repo_items
            ],
            actor_id=user_id,
            reference=order.order_number,
        )
        order.depot_id = allocations[0].depot_id
        order.add_domain_event(
            OrderPlaced(
                aggregate_id=order.id,
                order_number=order.order_number,
                total_amount=str(order.total_amount),
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PENDING,
            notes="Order placed",
            user_id=user_id,
        )
        self._cart_repo.clear(cart)

        log.info(
            "order.placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(order.total_amount),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def confirm_order(self, order_id: UUID, user_id: Optional[int] = None) -> Order:
        """Move a PENDING order to CONFIRMED and schedule its invoice.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: order is not PENDING.
        """
        order = self._lock(order_id)
        if order.status != OrderStatus.PENDING:
            logger.warning(
                "order.confirm_not_allowed",
                order_id=str(order_id),
                current_status=order.status,
            )
            raise InvalidOrderStatus(
                f"Only pending orders can be confirmed (status is {order.status})."
            )
        self._transition(order, OrderStatus.CONFIRMED, "Order confirmed", user_id)
        return self._order_repo.get_by_id(str(order_id))

    @transaction.atomic
    def cancel_order(self, user_id: int, order_id: UUID, notes: str = "") -> Order:
        """Cancel the caller's own order and release its stock.

        Acquires a row-level lock on the order **first** so concurrent
        cancellations cannot release stock twice.

        Raises:
            OrderNotFound: order does not exist.
            OrderNotOwned: order belongs to another user.
            InvalidOrderStatus: order is past CONFIRMED.
        """
        order = self._lock(order_id)
        if order.user_id != user_id:
            raise OrderNotOwned("Order belongs to another user.")
        if order.status not in CANCELLABLE_STATES:
            logger.warning(
                "order.cancel_not_allowed",
                order_id=str(order_id),
                current_status=order.status,
            )
            raise InvalidOrderStatus(f"Cannot cancel order in status {order.status}.")

        self._transition(
            order, OrderStatus.CANCELLED, notes or "Order cancelled", user_id
        )
        return self._order_repo.get_by_id(str(order_id))

    @transaction.atomic
    def update_status(
        self,
        order_id: UUID,
        new_status: str,
        notes: str = "",
        user_id: Optional[int] = None,
    ) -> Order:
        """Staff transition of an order to ``new_status``.

        The transition table is enforced unless
        ``ORDER_STATUS_OVERRIDE_ENABLED`` is set, in which case any status
        is accepted except leaving CANCELLED.  Side effects of the target
        status always apply.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: unknown status or transition not allowed.
        """
        if new_status not in OrderStatus.values:
            raise InvalidOrderStatus(f"Unknown order status {new_status!r}.")

        order = self._lock(order_id)
        self._refuse_leaving_cancelled(order, new_status)
        if not settings.ORDER_STATUS_OVERRIDE_ENABLED and not order.can_transition_to(
            new_status
        ):
            logger.warning(
                "order.invalid_transition",
                order_id=str(order_id),
                current_status=order.status,
                new_status=new_status,
            )
            raise InvalidOrderStatus(
                f"Cannot transition from {order.status} to {new_status}."
            )

        self._transition(order, new_status, notes, user_id)
        return self._order_repo.get_by_id(str(order_id))

    @transaction.atomic
    def sync_from_delivery(self, order_id: UUID, new_status: str, notes: str = "") -> Order:
        """System-driven status write issued by the delivery dispatcher.

        Not checked against the transition table; a write to the current
        status is a no-op.  A cancelled order is never reopened.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: the order is cancelled.
        """
        order = self._lock(order_id)
        if order.status == new_status:
            return order
        self._refuse_leaving_cancelled(order, new_status)
        self._transition(order, new_status, notes)
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def get_user_order(self, user_id: int, order_id: str) -> Order:
        """Retrieve an order only if it belongs to ``user_id``.

        Raises:
            OrderNotFound: missing, or owned by someone else.
        """
        order = self.get_order(order_id)
        if order.user_id != user_id:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def get_by_number(self, order_number: str) -> Order:
        order = self._order_repo.get_by_number(order_number)
        if not order:
            raise OrderNotFound(f"Order {order_number} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """Return orders, optionally filtered.

        Accepted keys: ``user_id``, ``status``, ``depot_id``, ``start_date``
        and ``end_date`` (inclusive, compared on the creation date).
        """
        lookups: Dict[str, Any] = {}
        for key, value in (filters or {}).items():
            if value in (None, ""):
                continue
            if key == "start_date":
                lookups["created_at__date__gte"] = value
            elif key == "end_date":
                lookups["created_at__date__lte"] = value
            else:
                lookups[key] = value
        return self._order_repo.list(lookups)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock(self, order_id) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    @staticmethod
    def _refuse_leaving_cancelled(order: Order, new_status: str) -> None:
        """A cancelled order's stock is already back in the ledger; it never reopens."""
        if order.status == OrderStatus.CANCELLED and new_status != OrderStatus.CANCELLED:
            logger.warning(
                "order.reopen_refused",
                order_id=str(order.id),
                new_status=new_status,
            )
            raise InvalidOrderStatus(
                f"Order {order.order_number} is cancelled and cannot move to {new_status}."
            )

    def _transition(
        self,
        order: Order,
        new_status: str,
        notes: str = "",
        user_id: Optional[int] = None,
    ) -> None:
        """Write ``new_status`` on a locked order, run its side effect, record history."""
        old_status = order.status
        order.status = new_status

        side_effect = self._side_effects.get(new_status)
        if side_effect is not None:
            side_effect(order, old_status, user_id)

        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=new_status,
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=new_status,
            notes=notes,
            old_status=old_status,
            user_id=user_id,
        )
        logger.info(
            "order.status_updated",
            order_id=str(order.id),
            old_status=old_status,
            new_status=new_status,
        )

    def _on_confirmed(self, order: Order, old_status: str, user_id: Optional[int]) -> None:
        order.add_domain_event(
            OrderConfirmed(aggregate_id=order.id, order_number=order.order_number)
        )
        order_id = str(order.id)

        def enqueue_invoice() -> None:
            try:
                send_order_invoice.delay(order_id)
            except Exception:
                logger.exception("order.invoice_enqueue_failed", order_id=order_id)

        transaction.on_commit(enqueue_invoice)

    def _on_cancelled(self, order: Order, old_status: str, user_id: Optional[int]) -> None:
        if old_status == OrderStatus.CANCELLED:
            return
        self._ledger.release_for_order(
            [
                ReservationLineDTO(product_id=item.product_id, quantity=item.quantity)
                for item in order.items.all()
            ],
            actor_id=user_id,
            reference=order.order_number,
        )
        order.add_domain_event(
            OrderCancelled(aggregate_id=order.id, order_number=order.order_number)
        )

    def _on_delivered(self, order: Order, old_status: str, user_id: Optional[int]) -> None:
        order.actual_delivery_date = timezone.now()


def build_order_service() -> OrderService:
    """Order service wired with the Django ORM repositories."""
    from modules.carts.repositories import CartDjangoRepository
    from modules.inventory.services import build_inventory_ledger
    from modules.orders.repositories import OrderDjangoRepository
    from modules.products.repositories.django_repository import (
        ProductDjangoRepository,
    )

    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        cart_repository=CartDjangoRepository(),
        inventory_ledger=build_inventory_ledger(),
    )
