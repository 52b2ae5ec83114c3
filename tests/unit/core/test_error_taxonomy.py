"""Domain error hierarchy and HTTP status mapping."""

import pytest

from modules.core.exceptions import (
    BadRequest,
    Conflict,
    DomainError,
    ImmutableRecord,
    InsufficientStock,
    InvalidState,
    NotFound,
    SecurityViolation,
)
from modules.deliveries.exceptions import DriverAlreadyExists, DriverUnavailable
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound
from modules.payments.exceptions import (
    InvalidSignature,
    PaymentAlreadyCompleted,
    PaymentNotAllowed,
)

pytestmark = pytest.mark.unit


class TestErrorTaxonomy:
    @pytest.mark.parametrize(
        ("exc_class", "parent", "status_code"),
        [
            (OrderNotFound, NotFound, 404),
            (InvalidOrderStatus, InvalidState, 400),
            (DriverUnavailable, InvalidState, 400),
            (DriverAlreadyExists, Conflict, 409),
            (ImmutableRecord, Conflict, 409),
            (InvalidSignature, SecurityViolation, 400),
            (PaymentNotAllowed, BadRequest, 400),
            (PaymentAlreadyCompleted, Conflict, 409),
        ],
    )
    def test_hierarchy_and_status(self, exc_class, parent, status_code):
        assert issubclass(exc_class, parent)
        assert issubclass(exc_class, DomainError)
        assert exc_class.status_code == status_code

    def test_default_detail_and_code(self):
        exc = InvalidSignature()

        assert exc.detail == "Invalid payment notification hash."
        assert exc.code == "security_violation"
        assert str(exc) == exc.detail

    def test_explicit_detail_and_code(self):
        exc = NotFound("Depot CMB not found.", code="depot_not_found")

        assert exc.detail == "Depot CMB not found."
        assert exc.code == "depot_not_found"

    def test_insufficient_stock_carries_quantities(self):
        exc = InsufficientStock("Not enough.", available=3, requested=5)

        assert exc.available == 3
        assert exc.requested == 5
        assert exc.code == "insufficient_stock"
        assert exc.status_code == 409
