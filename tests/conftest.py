from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.carts.models import Cart, CartItem
from modules.deliveries.models import Driver
from modules.inventory.constants import MovementKind
from modules.inventory.models import Depot
from modules.inventory.services import build_inventory_ledger
from modules.orders.constants import PaymentMethod
from modules.orders.dtos import PlaceOrderDTO
from modules.orders.services import build_order_service
from modules.products.models import Product, ProductStatus

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest.fixture()
def customer():
    return User.objects.create_user(
        username="nimal",
        password="testpass123",
        email="nimal@example.com",
        first_name="Nimal",
        last_name="Perera",
    )


@pytest.fixture()
def other_customer():
    return User.objects.create_user(
        username="kamala",
        password="testpass123",
        email="kamala@example.com",
    )


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="manager", password="testpass123", is_staff=True
    )


@pytest.fixture()
def customer_client(customer):
    client = APIClient()
    client.force_authenticate(user=customer)
    return client


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


@pytest.fixture()
def depot_cmb():
    return Depot.objects.create(code="CMB", name="Colombo RDC", region="Western")


@pytest.fixture()
def depot_kdy():
    return Depot.objects.create(code="KDY", name="Kandy RDC", region="Central")


@pytest.fixture()
def product():
    return Product.objects.create(
        sku="SKU-X",
        name="Samba Rice 5kg",
        price=Decimal("250.00"),
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def product_b():
    return Product.objects.create(
        sku="SKU-Y",
        name="Ceylon Black Tea 400g",
        price=Decimal("99.50"),
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def ledger():
    return build_inventory_ledger()


@pytest.fixture()
def receive(ledger):
    """Put ``quantity`` units of ``product`` on hand at ``depot``."""

    def _receive(product, depot, quantity):
        return ledger.adjust(
            product_id=product.id,
            depot_id=depot.id,
            kind=MovementKind.RECEIVED,
            quantity=quantity,
            reason="Opening stock",
        )

    return _receive


@pytest.fixture()
def stocked(receive, product, depot_cmb):
    """Scenario baseline: the Colombo depot holds 10 units of SKU-X."""
    receive(product, depot_cmb, 10)
    return product


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return build_order_service()


@pytest.fixture()
def fill_cart():
    """Write cart lines directly, bypassing the cart's stock check."""

    def _fill(user, lines):
        cart, _ = Cart.objects.get_or_create(user=user)
        for line_product, quantity in lines:
            CartItem.objects.create(cart=cart, product=line_product, quantity=quantity)
        return cart

    return _fill


@pytest.fixture()
def place_order(order_service, fill_cart):
    """Place an order for ``user`` from ``[(product, quantity), ...]``."""

    def _place(user, lines, payment_method=PaymentMethod.CASH_ON_DELIVERY):
        fill_cart(user, lines)
        return order_service.place_order(
            user.id,
            PlaceOrderDTO(
                delivery_address="No. 5, Galle Road, Colombo 03",
                contact_number="0771234567",
                payment_method=payment_method,
            ),
        )

    return _place


@pytest.fixture()
def pending_order(place_order, customer, stocked):
    return place_order(customer, [(stocked, 4)])


@pytest.fixture()
def confirmed_order(order_service, pending_order):
    return order_service.confirm_order(pending_order.id)


# ---------------------------------------------------------------------------
# Drivers
# ---------------------------------------------------------------------------


@pytest.fixture()
def driver(depot_cmb):
    user = User.objects.create_user(username="driver1", password="testpass123")
    return Driver.objects.create(
        user=user,
        depot=depot_cmb,
        licence_number="B1234567",
        vehicle_number="WP-CAB-1234",
        vehicle_type="Lorry",
    )
