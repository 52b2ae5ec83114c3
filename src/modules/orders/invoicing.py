"""Plain-text invoice rendering for confirmed orders."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings

from modules.orders.dtos import OrderOutputDTO

LINE_WIDTH = 72


def invoice_number(order: OrderOutputDTO) -> str:
    return f"INV-{order.order_number}"


def invoice_filename(order: OrderOutputDTO) -> str:
    return f"Invoice-{order.order_number}.txt"


def invoice_subject(order: OrderOutputDTO) -> str:
    return f"Your Invoice for Order #{order.order_number}"


def render_invoice(order: OrderOutputDTO) -> str:
    """Render the invoice document for ``order``.

    Contains the company header, invoice and order numbers, the customer
    block, one row per line item and the totals.
    """
    rule = "-" * LINE_WIDTH
    lines = [
        settings.INVOICE_COMPANY_NAME,
    ]
    if settings.INVOICE_COMPANY_ADDRESS:
        lines.append(settings.INVOICE_COMPANY_ADDRESS)
    lines += [
        "",
        "INVOICE",
        rule,
        f"Invoice Number: {invoice_number(order)}",
        f"Order Number:   {order.order_number}",
        f"Invoice Date:   {order.created_at:%d %b %Y %H:%M}",
        f"Payment Method: {order.payment_method.replace('_', ' ')}",
        "",
        "Bill To:",
        f"  {order.customer_name}",
        f"  {order.customer_email}",
        f"  {order.contact_number}",
        f"  {order.delivery_address}",
        rule,
        f"{'Item':<34}{'Qty':>8}{'Unit Price':>15}{'Subtotal':>15}",
        rule,
    ]
    for item in order.items:
        name = f"{item.product_name} ({item.product_sku})"[:33]
        lines.append(
            f"{name:<34}{item.quantity:>8}{_money(item.unit_price):>15}"
            f"{_money(item.subtotal):>15}"
        )
    lines += [
        rule,
        f"{'TOTAL':<42}{'':>15}{_money(order.total_amount):>15}",
        "",
        "Thank you for your business.",
    ]
    return "\n".join(lines) + "\n"


def _money(value: Decimal) -> str:
    return f"{value:,.2f}"
