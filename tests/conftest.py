"""
Fixtures compartidos por las suites del SDK.
"""

from datetime import datetime, timezone

import pytest

from riskified_sdk.domain.models import (
    AddressInformation,
    Customer,
    LineItem,
    Order,
    OrderCancellation,
    OrderPartialRefund,
    PartialRefundDetails,
    PaymentDetails,
    ShippingLine,
)
from riskified_sdk.utils.error_handler import OrderValidationException


def build_order(order_id=1001, **overrides) -> Order:
    """Pedido completo que pasa la validación estricta."""
    address = AddressInformation(
        first_name="John",
        last_name="Doe",
        address1="123 Main St",
        city="New York",
        country="United States",
        country_code="US",
        zip="10001",
    )
    data = {
        "id": order_id,
        "email": "customer@example.com",
        "customer": Customer(email="customer@example.com", first_name="John", last_name="Doe", id="42"),
        "payment_details": PaymentDetails(
            credit_card_bin="123456",
            credit_card_company="Visa",
            credit_card_number="XXXX-XXXX-XXXX-4242",
            avs_result_code="Y",
            cvv_result_code="M",
        ),
        "billing_address": address,
        "shipping_address": address,
        "line_items": [LineItem(title="Blue Sneakers", price=75.0, quantity=2, sku="SNEAK-BLUE-42")],
        "shipping_lines": [ShippingLine(title="Standard Shipping", price=5.0)],
        "gateway": "stripe",
        "browser_ip": "192.168.1.10",
        "currency": "USD",
        "total_price": 155.0,
        "created_at": datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc),
        "updated_at": datetime(2025, 1, 15, 10, 35, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return Order(**data)


class InvalidIdsValidator:
    """Validador de prueba que rechaza un conjunto fijo de ids."""

    def __init__(self, invalid_ids):
        self.invalid_ids = {str(order_id) for order_id in invalid_ids}
        self.calls = []

    def validate(self, order, mode):
        self.calls.append((str(order.id), mode))
        if str(order.id) in self.invalid_ids:
            raise OrderValidationException(f"Order {order.id} is invalid", order_id=order.id, field="id")
        return order


@pytest.fixture
def valid_order():
    """Pedido válido en modo estricto."""
    return build_order()


@pytest.fixture
def valid_cancellation():
    """Cancelación válida."""
    return OrderCancellation(
        id=1001,
        cancelled_at=datetime(2025, 1, 16, 9, 0, tzinfo=timezone.utc),
        cancel_reason="Customer changed their mind",
    )


@pytest.fixture
def valid_partial_refund():
    """Reembolso parcial válido."""
    return OrderPartialRefund(
        id=1001,
        partial_refunds=[
            PartialRefundDetails(
                refund_id="r-1",
                refunded_at=datetime(2025, 1, 17, 12, 0, tzinfo=timezone.utc),
                amount=20.0,
                currency="USD",
                reason="Damaged item",
            )
        ],
    )


@pytest.fixture
def order_factory():
    """Fábrica de pedidos válidos: order_factory(order_id, **campos)."""
    return build_order


@pytest.fixture
def rejecting_validator():
    """Fábrica de validadores que rechazan los ids indicados."""
    return InvalidIdsValidator
