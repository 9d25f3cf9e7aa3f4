"""
OrderValidator service for checking orders before they are sent to Riskified.

This service follows SRP (Single Responsibility Principle) by focusing only on
validation logic; the gateway decides which mode applies to each call.
"""

import ipaddress
import logging
import re
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

from riskified_sdk.domain.models import (
    AbstractOrder,
    AddressInformation,
    LineItem,
    Order,
    OrderCancellation,
    OrderPartialRefund,
)
from riskified_sdk.utils.error_handler import OrderValidationException

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")


class ValidationMode(str, Enum):
    """Rule set applied to an order before sending."""

    # Every field required for a live order must be present and well formed
    STRICT = "strict"
    # Only the order id is required; fields that are present must be well formed
    WEAK = "weak"


class OrderValidator:
    """
    Validates orders before they are serialized and sent.

    Responsibilities:
    - Validate the merchant order id
    - Validate required fields (strict mode only)
    - Validate the format of every field present (both modes)
    - Validate cancellation and partial refund specifics
    """

    def validate(self, order: AbstractOrder, mode: ValidationMode = ValidationMode.STRICT) -> AbstractOrder:
        """
        Validates an order and returns it unchanged.

        Args:
            order: Order, cancellation or partial refund
            mode: Rule set to apply

        Returns:
            AbstractOrder: The same order if valid

        Raises:
            OrderValidationException: If validation fails
        """
        mode = ValidationMode(mode)
        self._validate_id(order)
        strict = mode is ValidationMode.STRICT

        if isinstance(order, Order):
            self._validate_order(order, strict)
        elif isinstance(order, OrderCancellation):
            self._validate_cancellation(order, strict)
        elif isinstance(order, OrderPartialRefund):
            self._validate_partial_refund(order, strict)

        logger.debug(f"Order {order.id} passed {mode.value} validation")
        return order

    # === Validaciones comunes ===

    def _validate_id(self, order: AbstractOrder) -> None:
        order_id = order.id
        if isinstance(order_id, bool) or order_id is None:
            raise OrderValidationException("Merchant Order ID is required", order_id=order_id, field="id")
        if isinstance(order_id, int) and order_id <= 0:
            raise OrderValidationException(
                "Merchant Order ID must be positive", order_id=order_id, field="id", invalid_value=order_id
            )
        if isinstance(order_id, str) and not order_id.strip():
            raise OrderValidationException("Merchant Order ID is required", order_id=order_id, field="id")

    @staticmethod
    def _require(order: AbstractOrder, value: Any, field: str) -> None:
        if value is None or (isinstance(value, str) and not value.strip()) or (isinstance(value, list) and not value):
            raise OrderValidationException(f"{field} is required", order_id=order.id, field=field)

    @staticmethod
    def _fail(order: AbstractOrder, field: str, message: str, value: Any) -> None:
        raise OrderValidationException(
            f"{field} {message}", order_id=order.id, field=field, invalid_value=value
        )

    def _check_non_negative(self, order: AbstractOrder, value: Optional[float], field: str) -> None:
        if value is not None and value < 0:
            self._fail(order, field, "must be zero or positive", value)

    def _check_date(self, order: AbstractOrder, value: Optional[datetime], field: str) -> None:
        if value is not None and value.year <= 1:
            self._fail(order, field, "must be a real date", value)

    def _check_currency(self, order: AbstractOrder, value: Optional[str], field: str) -> None:
        if value is not None and not CURRENCY_PATTERN.match(value):
            self._fail(order, field, "must be a three letter ISO 4217 code", value)

    # === Pedido completo ===

    def _validate_order(self, order: Order, strict: bool) -> None:
        if strict:
            for field in (
                "email",
                "customer",
                "payment_details",
                "billing_address",
                "shipping_address",
                "line_items",
                "shipping_lines",
                "gateway",
                "browser_ip",
                "currency",
                "total_price",
                "created_at",
                "updated_at",
            ):
                self._require(order, getattr(order, field), field)

        if order.email is not None and not EMAIL_PATTERN.match(order.email):
            self._fail(order, "email", "is not a valid email address", order.email)

        if order.browser_ip is not None:
            try:
                ipaddress.ip_address(order.browser_ip)
            except ValueError:
                self._fail(order, "browser_ip", "is not a valid IP address", order.browser_ip)

        self._check_currency(order, order.currency, "currency")
        self._check_non_negative(order, order.total_price, "total_price")
        self._check_non_negative(order, order.total_discounts, "total_discounts")
        self._check_non_negative(order, order.total_price_usd, "total_price_usd")

        for field in ("created_at", "updated_at", "closed_at", "cancelled_at"):
            self._check_date(order, getattr(order, field), field)

        if order.line_items is not None:
            self._validate_line_items(order, order.line_items, strict)

        for name, address in (("billing_address", order.billing_address), ("shipping_address", order.shipping_address)):
            if address is not None:
                self._validate_address(order, address, name, strict)

        if order.customer is not None:
            if strict:
                self._require(order, order.customer.email or order.email, "customer.email")
            if order.customer.email is not None and not EMAIL_PATTERN.match(order.customer.email):
                self._fail(order, "customer.email", "is not a valid email address", order.customer.email)

    def _validate_line_items(self, order: Order, line_items: Iterable[LineItem], strict: bool) -> None:
        for index, item in enumerate(line_items, start=1):
            field = f"line_items[{index}]"
            if strict:
                self._require(order, item.title, f"{field}.title")
                self._require(order, item.price, f"{field}.price")
                self._require(order, item.quantity, f"{field}.quantity")
            self._check_non_negative(order, item.price, f"{field}.price")
            if item.quantity is not None and item.quantity <= 0:
                self._fail(order, f"{field}.quantity", "must be positive", item.quantity)

    def _validate_address(self, order: Order, address: AddressInformation, name: str, strict: bool) -> None:
        if strict:
            self._require(order, address.address1, f"{name}.address1")
            self._require(order, address.city, f"{name}.city")
            self._require(order, address.country_code or address.country, f"{name}.country")

    # === Cancelación y reembolso parcial ===

    def _validate_cancellation(self, order: OrderCancellation, strict: bool) -> None:
        if strict:
            self._require(order, order.cancelled_at, "cancelled_at")
            self._require(order, order.cancel_reason, "cancel_reason")
        self._check_date(order, order.cancelled_at, "cancelled_at")

    def _validate_partial_refund(self, order: OrderPartialRefund, strict: bool) -> None:
        if strict:
            self._require(order, order.partial_refunds, "partial_refunds")

        for index, refund in enumerate(order.partial_refunds or [], start=1):
            field = f"partial_refunds[{index}]"
            if strict:
                self._require(order, refund.refunded_at, f"{field}.refunded_at")
                self._require(order, refund.amount, f"{field}.amount")
                self._require(order, refund.currency, f"{field}.currency")
            if refund.amount is not None and refund.amount <= 0:
                self._fail(order, f"{field}.amount", "must be positive", refund.amount)
            self._check_currency(order, refund.currency, f"{field}.currency")
            self._check_date(order, refund.refunded_at, f"{field}.refunded_at")
