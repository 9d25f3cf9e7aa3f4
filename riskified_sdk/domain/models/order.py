"""
Order models sent to Riskified.

Every variant shares the merchant order id and the same serialization
contract: snake_case keys, ``None`` fields left out of the payload. Field
presence is not enforced here so that historical orders with gaps can still
be built; the validator decides what a given send requires.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

OrderId = Union[str, int]


class RiskifiedModel(BaseModel):
    """Base model with the wire conventions shared by all payload objects."""

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """Dump to a JSON-ready dict without empty fields."""
        return self.model_dump(mode="json", exclude_none=True)


class Customer(RiskifiedModel):
    """Customer that placed the order."""

    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    verified_email: Optional[bool] = None
    orders_count: Optional[int] = None
    note: Optional[str] = None


class AddressInformation(RiskifiedModel):
    """Billing or shipping address."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    province_code: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    zip: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None


class LineItem(RiskifiedModel):
    """Product line in the order."""

    title: Optional[str] = None
    price: Optional[float] = None
    quantity: Optional[int] = None
    product_id: Optional[str] = None
    sku: Optional[str] = None


class ShippingLine(RiskifiedModel):
    """Shipping method applied to the order."""

    title: Optional[str] = None
    price: Optional[float] = None
    code: Optional[str] = None


class PaymentDetails(RiskifiedModel):
    """Credit card payment details."""

    credit_card_bin: Optional[str] = None
    credit_card_company: Optional[str] = None
    credit_card_number: Optional[str] = None
    avs_result_code: Optional[str] = None
    cvv_result_code: Optional[str] = None


class DiscountCode(RiskifiedModel):
    """Discount code used in the order."""

    code: Optional[str] = None
    amount: Optional[float] = None


class AbstractOrder(RiskifiedModel):
    """
    Common base for every order message.

    Attributes:
        id: Merchant-assigned order id, unique per merchant and immutable
    """

    id: OrderId = Field(frozen=True)

    @property
    def order_id(self) -> str:
        """Order id as used for failure bookkeeping."""
        return str(self.id)


class Order(AbstractOrder):
    """Full order, used for create/update/submit and historical imports."""

    email: Optional[str] = None
    customer: Optional[Customer] = None
    payment_details: Optional[PaymentDetails] = None
    billing_address: Optional[AddressInformation] = None
    shipping_address: Optional[AddressInformation] = None
    line_items: Optional[List[LineItem]] = None
    shipping_lines: Optional[List[ShippingLine]] = None
    gateway: Optional[str] = None
    browser_ip: Optional[str] = None
    currency: Optional[str] = None
    total_price: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    discount_codes: Optional[List[DiscountCode]] = None
    total_discounts: Optional[float] = None
    cart_token: Optional[str] = None
    total_price_usd: Optional[float] = None
    closed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    # Latest known status (paid, cancelled, chargeback...) for historical imports
    financial_status: Optional[str] = None


class OrderCancellation(AbstractOrder):
    """Cancellation of an order previously sent."""

    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None


class PartialRefundDetails(RiskifiedModel):
    """One partial refund applied to an order."""

    refund_id: Optional[str] = None
    refunded_at: Optional[datetime] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    reason: Optional[str] = None


class OrderPartialRefund(AbstractOrder):
    """Partial refunds applied to an order previously sent."""

    partial_refunds: Optional[List[PartialRefundDetails]] = None
