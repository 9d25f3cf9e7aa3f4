"""
Domain models for the Riskified orders SDK.

These models represent the payloads exchanged with Riskified and the
results decoded from its responses.
"""

from .notification import Notification, NotificationStatus
from .order import (
    AbstractOrder,
    AddressInformation,
    Customer,
    DiscountCode,
    LineItem,
    Order,
    OrderCancellation,
    OrderId,
    OrderPartialRefund,
    PartialRefundDetails,
    PaymentDetails,
    ShippingLine,
)
from .results import (
    ACCEPTED_TRANSACTION_STATUSES,
    HistoricalSendResult,
    RegistrationFailure,
    RegistrationResult,
    RegistrationSuccess,
    TransactionFailure,
    TransactionResult,
    TransactionSuccess,
    parse_registration_result,
    parse_transaction_result,
)

__all__ = [
    "ACCEPTED_TRANSACTION_STATUSES",
    "AbstractOrder",
    "AddressInformation",
    "Customer",
    "DiscountCode",
    "HistoricalSendResult",
    "LineItem",
    "Notification",
    "NotificationStatus",
    "Order",
    "OrderCancellation",
    "OrderId",
    "OrderPartialRefund",
    "PartialRefundDetails",
    "PaymentDetails",
    "RegistrationFailure",
    "RegistrationResult",
    "RegistrationSuccess",
    "ShippingLine",
    "TransactionFailure",
    "TransactionResult",
    "TransactionSuccess",
    "parse_registration_result",
    "parse_transaction_result",
]
