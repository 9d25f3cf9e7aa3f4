"""
Riskified orders SDK.

Sends order lifecycle events to Riskified for fraud review and receives the
decision notifications Riskified posts back.
"""

from riskified_sdk.core.environments import RiskifiedEnvironment
from riskified_sdk.domain.models import (
    HistoricalSendResult,
    Notification,
    NotificationStatus,
    Order,
    OrderCancellation,
    OrderPartialRefund,
    RegistrationFailure,
    RegistrationSuccess,
    TransactionFailure,
    TransactionSuccess,
)
from riskified_sdk.services.notifications import (
    NotificationReceiver,
    register_notifications_webhook,
    unregister_notifications_webhooks,
)
from riskified_sdk.services.orders import OrdersGateway, OrderValidator, ValidationMode
from riskified_sdk.utils.error_handler import (
    AppException,
    AuthenticationException,
    OrderValidationException,
    RiskifiedTransactionException,
)
from riskified_sdk.version import VERSION

__version__ = VERSION

__all__ = [
    "AppException",
    "AuthenticationException",
    "HistoricalSendResult",
    "Notification",
    "NotificationReceiver",
    "NotificationStatus",
    "Order",
    "OrderCancellation",
    "OrderPartialRefund",
    "OrderValidationException",
    "OrderValidator",
    "OrdersGateway",
    "RegistrationFailure",
    "RegistrationSuccess",
    "RiskifiedEnvironment",
    "RiskifiedTransactionException",
    "TransactionFailure",
    "TransactionSuccess",
    "ValidationMode",
    "register_notifications_webhook",
    "unregister_notifications_webhooks",
]
