"""
Order services package for sending orders to Riskified.

This package contains validation, batching and the orders gateway,
following SOLID principles for better maintainability.
"""

from .gateway import OrdersGateway
from .validators import OrderValidator, ValidationMode

__all__ = ["OrdersGateway", "OrderValidator", "ValidationMode"]
