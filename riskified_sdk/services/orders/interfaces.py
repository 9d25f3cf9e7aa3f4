"""
Interfaces/Protocols for order services (Dependency Inversion Principle).

These protocols define contracts that services must implement,
allowing merchants to plug in their own validation.
"""

from typing import Protocol

from riskified_sdk.domain.models import AbstractOrder
from riskified_sdk.services.orders.validators import ValidationMode


class IOrderValidator(Protocol):
    """Protocol for order validation services."""

    def validate(self, order: AbstractOrder, mode: ValidationMode) -> AbstractOrder:
        """Validate an order, raising OrderValidationException on failure."""
        ...
