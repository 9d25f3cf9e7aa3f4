"""Validators for orders sent to Riskified."""

from .order_validator import OrderValidator, ValidationMode

__all__ = ["OrderValidator", "ValidationMode"]
