"""
Decision notification pushed by Riskified to the merchant webhook.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NotificationStatus(str, Enum):
    """Review decision carried by a notification."""

    APPROVED = "approved"
    DECLINED = "declined"
    SUBMITTED = "submitted"
    CAPTURED = "captured"


class Notification(BaseModel):
    """
    Inbound decision event.

    Attributes:
        order_id: Merchant order id the decision refers to
        status: Decision status
        description: Free text explanation from the reviewer
    """

    model_config = ConfigDict(frozen=True)

    order_id: str = Field(min_length=1)
    status: NotificationStatus
    description: str = ""

    @field_validator("order_id", mode="before")
    @classmethod
    def coerce_order_id(cls, v):
        """Order ids may arrive as JSON numbers."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        """Statuses are matched case-insensitively."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v):
        """A null description is treated as empty."""
        return "" if v is None else v
