"""
Notification services: the webhook receiver and webhook registration.
"""

from .receiver import NotificationReceiver
from .registration import register_notifications_webhook, unregister_notifications_webhooks

__all__ = [
    "NotificationReceiver",
    "register_notifications_webhook",
    "unregister_notifications_webhooks",
]
