"""
Registration of the merchant notifications webhook with Riskified.

Riskified keeps one notifications URL per shop. Registering replaces the
current one; unregistering removes it.
"""

import logging
from typing import Optional

from riskified_sdk.clients.transport_client import RiskifiedTransportClient
from riskified_sdk.core.config import get_settings
from riskified_sdk.core.environments import build_url
from riskified_sdk.domain.models import RegistrationResult, parse_registration_result

logger = logging.getLogger(__name__)

REGISTRATION_ROUTE = "/webhooks/merchant_hook_registration"
UNREGISTRATION_ROUTE = "/webhooks/merchant_hook_unregistration"


def _transport_for(
    auth_token: str, shop_domain: str, transport: Optional[RiskifiedTransportClient]
) -> RiskifiedTransportClient:
    return transport or RiskifiedTransportClient(auth_token, shop_domain)


async def register_notifications_webhook(
    riskified_host_url: str,
    webhook_url: str,
    auth_token: str,
    shop_domain: str,
    transport: Optional[RiskifiedTransportClient] = None,
) -> RegistrationResult:
    """
    Register the URL Riskified should send decision notifications to.

    Args:
        riskified_host_url: Riskified base URL (see core.environments)
        webhook_url: Public URL served by a NotificationReceiver, empty to
            use NOTIFICATIONS_WEBHOOK_URL from the settings
        auth_token: Merchant auth token
        shop_domain: Merchant shop domain
        transport: Transport client, built from the credentials when omitted

    Returns:
        RegistrationResult: RegistrationSuccess or RegistrationFailure

    Raises:
        ValueError: If no webhook URL is given or configured
        RiskifiedTransactionException: On transport errors or an invalid response
    """
    webhook_url = webhook_url or get_settings().NOTIFICATIONS_WEBHOOK_URL
    if not webhook_url:
        raise ValueError("webhook_url is required (argument or NOTIFICATIONS_WEBHOOK_URL)")

    url = build_url(riskified_host_url, REGISTRATION_ROUTE)
    payload = {"action_url": webhook_url, "domain": shop_domain, "auth_token": auth_token}

    logger.info(f"Registering notifications webhook {webhook_url} for {shop_domain}")
    body = await _transport_for(auth_token, shop_domain, transport).post(url, payload)
    result = parse_registration_result(body, endpoint=url)

    if result.is_successful:
        logger.info(f"Notifications webhook registered: {result.message}")
    else:
        logger.warning(f"Notifications webhook registration rejected: {result.message}")
    return result


async def unregister_notifications_webhooks(
    riskified_host_url: str,
    auth_token: str,
    shop_domain: str,
    transport: Optional[RiskifiedTransportClient] = None,
) -> RegistrationResult:
    """
    Remove the notifications webhook registered for the shop.

    Raises:
        RiskifiedTransactionException: On transport errors or an invalid response
    """
    url = build_url(riskified_host_url, UNREGISTRATION_ROUTE)
    payload = {"domain": shop_domain, "auth_token": auth_token}

    logger.info(f"Unregistering notifications webhooks for {shop_domain}")
    body = await _transport_for(auth_token, shop_domain, transport).post(url, payload)
    result = parse_registration_result(body, endpoint=url)

    if not result.is_successful:
        logger.warning(f"Notifications webhook unregistration rejected: {result.message}")
    return result
