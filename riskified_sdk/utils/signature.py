"""
HMAC signing shared by outbound order requests and inbound notifications.

Both sides key HMAC-SHA256 with the merchant auth token and exchange the
lowercase hex digest in the ``X-RISKIFIED-HMAC-SHA256`` header.
"""

import hashlib
import hmac
from typing import Optional, Union

HMAC_HEADER_NAME = "X-RISKIFIED-HMAC-SHA256"
SHOP_DOMAIN_HEADER_NAME = "X-RISKIFIED-SHOP-DOMAIN"
SUBMIT_HEADER_NAME = "X-RISKIFIED-SUBMIT-NOW"


def _to_bytes(payload: Union[bytes, str]) -> bytes:
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return payload


def calc_hmac(payload: Union[bytes, str], secret: str) -> str:
    """
    Compute the hex HMAC-SHA256 of a payload.

    Args:
        payload: Exact bytes that go over the wire (str is UTF-8 encoded)
        secret: Merchant auth token

    Returns:
        str: Lowercase hex digest
    """
    return hmac.new(secret.encode("utf-8"), _to_bytes(payload), hashlib.sha256).hexdigest()


def verify_hmac(payload: Union[bytes, str], signature: Optional[str], secret: Optional[str]) -> bool:
    """
    Check a received signature against the payload.

    Args:
        payload: Raw request body
        signature: Value of the HMAC header
        secret: Merchant auth token

    Returns:
        bool: True only if the signature matches
    """
    if not signature or not secret:
        return False

    expected = calc_hmac(payload, secret)
    # Comparación segura contra timing attacks
    return hmac.compare_digest(expected.encode("ascii"), signature.strip().lower().encode("utf-8"))
