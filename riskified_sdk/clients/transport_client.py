"""
HTTP transport to the Riskified API.

Each call serializes the payload once, signs exactly those bytes and issues a
single JSON POST. Every failure (network, timeout, non-2xx, empty or
undecodable body) surfaces as a RiskifiedTransactionException chained to its
cause.
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientTimeout

from riskified_sdk.core.logging_config import log_api_call
from riskified_sdk.utils.error_handler import ErrorCode, RiskifiedTransactionException
from riskified_sdk.utils.signature import (
    HMAC_HEADER_NAME,
    SHOP_DOMAIN_HEADER_NAME,
    SUBMIT_HEADER_NAME,
    calc_hmac,
)
from riskified_sdk.version import USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def serialize_payload(payload: Dict[str, Any]) -> bytes:
    """Compact JSON encoding; the signature is computed over these bytes."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class RiskifiedTransportClient:
    """
    Signed JSON transport shared by the orders gateway and webhook registration.

    The client holds only immutable configuration. Pass an ``aiohttp.ClientSession``
    to reuse connections (the caller owns and closes it); otherwise a session is
    opened and closed around every request.
    """

    def __init__(
        self,
        auth_token: str,
        shop_domain: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the transport.

        Args:
            auth_token: Merchant auth token, used as the HMAC secret
            shop_domain: Merchant shop domain sent on every request
            timeout: Total request timeout in seconds
            session: Optional externally managed session
        """
        if not auth_token:
            raise ValueError("auth_token is required")
        if timeout <= 0:
            raise ValueError("timeout must be greater than 0")

        self._auth_token = auth_token
        self.shop_domain = shop_domain
        self.timeout = timeout
        self._session = session

    def build_headers(self, body: bytes, submit: bool = False) -> Dict[str, str]:
        """
        Build the request headers for a serialized body.

        Args:
            body: Serialized request body
            submit: Whether the order should be analyzed right away

        Returns:
            Dict: Request headers
        """
        headers = {
            "Content-Type": "application/json",
            "Accept": "*/*",
            "Accept-Encoding": "gzip,deflate,sdch",
            "User-Agent": USER_AGENT,
            HMAC_HEADER_NAME: calc_hmac(body, self._auth_token),
            SHOP_DOMAIN_HEADER_NAME: self.shop_domain,
        }
        if submit:
            headers[SUBMIT_HEADER_NAME] = "true"
        return headers

    async def post(
        self,
        url: str,
        payload: Dict[str, Any],
        submit: bool = False,
        method: str = "POST",
    ) -> Dict[str, Any]:
        """
        Send a signed JSON request and decode the JSON object it returns.

        Args:
            url: Target URL
            payload: JSON-ready body
            submit: Add the submit-now header
            method: HTTP method

        Returns:
            Dict: Decoded response body

        Raises:
            RiskifiedTransactionException: On any transport or decoding failure
        """
        body = serialize_payload(payload)
        headers = self.build_headers(body, submit=submit)
        timeout = ClientTimeout(total=self.timeout)

        try:
            if self._session is not None:
                return await self._send(self._session, method, url, body, headers, timeout)

            async with aiohttp.ClientSession(timeout=timeout) as session:
                return await self._send(session, method, url, body, headers, timeout)

        except asyncio.TimeoutError as e:
            logger.error(f"Request to {url} timed out after {self.timeout}s")
            raise RiskifiedTransactionException(
                f"Request to server timed out after {self.timeout}s",
                endpoint=url,
            ) from e
        except aiohttp.ClientError as e:
            logger.error(f"Network error sending to {url}: {e}")
            raise RiskifiedTransactionException(
                f"There was an error sending data to server. More info: {e}",
                endpoint=url,
            ) from e

    async def _send(
        self,
        session: aiohttp.ClientSession,
        method: str,
        url: str,
        body: bytes,
        headers: Dict[str, str],
        timeout: ClientTimeout,
    ) -> Dict[str, Any]:
        start_time = time.monotonic()
        async with session.request(method, url, data=body, headers=headers, timeout=timeout) as response:
            raw_body = await response.read()
            status = response.status

        log_api_call(method, url, status, time.monotonic() - start_time)
        return self._decode_response(url, status, raw_body)

    @staticmethod
    def _decode_response(url: str, status: int, raw_body: bytes) -> Dict[str, Any]:
        decoded: Any = None
        decode_error: Optional[Exception] = None
        if raw_body and raw_body.strip():
            try:
                decoded = json.loads(raw_body.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                decode_error = e

        if not 200 <= status < 300:
            message = f"Server responded with HTTP {status}"
            if isinstance(decoded, dict) and isinstance(decoded.get("error"), dict):
                server_message = decoded["error"].get("message")
                if server_message:
                    message = f"{message}: {server_message}"
            raise RiskifiedTransactionException(message, endpoint=url, http_status=status)

        if not raw_body or not raw_body.strip():
            raise RiskifiedTransactionException(
                "Received empty response from server",
                endpoint=url,
                http_status=status,
                error_code=ErrorCode.EMPTY_RESPONSE,
            )

        if decode_error is not None:
            raise RiskifiedTransactionException(
                f"Received a response that is not valid JSON: {decode_error}",
                endpoint=url,
                http_status=status,
                error_code=ErrorCode.INVALID_RESPONSE,
            ) from decode_error

        if not isinstance(decoded, dict):
            raise RiskifiedTransactionException(
                "Received a JSON response that is not an object",
                endpoint=url,
                http_status=status,
                error_code=ErrorCode.INVALID_RESPONSE,
            )

        return decoded

    def __repr__(self):
        """Detailed string representation of the client."""
        return (
            f"RiskifiedTransportClient("
            f"shop_domain='{self.shop_domain}', "
            f"timeout={self.timeout}, "
            f"shared_session={self._session is not None})"
        )
