"""
Notification receiver for Riskified decision webhooks.

A single-route HTTP server: each POST to the configured path is
authenticated with the merchant HMAC, decoded into a Notification and handed
to the merchant callback. Bad requests are answered and logged; they never
stop the server.

Callbacks are serialized: at most one runs at a time, in the threadpool, so
the accept loop keeps serving other connections meanwhile. Coroutine
callbacks are awaited under the same lock.
"""

import asyncio
import inspect
import json
import logging
import threading
import time
from typing import Any, Awaitable, Callable, Optional, Tuple, Union
from urllib.parse import urlsplit

import uvicorn
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from riskified_sdk.core.config import Settings, get_settings
from riskified_sdk.core.logging_config import log_webhook_received
from riskified_sdk.domain.models import Notification
from riskified_sdk.utils.error_handler import (
    AuthenticationException,
    NotificationParseException,
    NotificationReceiverException,
    create_error_response,
    log_error,
)
from riskified_sdk.utils.signature import HMAC_HEADER_NAME, SHOP_DOMAIN_HEADER_NAME, verify_hmac

logger = logging.getLogger(__name__)

NotificationCallback = Callable[[Notification], Union[None, Awaitable[None]]]


def listen_address(webhook_url: str) -> Tuple[int, str]:
    """Local port and route path for a public webhook URL."""
    parsed = urlsplit(webhook_url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Webhook URL must be http(s): {webhook_url}")
    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    return port, parsed.path or "/"


class _StopTokenServer(uvicorn.Server):
    """uvicorn server whose exit flag is backed by an external stop token."""

    def __init__(self, config: uvicorn.Config, stop_token: threading.Event):
        self._stop_token = stop_token
        super().__init__(config)

    @property
    def should_exit(self) -> bool:
        return self._stop_token.is_set()

    @should_exit.setter
    def should_exit(self, value: bool) -> None:
        # uvicorn resets the flag to False on init; only "exit" is propagated
        if value:
            self._stop_token.set()


class NotificationReceiver:
    """
    Receives Riskified notifications on one local route.

    Lifecycle: Stopped -> Listening (``start()``, blocks) -> Stopped (``stop()``
    from any thread). Run ``start()`` on a thread of your own if the caller
    must not block.
    """

    def __init__(
        self,
        callback: NotificationCallback,
        auth_token: str,
        shop_domain: Optional[str] = None,
        host: str = "0.0.0.0",
        port: int = 5000,
        path: str = "/notifications",
    ):
        """
        Initialize the receiver.

        Args:
            callback: Called once per authenticated notification
            auth_token: Merchant auth token used to verify signatures
            shop_domain: When set, a shop domain header on the request must match it
            host: Local interface to bind
            port: Local port to bind (0 picks a free port)
            path: Webhook path, must start with '/'
        """
        if not callable(callback):
            raise ValueError("callback must be callable")
        if not auth_token:
            raise ValueError("auth_token is required")
        if not path.startswith("/"):
            raise ValueError("path must start with '/'")

        self._callback = callback
        self._auth_token = auth_token
        self.shop_domain = shop_domain
        self.host = host
        self.port = port
        self.path = path

        self._state_lock = threading.Lock()
        self._stop_token = threading.Event()
        self._server: Optional[_StopTokenServer] = None
        self._dispatch_lock: Optional[asyncio.Lock] = None
        self._dispatch_loop: Optional[asyncio.AbstractEventLoop] = None

        self.app = self._build_app()

    @classmethod
    def from_settings(
        cls, callback: NotificationCallback, settings: Optional[Settings] = None, **kwargs
    ) -> "NotificationReceiver":
        """
        Build a receiver from the SDK settings.

        When NOTIFICATIONS_WEBHOOK_URL is set, port and path come from that
        URL, overriding NOTIFICATIONS_PORT and NOTIFICATIONS_PATH.
        """
        settings = settings or get_settings()
        options = {
            "auth_token": settings.RISKIFIED_AUTH_TOKEN,
            "shop_domain": settings.RISKIFIED_SHOP_DOMAIN or None,
            "host": settings.NOTIFICATIONS_HOST,
            "port": settings.NOTIFICATIONS_PORT,
            "path": settings.NOTIFICATIONS_PATH,
        }
        if settings.NOTIFICATIONS_WEBHOOK_URL:
            options["port"], options["path"] = listen_address(settings.NOTIFICATIONS_WEBHOOK_URL)
        options.update(kwargs)
        return cls(callback, **options)

    @classmethod
    def from_webhook_url(
        cls,
        webhook_url: str,
        callback: NotificationCallback,
        auth_token: str,
        host: str = "0.0.0.0",
        **kwargs,
    ) -> "NotificationReceiver":
        """
        Build a receiver that listens on the port and path of the registered webhook URL.

        Args:
            webhook_url: Public URL registered with Riskified
            callback: Notification callback
            auth_token: Merchant auth token
            host: Local interface to bind (the URL host is usually not a local address)
        """
        port, path = listen_address(webhook_url)
        return cls(callback, auth_token, host=host, port=port, path=path, **kwargs)

    # === Ciclo de vida ===

    @property
    def is_listening(self) -> bool:
        """True while the server is accepting connections."""
        server = self._server
        return server is not None and server.started and not self._stop_token.is_set()

    @property
    def bound_port(self) -> Optional[int]:
        """Actual local port while listening (useful with port=0)."""
        server = self._server
        if server is None or not server.started:
            return None
        for listener in server.servers:
            for sock in listener.sockets:
                return sock.getsockname()[1]
        return None

    def start(self) -> None:
        """
        Start listening and block until ``stop()`` is called.

        Raises:
            NotificationReceiverException: If already listening or the socket cannot be bound
        """
        with self._state_lock:
            if self._server is not None:
                raise NotificationReceiverException("Notification receiver is already listening")
            self._stop_token.clear()
            config = uvicorn.Config(
                self.app,
                host=self.host,
                port=self.port,
                log_config=None,
                access_log=False,
                lifespan="off",
            )
            server = _StopTokenServer(config, self._stop_token)
            self._server = server

        logger.info(f"Notification receiver listening on {self.host}:{self.port}{self.path}")
        try:
            server.run()
        except SystemExit as e:
            # uvicorn sale con sys.exit cuando no puede abrir el socket
            raise NotificationReceiverException(
                f"Notification receiver could not listen on {self.host}:{self.port}"
            ) from e
        finally:
            with self._state_lock:
                self._server = None
            logger.info("Notification receiver stopped")

    def stop(self) -> None:
        """
        Ask a running ``start()`` to return. Safe from any thread; no-op when stopped.

        In-flight requests are allowed to finish before the socket closes.
        """
        with self._state_lock:
            if self._server is None:
                logger.debug("Notification receiver is not listening, nothing to stop")
                return
            self._stop_token.set()
        logger.info("Notification receiver stop requested")

    def wait_until_listening(self, timeout: float = 5.0) -> bool:
        """Block until the server accepts connections or the timeout expires."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self.is_listening:
                return True
            time.sleep(0.02)
        return self.is_listening

    # === Manejo de requests ===

    def _build_app(self) -> FastAPI:
        app = FastAPI(
            title="Riskified notifications receiver",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )
        app.add_api_route(self.path, self._handle_notification, methods=["POST"])
        return app

    async def _handle_notification(self, request: Request) -> JSONResponse:
        body = await request.body()

        try:
            self._authenticate(body, request.headers.get(HMAC_HEADER_NAME), request.headers.get(SHOP_DOMAIN_HEADER_NAME))
            notification = self.parse_notification(body)
        except (AuthenticationException, NotificationParseException) as e:
            client = request.client.host if request.client else "unknown"
            logger.warning(f"Rejected notification from {client}: {e.message}")
            return JSONResponse(status_code=e.status_code, content=create_error_response(e))

        log_webhook_received(notification.status.value, notification.order_id)

        try:
            await self._dispatch(notification)
        except Exception as e:
            log_error(e, {"order_id": notification.order_id})
            return JSONResponse(status_code=500, content=create_error_response(e))

        return JSONResponse(status_code=200, content={"status": "ok", "order_id": notification.order_id})

    def _authenticate(self, body: bytes, signature: Optional[str], shop_domain: Optional[str]) -> None:
        if not verify_hmac(body, signature, self._auth_token):
            raise AuthenticationException("Invalid or missing notification signature")
        if self.shop_domain and shop_domain and shop_domain != self.shop_domain:
            raise AuthenticationException(f"Unexpected shop domain '{shop_domain}'")

    @staticmethod
    def parse_notification(body: bytes) -> Notification:
        """
        Decode a notification body.

        Raises:
            NotificationParseException: If the body is not a valid notification
        """
        try:
            data: Any = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise NotificationParseException(f"Notification body is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise NotificationParseException("Notification body must be a JSON object")

        try:
            return Notification.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise NotificationParseException(
                f"Invalid notification field '{location}': {first.get('msg', str(e))}"
            ) from e

    def _get_dispatch_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._dispatch_lock is None or self._dispatch_loop is not loop:
            self._dispatch_lock = asyncio.Lock()
            self._dispatch_loop = loop
        return self._dispatch_lock

    async def _dispatch(self, notification: Notification) -> None:
        async with self._get_dispatch_lock():
            result = await run_in_threadpool(self._callback, notification)
            if inspect.isawaitable(result):
                await result

    def __repr__(self):
        """Detailed string representation of the receiver."""
        return (
            f"NotificationReceiver("
            f"host='{self.host}', port={self.port}, path='{self.path}', "
            f"listening={self.is_listening})"
        )
