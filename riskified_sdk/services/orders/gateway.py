"""
Orders gateway: sends order lifecycle events to Riskified.

Every single-order operation follows the same protocol: validate, serialize
and sign, POST, interpret the response. Historical imports reuse the
transport but batch the orders and aggregate failures instead of raising.
"""

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from pydantic_core import PydanticSerializationError

from riskified_sdk.clients.transport_client import DEFAULT_TIMEOUT_SECONDS, RiskifiedTransportClient
from riskified_sdk.core.config import Settings, get_settings
from riskified_sdk.core.environments import RiskifiedEnvironment, build_url, get_env_url
from riskified_sdk.domain.models import (
    ACCEPTED_TRANSACTION_STATUSES,
    AbstractOrder,
    HistoricalSendResult,
    Order,
    OrderCancellation,
    OrderPartialRefund,
    TransactionFailure,
    TransactionResult,
    TransactionSuccess,
    parse_transaction_result,
)
from riskified_sdk.services.orders.batching import (
    END_OF_ORDERS,
    HISTORICAL_BATCH_SIZE,
    OrderSource,
    OrdersInput,
)
from riskified_sdk.services.orders.interfaces import IOrderValidator
from riskified_sdk.services.orders.validators import OrderValidator, ValidationMode
from riskified_sdk.utils.error_handler import (
    ErrorCode,
    OrderValidationException,
    RiskifiedTransactionException,
)

logger = logging.getLogger(__name__)

CREATE_ROUTE = "/api/create"
UPDATE_ROUTE = "/api/update"
SUBMIT_ROUTE = "/api/submit"
CANCEL_ROUTE = "/api/cancel"
REFUND_ROUTE = "/api/refund"
HISTORICAL_ROUTE = "/api/historical"

# Una orden en un lote: (id del comercio, payload serializable)
_BatchEntry = Tuple[str, Dict[str, Any]]


class OrdersGateway:
    """
    Sends orders to Riskified.

    The gateway only holds immutable configuration, so one instance can be
    shared by concurrent callers.
    """

    def __init__(
        self,
        auth_token: str,
        shop_domain: str,
        environment: RiskifiedEnvironment = RiskifiedEnvironment.SANDBOX,
        base_url: Optional[str] = None,
        historical_validation: ValidationMode = ValidationMode.WEAK,
        validator: Optional[IOrderValidator] = None,
        transport: Optional[RiskifiedTransportClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize the gateway.

        Args:
            auth_token: Merchant auth token (HMAC secret)
            shop_domain: Merchant shop domain
            environment: Riskified environment to send to
            base_url: Explicit base URL, overrides ``environment``
            historical_validation: Default rule set for historical imports
            validator: Order validator, defaults to OrderValidator
            transport: Transport client, defaults to one built from the credentials
            timeout: Request timeout in seconds when the transport is built here
        """
        self.base_url = (base_url or get_env_url(environment)).rstrip("/")
        self.shop_domain = shop_domain
        self.historical_validation = ValidationMode(historical_validation)
        self._validator = validator or OrderValidator()
        self._transport = transport or RiskifiedTransportClient(auth_token, shop_domain, timeout=timeout)

        logger.info(f"Initialized Riskified orders gateway for {self.shop_domain} at {self.base_url}")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "OrdersGateway":
        """
        Build a gateway from the SDK settings.

        Args:
            settings: Settings instance, defaults to the global settings
            **kwargs: Constructor overrides (validator, transport...)
        """
        settings = settings or get_settings()
        options = {
            "auth_token": settings.RISKIFIED_AUTH_TOKEN,
            "shop_domain": settings.RISKIFIED_SHOP_DOMAIN,
            "base_url": settings.riskified_base_url,
            "historical_validation": (
                ValidationMode.WEAK if settings.RISKIFIED_WEAK_HISTORICAL_VALIDATION else ValidationMode.STRICT
            ),
            "timeout": settings.RISKIFIED_REQUEST_TIMEOUT,
        }
        options.update(kwargs)
        return cls(**options)

    # === Operaciones de un solo pedido ===

    async def create(self, order: Order) -> TransactionSuccess:
        """
        Validates the order and sends it to Riskified without submitting it for analysis.

        Raises:
            OrderValidationException: On missing or malformed order fields
            RiskifiedTransactionException: On transport errors or an unacceptable response
        """
        return await self._send_order(order, CREATE_ROUTE)

    async def update(self, order: Order) -> TransactionSuccess:
        """Validates and sends an update for an order already created."""
        return await self._send_order(order, UPDATE_ROUTE)

    async def submit(self, order: Order) -> TransactionSuccess:
        """Validates the order, sends it and flags it for immediate analysis."""
        return await self._send_order(order, SUBMIT_ROUTE, submit=True)

    async def cancel(self, cancellation: OrderCancellation) -> TransactionSuccess:
        """Sends a cancellation (reason and timestamp required) for an existing order."""
        return await self._send_order(cancellation, CANCEL_ROUTE)

    async def partly_refund(self, partial_refund: OrderPartialRefund) -> TransactionSuccess:
        """Sends partial refund data for an existing order."""
        return await self._send_order(partial_refund, REFUND_ROUTE)

    async def _send_order(self, order: AbstractOrder, route: str, submit: bool = False) -> TransactionSuccess:
        self._validator.validate(order, ValidationMode.STRICT)
        payload = {"order": self._serialize(order)}

        url = build_url(self.base_url, route)
        logger.info(f"Sending order {order.id} to {route}")

        body = await self._transport.post(url, payload, submit=submit)
        result = parse_transaction_result(body, endpoint=url)
        return self._interpret(order, result, url)

    @staticmethod
    def _serialize(order: AbstractOrder) -> Dict[str, Any]:
        try:
            return order.to_payload()
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise OrderValidationException(
                f"The order could not be serialized to JSON: {e}",
                order_id=order.id,
                field="order",
            ) from e

    @staticmethod
    def _interpret(order: AbstractOrder, result: TransactionResult, url: str) -> TransactionSuccess:
        if isinstance(result, TransactionFailure):
            raise RiskifiedTransactionException(
                f"Riskified rejected order {order.id}: {result.message}",
                endpoint=url,
            )

        if result.status not in ACCEPTED_TRANSACTION_STATUSES:
            raise RiskifiedTransactionException(
                f"Error receiving valid response from server: unexpected status '{result.status}'",
                endpoint=url,
                error_code=ErrorCode.INVALID_RESPONSE,
            )

        if result.id is None:
            raise RiskifiedTransactionException(
                f"Response for order {order.id} did not include an order id",
                endpoint=url,
                error_code=ErrorCode.INVALID_RESPONSE,
            )

        logger.info(f"Order {order.id} {result.status} (riskified id {result.id})")
        return result

    # === Importación histórica ===

    async def send_historical_orders(
        self,
        orders: Optional[OrdersInput],
        validation_mode: Optional[ValidationMode] = None,
    ) -> HistoricalSendResult:
        """
        Validates historical orders and sends them to Riskified in batches of 10.

        Each order's ``financial_status`` should hold its latest status (paid,
        cancelled, chargeback...). Orders are pulled lazily; invalid or
        duplicate orders are skipped and a failed batch marks all of its
        orders as failed. Nothing is raised for per-order or per-batch
        failures.

        Args:
            orders: Sync or async iterable of orders (None is treated as empty)
            validation_mode: Rule set for this call, defaults to the gateway's

        Returns:
            HistoricalSendResult: ``(True, None)`` if every order was sent,
            otherwise ``(False, {order_id: error message})``
        """
        if orders is None:
            return HistoricalSendResult(True, None)

        mode = ValidationMode(validation_mode or self.historical_validation)
        url = build_url(self.base_url, HISTORICAL_ROUTE)
        source = OrderSource(orders)
        failed_orders: Dict[str, str] = {}
        seen_ids: Set[str] = set()
        batches_sent = 0

        while not source.exhausted:
            batch = await self._fill_batch(source, mode, failed_orders, seen_ids)
            if not batch:
                break
            batches_sent += 1
            await self._send_batch(url, batch, batches_sent, failed_orders)

        logger.info(
            f"Historical import finished: {source.pulled} orders read, "
            f"{batches_sent} batches sent, {len(failed_orders)} failed"
        )

        if not failed_orders:
            return HistoricalSendResult(True, None)
        return HistoricalSendResult(False, failed_orders)

    async def _fill_batch(
        self,
        source: OrderSource,
        mode: ValidationMode,
        failed_orders: Dict[str, str],
        seen_ids: Set[str],
    ) -> List[_BatchEntry]:
        batch: List[_BatchEntry] = []

        # No se lee una orden más de las que caben en el lote
        while len(batch) < HISTORICAL_BATCH_SIZE:
            order = await source.pull()
            if order is END_OF_ORDERS:
                break

            order_id = order.order_id
            if order_id in seen_ids:
                logger.warning(f"Duplicate order id {order_id} in historical import, skipping")
                self._record_failure(failed_orders, order_id, f"Duplicate order id {order_id} in historical import")
                continue
            seen_ids.add(order_id)

            try:
                self._validator.validate(order, mode)
                batch.append((order_id, self._serialize(order)))
            except OrderValidationException as e:
                logger.warning(f"Historical order {order_id} failed validation: {e.message}")
                self._record_failure(failed_orders, order_id, e.message)

        return batch

    async def _send_batch(
        self,
        url: str,
        batch: List[_BatchEntry],
        batch_number: int,
        failed_orders: Dict[str, str],
    ) -> None:
        try:
            body = await self._transport.post(url, {"orders": [payload for _, payload in batch]})
            error = body.get("error")
            if error is not None:
                message = error.get("message") if isinstance(error, dict) else str(error)
                raise RiskifiedTransactionException(
                    message or "Riskified rejected the historical batch",
                    endpoint=url,
                )
            logger.info(f"Historical batch {batch_number} sent ({len(batch)} orders)")

        except RiskifiedTransactionException as e:
            logger.error(f"Historical batch {batch_number} failed ({len(batch)} orders): {e.message}")
            for order_id, _ in batch:
                self._record_failure(failed_orders, order_id, e.message)

    @staticmethod
    def _record_failure(failed_orders: Dict[str, str], order_id: str, message: str) -> None:
        previous = failed_orders.get(order_id)
        failed_orders[order_id] = f"{previous}; {message}" if previous else message

    def __repr__(self):
        """Detailed string representation of the gateway."""
        return (
            f"OrdersGateway("
            f"base_url='{self.base_url}', "
            f"shop_domain='{self.shop_domain}', "
            f"historical_validation={self.historical_validation.value})"
        )
