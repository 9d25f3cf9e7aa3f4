"""
Results returned by the Riskified API.

Single-order sends and webhook (un)registration both answer with exactly one
of a success object or an ``error`` object. Each outcome is its own model so
callers branch on the type, never on a pair of nullable fields.
"""

from typing import Any, ClassVar, Dict, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from riskified_sdk.utils.error_handler import ErrorCode, RiskifiedTransactionException

ACCEPTED_TRANSACTION_STATUSES = frozenset({"created", "updated", "submitted"})


class TransactionSuccess(BaseModel):
    """Order accepted by Riskified."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    is_successful: ClassVar[bool] = True

    status: str
    id: Optional[int] = None
    description: Optional[str] = None


class TransactionFailure(BaseModel):
    """Order rejected by Riskified."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    is_successful: ClassVar[bool] = False

    message: str


TransactionResult = Union[TransactionSuccess, TransactionFailure]


class RegistrationSuccess(BaseModel):
    """Webhook (un)registration accepted."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    is_successful: ClassVar[bool] = True

    message: str


class RegistrationFailure(BaseModel):
    """Webhook (un)registration rejected."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    is_successful: ClassVar[bool] = False

    message: str


RegistrationResult = Union[RegistrationSuccess, RegistrationFailure]


class HistoricalSendResult(NamedTuple):
    """Outcome of a historical import: failed_orders maps order id to error message."""

    success: bool
    failed_orders: Optional[Dict[str, str]]


def _parse_exclusive(
    body: Dict[str, Any],
    success_key: str,
    success_model,
    failure_model,
    endpoint: Optional[str],
):
    success_payload = body.get(success_key)
    failure_payload = body.get("error")

    if success_payload is not None and failure_payload is not None:
        raise RiskifiedTransactionException(
            f"Ambiguous response from server: both '{success_key}' and 'error' present",
            endpoint=endpoint,
            error_code=ErrorCode.INVALID_RESPONSE,
        )
    if success_payload is None and failure_payload is None:
        raise RiskifiedTransactionException(
            f"Invalid response from server: neither '{success_key}' nor 'error' present",
            endpoint=endpoint,
            error_code=ErrorCode.INVALID_RESPONSE,
        )

    model = success_model if success_payload is not None else failure_model
    payload = success_payload if success_payload is not None else failure_payload
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise RiskifiedTransactionException(
            f"Malformed response from server: {e.errors()[0]['msg'] if e.errors() else e}",
            endpoint=endpoint,
            error_code=ErrorCode.INVALID_RESPONSE,
        ) from e


def parse_transaction_result(body: Dict[str, Any], endpoint: Optional[str] = None) -> TransactionResult:
    """
    Decode a single-order response body.

    Args:
        body: Decoded JSON object
        endpoint: URL the body came from, for error context

    Returns:
        TransactionResult: TransactionSuccess or TransactionFailure

    Raises:
        RiskifiedTransactionException: If both or neither arm is present, or an arm is malformed
    """
    return _parse_exclusive(body, "order", TransactionSuccess, TransactionFailure, endpoint)


def parse_registration_result(body: Dict[str, Any], endpoint: Optional[str] = None) -> RegistrationResult:
    """
    Decode a webhook registration response body.

    Raises:
        RiskifiedTransactionException: If both or neither arm is present, or an arm is malformed
    """
    return _parse_exclusive(body, "registration_result", RegistrationSuccess, RegistrationFailure, endpoint)
