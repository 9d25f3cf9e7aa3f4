"""
Sistema de manejo de errores del SDK.

Este módulo define todas las excepciones personalizadas del SDK
y proporciona utilidades para manejo consistente de errores.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """
    Códigos de error estandardizados para el SDK.
    """

    # Errores generales
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Errores de pedidos
    INVALID_ORDER_DATA = "INVALID_ORDER_DATA"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"

    # Errores de transacción con Riskified
    TRANSACTION_FAILED = "TRANSACTION_FAILED"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    INVALID_RESPONSE = "INVALID_RESPONSE"

    # Errores de notificaciones
    INVALID_WEBHOOK_SIGNATURE = "INVALID_WEBHOOK_SIGNATURE"
    INVALID_NOTIFICATION = "INVALID_NOTIFICATION"
    RECEIVER_STATE_ERROR = "RECEIVER_STATE_ERROR"


class ErrorSeverity(Enum):
    """
    Niveles de severidad para errores.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AppException(Exception):
    """
    Excepción base para todas las excepciones personalizadas del SDK.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        is_retryable: bool = False,
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje de error
            error_code: Código de error estandardizado
            details: Información adicional del error
            status_code: Código HTTP asociado
            severity: Severidad del error
            is_retryable: Si la operación puede reintentarse
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.severity = severity
        self.is_retryable = is_retryable
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convierte la excepción a diccionario.

        Returns:
            Dict: Representación de la excepción
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "details": self.details,
            "status_code": self.status_code,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        """String representation del error."""
        return f"{self.error_code.value}: {self.message}"


class OrderValidationException(AppException):
    """
    Excepción para pedidos con campos faltantes o mal formados.

    Nunca es causada por la red; afecta a un solo pedido.
    """

    def __init__(
        self,
        message: str,
        order_id: Union[str, int, None] = None,
        field: Optional[str] = None,
        invalid_value: Any = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de validación.

        Args:
            message: Mensaje de error
            order_id: ID del pedido en el sistema del comercio
            field: Campo que falló la validación
            invalid_value: Valor que causó el error
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.MISSING_REQUIRED_FIELD if invalid_value is None else ErrorCode.INVALID_ORDER_DATA,
            status_code=422,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.order_id = order_id
        self.field = field
        self.invalid_value = invalid_value

        self.details.update(
            {
                "order_id": str(order_id) if order_id is not None else None,
                "field": field,
                "invalid_value": str(invalid_value) if invalid_value is not None else None,
            }
        )


class RiskifiedTransactionException(AppException):
    """
    Excepción para errores de la transacción con Riskified.

    Cubre errores de red, timeouts, respuestas no 2xx y cuerpos de
    respuesta vacíos, mal formados o ambiguos.
    """

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        http_status: Optional[int] = None,
        error_code: ErrorCode = ErrorCode.TRANSACTION_FAILED,
        **kwargs,
    ):
        """
        Inicializa la excepción de transacción.

        Args:
            message: Mensaje de error
            endpoint: URL que falló
            http_status: Código de respuesta del servidor, si hubo respuesta
            error_code: Código de error estandardizado
            **kwargs: Argumentos adicionales para AppException
        """
        severity = ErrorSeverity.MEDIUM
        if http_status and http_status >= 500:
            severity = ErrorSeverity.HIGH

        super().__init__(
            message=message,
            error_code=error_code,
            status_code=http_status or 503,
            severity=severity,
            is_retryable=http_status is None or http_status >= 500,
            **kwargs,
        )
        self.endpoint = endpoint
        self.http_status = http_status

        self.details.update({"endpoint": endpoint, "http_status": http_status})


class AuthenticationException(AppException):
    """
    Excepción para notificaciones entrantes con firma HMAC inválida.
    """

    def __init__(self, message: str = "Invalid notification signature", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_WEBHOOK_SIGNATURE,
            status_code=401,
            severity=ErrorSeverity.MEDIUM,
            **kwargs,
        )


class NotificationParseException(AppException):
    """
    Excepción para notificaciones autenticadas cuyo cuerpo no se puede decodificar.
    """

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_NOTIFICATION,
            status_code=400,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )


class NotificationReceiverException(AppException):
    """
    Excepción para uso indebido del ciclo de vida del receptor.
    """

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.RECEIVER_STATE_ERROR,
            status_code=500,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )


# === FUNCIONES DE UTILIDAD ===

# El detalle de errores ajenos al SDK solo va al log
GENERIC_ERROR_MESSAGE = "Internal error while processing the request"


def create_error_response(exception: Union[AppException, Exception]) -> Dict[str, Any]:
    """
    Crea respuesta de error estandardizada.

    Args:
        exception: Excepción a convertir

    Returns:
        Dict: Respuesta de error
    """
    if isinstance(exception, AppException):
        return {
            "error": {
                "message": exception.message,
                "error_code": exception.error_code.value,
            }
        }

    return {
        "error": {
            "message": GENERIC_ERROR_MESSAGE,
            "error_code": ErrorCode.UNKNOWN_ERROR.value,
        }
    }


def log_error(
    exception: Exception,
    context: Optional[Dict[str, Any]] = None,
    level: int = logging.ERROR,
) -> None:
    """
    Loggea un error de manera consistente.

    Args:
        exception: Excepción a loggear
        context: Contexto adicional
        level: Nivel de logging
    """
    context = context or {}

    log_data = {
        "exception_type": type(exception).__name__,
        "exception_message": str(exception),
        **context,
    }

    if isinstance(exception, AppException):
        message = f"{exception.error_code.value}: {exception.message}"
        log_data.update(
            {
                "error_code": exception.error_code.value,
                "severity": exception.severity.value,
                "is_retryable": exception.is_retryable,
            }
        )
    else:
        message = f"Unhandled exception: {type(exception).__name__}: {str(exception)}"

    logger.log(level, message, extra=log_data)
