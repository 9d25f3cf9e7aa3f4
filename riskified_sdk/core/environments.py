"""
Entornos del servicio remoto de Riskified.

Cada entorno tiene una URL base fija; las rutas de la API se construyen
sobre ella.
"""

from enum import Enum


class RiskifiedEnvironment(str, Enum):
    """Entornos disponibles del servicio de análisis de riesgo."""

    SANDBOX = "sandbox"
    STAGING = "staging"
    PRODUCTION = "production"


ENVIRONMENT_URLS = {
    RiskifiedEnvironment.SANDBOX: "https://sandbox.riskified.com",
    RiskifiedEnvironment.STAGING: "https://s.riskified.com",
    RiskifiedEnvironment.PRODUCTION: "https://wh.riskified.com",
}


def get_env_url(environment: RiskifiedEnvironment) -> str:
    """
    Obtiene la URL base de un entorno.

    Args:
        environment: Entorno de Riskified

    Returns:
        str: URL base sin barra final
    """
    return ENVIRONMENT_URLS[RiskifiedEnvironment(environment)]


def build_url(base_url: str, route: str) -> str:
    """
    Une una URL base y una ruta evitando barras duplicadas.

    Args:
        base_url: URL base (ej: https://wh.riskified.com)
        route: Ruta de la API (ej: /api/create)

    Returns:
        str: URL completa
    """
    return f"{base_url.rstrip('/')}/{route.lstrip('/')}"
