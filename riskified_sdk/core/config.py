"""
Configuración centralizada del SDK.

Este módulo maneja todas las variables de entorno y configuraciones
del SDK usando Pydantic Settings para validación automática.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from riskified_sdk.core.environments import RiskifiedEnvironment, get_env_url


class Settings(BaseSettings):
    """
    Configuración del SDK usando Pydantic Settings.

    Todas las configuraciones se cargan desde variables de entorno
    con valores por defecto apropiados para el entorno sandbox.
    """

    # === CONFIGURACIÓN BÁSICA ===
    DEBUG: bool = Field(default=False)

    # === CONFIGURACIÓN DEL COMERCIO ===
    RISKIFIED_AUTH_TOKEN: str = Field(default="")
    RISKIFIED_SHOP_DOMAIN: str = Field(default="")
    RISKIFIED_ENVIRONMENT: RiskifiedEnvironment = Field(default=RiskifiedEnvironment.SANDBOX)
    RISKIFIED_BASE_URL: Optional[str] = Field(default=None)
    RISKIFIED_REQUEST_TIMEOUT: float = Field(default=30.0)
    # Los pedidos históricos pueden no tener campos obligatorios para pedidos en vivo
    RISKIFIED_WEAK_HISTORICAL_VALIDATION: bool = Field(default=True)

    # === CONFIGURACIÓN DEL SERVIDOR DE NOTIFICACIONES ===
    NOTIFICATIONS_WEBHOOK_URL: Optional[str] = Field(default=None)
    NOTIFICATIONS_HOST: str = Field(default="0.0.0.0")
    NOTIFICATIONS_PORT: int = Field(default=5000)
    NOTIFICATIONS_PATH: str = Field(default="/notifications")

    # === CONFIGURACIÓN DE LOGGING ===
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE_PATH: Optional[str] = Field(default=None)
    LOG_MAX_SIZE_MB: int = Field(default=10)
    LOG_BACKUP_COUNT: int = Field(default=5)
    LOG_FORMAT: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "allow",
    }

    @field_validator("RISKIFIED_ENVIRONMENT", mode="before")
    @classmethod
    def normalize_environment(cls, v):
        """Acepta el nombre del entorno sin importar mayúsculas."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("RISKIFIED_BASE_URL")
    @classmethod
    def validate_base_url(cls, v):
        """Valida que la URL base tenga esquema http(s)."""
        if v is None or not v.strip():
            return None
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("RISKIFIED_BASE_URL debe comenzar con http:// o https://")
        return v

    @field_validator("RISKIFIED_REQUEST_TIMEOUT")
    @classmethod
    def validate_timeout(cls, v):
        """Valida que el timeout sea positivo."""
        if v <= 0:
            raise ValueError("RISKIFIED_REQUEST_TIMEOUT debe ser mayor que 0")
        return v

    @field_validator("NOTIFICATIONS_PORT")
    @classmethod
    def validate_port(cls, v):
        """Valida que el puerto esté en rango válido."""
        if not 1 <= v <= 65535:
            raise ValueError("NOTIFICATIONS_PORT debe estar entre 1 y 65535")
        return v

    @field_validator("NOTIFICATIONS_PATH")
    @classmethod
    def validate_path(cls, v):
        """Valida que la ruta del webhook sea absoluta."""
        if not v.startswith("/"):
            raise ValueError("NOTIFICATIONS_PATH debe comenzar con '/'")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Valida que el nivel de log sea válido."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL debe ser uno de: {valid_levels}")
        return v.upper()

    @property
    def riskified_base_url(self) -> str:
        """URL base efectiva: la explícita si existe, si no la del entorno."""
        if self.RISKIFIED_BASE_URL:
            return self.RISKIFIED_BASE_URL
        return get_env_url(self.RISKIFIED_ENVIRONMENT)

    @property
    def is_production(self) -> bool:
        """Verifica si apunta al entorno de producción."""
        return self.RISKIFIED_ENVIRONMENT == RiskifiedEnvironment.PRODUCTION


@lru_cache()
def get_settings() -> Settings:
    """
    Obtiene instancia singleton de configuración.

    Returns:
        Settings: Instancia de configuración
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Recarga la configuración (útil para testing).

    Returns:
        Settings: Nueva instancia de configuración
    """
    get_settings.cache_clear()
    return get_settings()


def validate_required_settings(settings: Optional[Settings] = None) -> bool:
    """
    Valida que las credenciales del comercio estén presentes.

    Returns:
        bool: True si todas las configuraciones están presentes

    Raises:
        ValueError: Si alguna configuración requerida falta
    """
    settings = settings or get_settings()

    required_fields = ["RISKIFIED_AUTH_TOKEN", "RISKIFIED_SHOP_DOMAIN"]
    missing_fields = [
        field for field in required_fields if not str(getattr(settings, field, "") or "").strip()
    ]

    if missing_fields:
        raise ValueError(f"Configuraciones requeridas faltantes: {missing_fields}")

    return True
