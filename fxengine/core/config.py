# fxengine/core/config.py
from functools import lru_cache
from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Metadatos
    PROJECT_NAME: str = "FX Conversion API"
    PROJECT_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"

    # Servidor HTTP
    HTTP_HOST: str = "0.0.0.0"
    HTTP_PORT: int = 8080
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # TLS (si usas HTTPS directo)
    SSL_KEYFILE: Optional[str] = None
    SSL_CERTFILE: Optional[str] = None

    # Redis (cache de tasas y de resultados)
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_USERNAME: Optional[str] = None
    REDIS_PASSWORD: Optional[str] = None
    REDIS_REQUIRE_AUTH: bool = False
    CACHE_TTL_SECONDS: int = 300

    # Rate limiting (requests/minuto por IP)
    RATE_LIMIT: str = "60/minute"

    # Proveedor de tasas
    EXCHANGE_PROVIDER: str = "exchangerate.host"
    EXCHANGE_API_KEY: str = ""
    EXCHANGE_HTTP_TIMEOUT_SECONDS: float = 10.0
    EXCHANGERATE_HOST_BASE_URL: str = "https://api.exchangerate.host"
    EXCHANGERATE_API_BASE_URL: str = "https://v6.exchangerate-api.com/v6"

    # BCB / PTAX
    BCB_API_BASE_URL: str = "https://olinda.bcb.gov.br/olinda/servico/PTAX/versao/v1/odata/"
    BCB_TIMEOUT_SECONDS: float = 10.0
    BCB_MAX_RETRIES: int = 3
    BCB_MAX_BACK_DAYS: int = 0

    # Comisiones
    FEE_API_URL: str = ""
    EXCHANGE_FEE_PERCENT: float = 0.0
    FEE_API_TIMEOUT_SECONDS: float = 5.0
    FEE_FAILURE_POLICY: Literal["fail", "zero"] = "fail"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["text", "json"] = "text"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_values(self) -> "Settings":
        if self.CACHE_TTL_SECONDS <= 0:
            self.CACHE_TTL_SECONDS = 300
        # Falla al arrancar en vez de recibir NOAUTH en cada request.
        if self.REDIS_URL and self.REDIS_REQUIRE_AUTH and not self.REDIS_PASSWORD:
            raise ValueError(
                "redis requires authentication (REDIS_REQUIRE_AUTH=true) but REDIS_PASSWORD is empty"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Dependencia FastAPI; una sola instancia por proceso."""
    return Settings()


settings = get_settings()
