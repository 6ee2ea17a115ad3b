# app/core/config.py
from decimal import Decimal
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Metadatos
    PROJECT_NAME: str = "Banregio Currency API"
    PROJECT_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Servidor (el hosting asigna PORT)
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Rate limiting (requests/minuto por IP)
    RATE_LIMIT: str = "15/minute"
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Proxy inverso: la IP del cliente viene en X-Forwarded-For
    TRUST_PROXY: bool = False
    FORWARDED_ALLOW_IPS: str = "127.0.0.1"

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Cache de tasas
    CACHE_TTL_SECONDS: int = 300
    CACHE_SWEEP_INTERVAL_SECONDS: int = 300

    # Cadena de estrategias
    STRATEGY_ORDER: List[str] = ["page", "endpoints", "browser"]
    STRATEGY_TIMEOUT_SECONDS: float = 20.0
    STRATEGY_RETRIES: int = 2
    RETRY_BASE_DELAY_SECONDS: float = 1.0
    FALLBACK_ENABLED: bool = True

    # Fuente: Banregio
    BANK_PAGE_URLS: List[str] = [
        "https://www.banregio.com/divisas.php",
        "https://www.banregio.com/divisas",
    ]
    BANK_API_ENDPOINTS: List[str] = [
        "https://www.banregio.com/api/divisas",
        "https://www.banregio.com/ajax/exchange-rates",
    ]
    PAGE_TIMEOUT_SECONDS: float = 8.0

    # Navegador headless (Playwright)
    BROWSER_ENABLED: bool = False
    BROWSER_HEADLESS: bool = True
    BROWSER_MAX_CONCURRENCY: int = 2
    BROWSER_NAVIGATION_TIMEOUT_MS: int = 60000

    # Validación
    SUPPORTED_CURRENCIES: List[str] = ["USD", "EUR", "CAD", "GBP", "JPY"]
    MIN_AMOUNT: Decimal = Decimal("0.01")
    MAX_AMOUNT: Decimal = Decimal("100000")

    # TLS (si usas HTTPS directo)
    SSL_KEYFILE: str | None = "ssl/key.pem"
    SSL_CERTFILE: str | None = "ssl/cert.pem"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
