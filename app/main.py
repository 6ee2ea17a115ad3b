# app/main.py
import asyncio
import contextlib
import logging
from typing import Optional

import requests
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import register_exception_handlers
from app.api.router import api_router
from app.core.config import Settings, settings
from app.core.limiter import limiter
from app.core.logging import setup_logging
from app.domain.services.conversion_service import ConversionService
from app.domain.services.rate_provider import RateProvider
from app.infra.banregio.factory import build_strategies
from app.infra.cache.rate_cache import RateCache, sweep_periodically

logger = logging.getLogger(__name__)


def build_provider(app_settings: Settings, http_session: requests.Session) -> RateProvider:
    cache = RateCache(ttl_seconds=app_settings.CACHE_TTL_SECONDS)
    return RateProvider(
        build_strategies(app_settings, session=http_session, clock=cache.clock),
        cache,
        retries=app_settings.STRATEGY_RETRIES,
        retry_base_delay=app_settings.RETRY_BASE_DELAY_SECONDS,
        supported_currencies=app_settings.SUPPORTED_CURRENCIES,
    )


def create_app(
    app_settings: Optional[Settings] = None,
    provider: Optional[RateProvider] = None,
    http_session: Optional[requests.Session] = None,
) -> FastAPI:
    app_settings = app_settings or settings
    setup_logging(app_settings.LOG_LEVEL)

    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        version=app_settings.PROJECT_VERSION,
    )

    # CORS: con "*" no se envían credenciales
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials="*" not in app_settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    http_session = http_session or requests.Session()
    provider = provider or build_provider(app_settings, http_session)

    app.state.settings = app_settings
    app.state.http_session = http_session
    app.state.provider = provider
    app.state.conversion_service = ConversionService(provider)

    # Rate limiting
    app.state.limiter = limiter
    register_exception_handlers(app)

    # Routers
    app.include_router(api_router)

    @app.on_event("startup")
    async def on_startup() -> None:
        logger.info(f"🚀 {app_settings.PROJECT_NAME} iniciada ({app_settings.ENVIRONMENT})")
        app.state.sweeper = asyncio.create_task(
            sweep_periodically(provider.cache, app_settings.CACHE_SWEEP_INTERVAL_SECONDS)
        )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        app.state.sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await app.state.sweeper
        http_session.close()
        logger.info("🛑 Servidor cerrado correctamente")

    @app.get("/")
    async def root():
        return {
            "service": app_settings.PROJECT_NAME,
            "version": app_settings.PROJECT_VERSION,
            "status": "ok",
            "target": app_settings.BANK_PAGE_URLS[0],
            "strategies": [s.name for s in provider.strategies],
            "endpoints": [
                "GET    /api/health",
                "POST   /api/convert",
                "GET    /api/convert/{operation}/{currency}/{amount}",
                "GET    /api/rates",
                "GET    /api/currencies",
                "GET    /api/diagnostics",
                "GET    /api/debug/{operation}/{currency}/{amount}",
                "DELETE /api/cache",
            ],
            "example": "/api/convert/buy/USD/300",
        }

    return app


app = create_app()
