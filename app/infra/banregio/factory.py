# app/infra/banregio/factory.py
import logging
from typing import List, Optional

import requests

from app.core.config import Settings
from app.infra.banregio.base import RateStrategy
from app.infra.banregio.endpoints import AlternateEndpointStrategy
from app.infra.banregio.fallback import StaticFallbackStrategy
from app.infra.banregio.page import PageScrapeStrategy
from app.infra.cache.rate_cache import Clock, utcnow

logger = logging.getLogger(__name__)


def attempt_budget(settings: Settings, urls: List[str]) -> float:
    """Timeout por intento que alcanza para recorrer todas las URLs con su timeout de request."""
    return max(settings.STRATEGY_TIMEOUT_SECONDS, len(urls) * settings.PAGE_TIMEOUT_SECONDS + 1)


def build_strategies(
    settings: Settings,
    session: Optional[requests.Session] = None,
    clock: Clock = utcnow,
) -> List[RateStrategy]:
    """Arma la cadena en el orden de STRATEGY_ORDER; el fallback siempre va al final."""
    session = session or requests.Session()
    common = {"timeout": settings.STRATEGY_TIMEOUT_SECONDS, "clock": clock}
    strategies: List[RateStrategy] = []

    for name in settings.STRATEGY_ORDER:
        if name == "page":
            strategies.append(
                PageScrapeStrategy(
                    settings.BANK_PAGE_URLS,
                    session=session,
                    request_timeout=settings.PAGE_TIMEOUT_SECONDS,
                    timeout=attempt_budget(settings, settings.BANK_PAGE_URLS),
                    clock=clock,
                )
            )
        elif name == "endpoints":
            strategies.append(
                AlternateEndpointStrategy(
                    settings.BANK_API_ENDPOINTS,
                    session=session,
                    request_timeout=settings.PAGE_TIMEOUT_SECONDS,
                    timeout=attempt_budget(settings, settings.BANK_API_ENDPOINTS),
                    clock=clock,
                )
            )
        elif name == "browser":
            if not settings.BROWSER_ENABLED:
                logger.info("Estrategia 'browser' deshabilitada (BROWSER_ENABLED=false)")
                continue
            # import tardío: playwright solo se carga si el navegador está habilitado
            from app.infra.banregio.browser import HeadlessBrowserStrategy

            strategies.append(
                HeadlessBrowserStrategy(
                    settings.BANK_PAGE_URLS[0],
                    max_concurrency=settings.BROWSER_MAX_CONCURRENCY,
                    headless=settings.BROWSER_HEADLESS,
                    navigation_timeout_ms=settings.BROWSER_NAVIGATION_TIMEOUT_MS,
                    **common,
                )
            )
        else:
            raise ValueError(f"Estrategia desconocida en STRATEGY_ORDER: {name!r}")

    if settings.FALLBACK_ENABLED:
        strategies.append(StaticFallbackStrategy(**common))

    logger.info(f"📋 Cadena de estrategias: {[s.name for s in strategies]}")
    return strategies
