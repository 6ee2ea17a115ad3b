# app/infra/banregio/page.py
import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests

from app.core.errors import UpstreamUnavailable
from app.domain.entities.rates import RateQuote
from app.infra.banregio.base import BROWSER_HEADERS, RateStrategy
from app.infra.banregio.parser import RatePair, extract_rates

logger = logging.getLogger(__name__)

# Respuestas más chicas suelen ser bloqueos o redirecciones vacías
MIN_CONTENT_LENGTH = 1000


class PageScrapeStrategy(RateStrategy):
    """GET directo de la página de divisas y extracción por patrones."""

    name = "page"

    def __init__(
        self,
        urls: List[str],
        session: Optional[requests.Session] = None,
        request_timeout: float = 8.0,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.urls = list(urls)
        self.session = session or requests.Session()
        self.request_timeout = request_timeout

    def _scrape(self) -> Dict[str, RatePair]:
        errores = []
        for url in self.urls:
            logger.info(f"🎯 Intentando scraping: {url}")
            try:
                resp = self.session.get(url, headers=BROWSER_HEADERS, timeout=self.request_timeout)
                resp.raise_for_status()
            except requests.RequestException as e:
                logger.warning(f"❌ Error en {url}: {e}")
                errores.append(f"{url}: {e}")
                continue

            html = resp.text or ""
            if len(html) < MIN_CONTENT_LENGTH:
                logger.warning(f"⚠️ Contenido muy pequeño en {url} ({len(html)} chars), saltando")
                errores.append(f"{url}: contenido de {len(html)} chars")
                continue

            tasas = extract_rates(html)
            if tasas:
                return tasas
            errores.append(f"{url}: sin tasas en el HTML")

        raise UpstreamUnavailable(
            "No se pudo obtener tasas por scraping: " + "; ".join(errores),
            strategy=self.name,
        )

    async def fetch(self) -> Dict[str, RateQuote]:
        pairs = await asyncio.to_thread(self._scrape)
        return self._quotes(pairs)


def probe_upstream(url: str, session: Optional[requests.Session] = None, timeout: float = 5.0) -> Dict[str, Any]:
    """Un solo GET corto para saber si el sitio del banco responde."""
    session = session or requests.Session()
    try:
        resp = session.get(url, headers=BROWSER_HEADERS, timeout=timeout)
    except requests.RequestException as e:
        return {"reachable": False, "status_code": None, "content_size": 0, "error": str(e)}
    return {
        "reachable": 200 <= resp.status_code < 400,
        "status_code": resp.status_code,
        "content_size": len(resp.text or ""),
        "error": None,
    }
