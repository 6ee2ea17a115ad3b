# app/infra/banregio/endpoints.py
import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests

from app.core.errors import UpstreamUnavailable
from app.domain.entities.rates import RateQuote
from app.infra.banregio.base import BROWSER_HEADERS, RateStrategy
from app.infra.banregio.parser import RatePair, parse_api_payload

logger = logging.getLogger(__name__)

JSON_HEADERS = {
    **BROWSER_HEADERS,
    "Accept": "application/json, text/javascript, */*; q=0.01",
    "X-Requested-With": "XMLHttpRequest",
}


class AlternateEndpointStrategy(RateStrategy):
    """Prueba endpoints JSON que el sitio usa (o usó) por AJAX."""

    name = "endpoints"

    def __init__(
        self,
        endpoints: List[str],
        session: Optional[requests.Session] = None,
        request_timeout: float = 10.0,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.endpoints = list(endpoints)
        self.session = session or requests.Session()
        self.request_timeout = request_timeout

    def _probe(self) -> Dict[str, RatePair]:
        errores = []
        for endpoint in self.endpoints:
            logger.info(f"🌐 Intentando API: {endpoint}")
            try:
                resp = self.session.get(endpoint, headers=JSON_HEADERS, timeout=self.request_timeout)
                resp.raise_for_status()
                data = resp.json()
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"⚠️ API {endpoint} falló: {e}")
                errores.append(f"{endpoint}: {e}")
                continue

            tasas = parse_api_payload(data)
            if tasas:
                logger.info(f"✅ Respuesta JSON útil de {endpoint}")
                return tasas
            errores.append(f"{endpoint}: JSON sin tasas reconocibles")

        raise UpstreamUnavailable(
            "No se encontraron APIs funcionales: " + "; ".join(errores),
            strategy=self.name,
        )

    async def fetch(self) -> Dict[str, RateQuote]:
        pairs = await asyncio.to_thread(self._probe)
        return self._quotes(pairs)
