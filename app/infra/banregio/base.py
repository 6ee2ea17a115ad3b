# app/infra/banregio/base.py
from abc import ABC, abstractmethod
from typing import Dict

from app.domain.entities.rates import RateQuote, RateSource
from app.infra.banregio.parser import RatePair
from app.infra.cache.rate_cache import Clock, utcnow

# Headers de navegador real; sin ellos el sitio responde páginas vacías
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/127.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "es-MX,es;q=0.9,en;q=0.8",
}


class RateStrategy(ABC):
    """Una forma de obtener la tabla de tasas del banco."""

    name: str
    source: RateSource = RateSource.SCRAPED

    def __init__(self, timeout: float = 20.0, clock: Clock = utcnow):
        self.timeout = timeout
        self.clock = clock

    @abstractmethod
    async def fetch(self) -> Dict[str, RateQuote]:
        """Devuelve {codigo: RateQuote} o lanza UpstreamUnavailable."""

    def _quotes(self, pairs: Dict[str, RatePair]) -> Dict[str, RateQuote]:
        now = self.clock()
        return {
            code: RateQuote(
                currency=code,
                buy_rate=buy,
                sell_rate=sell,
                fetched_at=now,
                source=self.source,
                strategy=self.name,
            )
            for code, (buy, sell) in pairs.items()
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} timeout={self.timeout}>"
