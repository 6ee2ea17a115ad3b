# app/infra/cache/rate_cache.py
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from app.domain.entities.rates import RateQuote

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RateCache:
    """Cache en memoria moneda -> RateQuote con TTL.

    La vigencia se mide contra ``quote.fetched_at``; una entrada con edad
    mayor o igual al TTL ya no se devuelve y la limpia ``sweep()``.
    """

    def __init__(self, ttl_seconds: int = 300, clock: Clock = utcnow):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock
        self._entries: Dict[str, RateQuote] = {}

    def _expired(self, quote: RateQuote) -> bool:
        return self.clock() - quote.fetched_at >= self.ttl

    def get(self, currency: str) -> Optional[RateQuote]:
        quote = self._entries.get(currency)
        if quote is None:
            return None
        if self._expired(quote):
            self._entries.pop(currency, None)
            return None
        return quote

    def set(self, quote: RateQuote) -> None:
        self._entries[quote.currency] = quote

    def clear(self) -> int:
        removed = len(self._entries)
        self._entries.clear()
        return removed

    def sweep(self) -> int:
        expired = [code for code, quote in self._entries.items() if self._expired(quote)]
        for code in expired:
            del self._entries[code]
        if expired:
            logger.info(f"🧹 Cache limpiado: {len(expired)} entradas eliminadas, quedan {len(self)}")
        return len(expired)

    def snapshot(self) -> Dict[str, RateQuote]:
        return {code: q for code, q in self._entries.items() if not self._expired(q)}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, currency: str) -> bool:
        return self.get(currency) is not None


async def sweep_periodically(cache: RateCache, interval_seconds: float) -> None:
    """Tarea de fondo: purga entradas vencidas hasta ser cancelada."""
    while True:
        await asyncio.sleep(interval_seconds)
        cache.sweep()
