# app/domain/services/rate_provider.py
import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, Dict, List, Sequence

from app.core.errors import RateUnavailable, UpstreamUnavailable
from app.domain.entities.rates import RateQuote, RateSource
from app.infra.banregio.base import RateStrategy
from app.infra.cache.rate_cache import RateCache

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class RateProvider:
    """Obtiene tasas con cache y una cadena ordenada de estrategias.

    Política: gana la primera estrategia (en el orden configurado) cuya
    tabla incluya la moneda pedida. No se comparan resultados entre
    estrategias. Toda la tabla ganadora se guarda en cache.
    """

    def __init__(
        self,
        strategies: Sequence[RateStrategy],
        cache: RateCache,
        retries: int = 2,
        retry_base_delay: float = 1.0,
        supported_currencies: Sequence[str] = ("USD", "EUR", "CAD", "GBP", "JPY"),
        sleep: Sleep = asyncio.sleep,
    ):
        self.strategies = list(strategies)
        self.cache = cache
        self.retries = retries
        self.retry_base_delay = retry_base_delay
        self.supported_currencies = list(supported_currencies)
        self._sleep = sleep

    async def _attempt(self, strategy: RateStrategy) -> Dict[str, RateQuote]:
        try:
            return await asyncio.wait_for(strategy.fetch(), timeout=strategy.timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable(
                f"Timeout de {strategy.timeout}s en '{strategy.name}'", strategy=strategy.name
            ) from e
        except UpstreamUnavailable:
            raise
        except Exception as e:
            # el sitio es terceros: cualquier rareza cuenta como fallo de la estrategia
            logger.exception(f"💥 Error inesperado en estrategia '{strategy.name}'")
            raise UpstreamUnavailable(str(e) or type(e).__name__, strategy=strategy.name) from e

    async def _run(self, strategy: RateStrategy) -> Dict[str, RateQuote]:
        """Ejecuta una estrategia con reintentos y backoff exponencial con jitter."""
        if strategy.source is RateSource.FALLBACK:
            return await self._attempt(strategy)

        for attempt in range(self.retries + 1):
            try:
                return await self._attempt(strategy)
            except UpstreamUnavailable as e:
                if attempt >= self.retries:
                    raise
                delay = self.retry_base_delay * (2**attempt) + random.uniform(0, self.retry_base_delay)
                logger.warning(
                    "🔄 '%s' intento %d/%d falló: %s. Reintentando en %.1fs...",
                    strategy.name,
                    attempt + 1,
                    self.retries + 1,
                    e,
                    delay,
                )
                await self._sleep(delay)
        raise AssertionError("unreachable")

    def _store(self, table: Dict[str, RateQuote]) -> None:
        for quote in table.values():
            # el respaldo nunca pisa una tasa vigente obtenida del sitio
            if quote.source is RateSource.FALLBACK and self.cache.get(quote.currency) is not None:
                continue
            if not quote.spread_ok:
                logger.warning(
                    f"⚠️ Spread invertido para {quote.currency} ({quote.strategy}): "
                    f"compra {quote.buy_rate} > venta {quote.sell_rate}"
                )
            self.cache.set(quote)

    async def get_rate(self, currency: str) -> RateQuote:
        cached = self.cache.get(currency)
        if cached is not None:
            logger.info(f"✅ Usando tasa de {currency} desde cache")
            return cached

        logger.info(f"🔍 Obteniendo tasas frescas para {currency}...")
        errores: Dict[str, str] = {}
        for strategy in self.strategies:
            try:
                table = await self._run(strategy)
            except UpstreamUnavailable as e:
                logger.warning(f"⚠️ Estrategia '{strategy.name}' falló: {e}")
                errores[strategy.name] = str(e)
                continue

            quote = table.get(currency)
            if quote is None:
                errores[strategy.name] = f"sin tasa para {currency}"
                continue

            self._store(table)
            if quote.source is RateSource.FALLBACK:
                logger.warning(f"📊 Usando tasas de respaldo para {currency}")
            else:
                logger.info(f"✅ Tasas obtenidas por '{strategy.name}'")
            return quote

        raise RateUnavailable(currency, errores)

    async def get_rates(self) -> Dict[str, RateQuote]:
        rates: Dict[str, RateQuote] = {}
        for code in self.supported_currencies:
            try:
                rates[code] = await self.get_rate(code)
            except RateUnavailable as e:
                logger.warning(f"⚠️ {e.message}")
        return rates

    async def diagnose(self) -> Dict[str, Any]:
        """Corre cada estrategia en vivo una vez, sin cache ni reintentos."""
        resultados: List[Dict[str, Any]] = []
        fallback: Dict[str, Any] = {}
        for strategy in self.strategies:
            if strategy.source is RateSource.FALLBACK:
                table = await strategy.fetch()
                fallback = {code: {"buy": float(q.buy_rate), "sell": float(q.sell_rate)} for code, q in table.items()}
                continue

            start = time.perf_counter()
            entry: Dict[str, Any] = {"strategy": strategy.name, "ok": False, "currencies": [], "error": None}
            try:
                table = await self._attempt(strategy)
                entry["ok"] = True
                entry["currencies"] = sorted(table)
            except UpstreamUnavailable as e:
                entry["error"] = str(e)
            entry["elapsed_ms"] = int((time.perf_counter() - start) * 1000)
            resultados.append(entry)

        return {"strategies": resultados, "fallback": fallback, "cache_entries": len(self.cache)}
