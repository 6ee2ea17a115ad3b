# app/domain/services/conversion_service.py
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Tuple

from app.domain.entities.rates import ConversionRequest, ConversionResult, RateQuote
from app.domain.services.rate_provider import RateProvider
from app.infra.cache.rate_cache import Clock, utcnow

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def convert(request: ConversionRequest, quote: RateQuote) -> Decimal:
    """Monto en MXN: compra usa buy_rate, venta usa sell_rate."""
    return round2(request.amount * quote.rate_for(request.operation))


class ConversionService:
    def __init__(self, provider: RateProvider, clock: Clock = utcnow):
        self.provider = provider
        self.clock = clock

    async def convert(self, request: ConversionRequest) -> Tuple[ConversionResult, bool]:
        """Devuelve (resultado, venía_de_cache)."""
        cached = request.currency in self.provider.cache
        quote = await self.provider.get_rate(request.currency)
        mxn = convert(request, quote)
        logger.info(
            f"✅ Conversión: {request.amount} {request.currency} ({request.operation.value}) "
            f"= {mxn} MXN (tasa: {quote.rate_for(request.operation)}, fuente: {quote.source.value})"
        )
        result = ConversionResult(
            mxn=mxn,
            rate=quote.rate_for(request.operation),
            operation=request.operation,
            currency=request.currency,
            amount=request.amount,
            source=quote.source,
            timestamp=self.clock(),
            quote=quote,
        )
        return result, cached
