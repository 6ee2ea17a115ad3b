# app/infra/banregio/fallback.py
from decimal import Decimal
from typing import Dict

from app.domain.entities.rates import RateQuote, RateSource
from app.infra.banregio.base import RateStrategy
from app.infra.banregio.parser import RatePair

# Tasas aproximadas Banregio (compra, venta), julio 2025. Último recurso.
FALLBACK_RATES: Dict[str, RatePair] = {
    "USD": (Decimal("17.80"), Decimal("19.30")),
    "EUR": (Decimal("20.20"), Decimal("21.80")),
    "CAD": (Decimal("13.10"), Decimal("14.20")),
    "GBP": (Decimal("22.50"), Decimal("24.30")),
    "JPY": (Decimal("0.120"), Decimal("0.140")),
}


class StaticFallbackStrategy(RateStrategy):
    name = "fallback"
    source = RateSource.FALLBACK

    def __init__(self, rates: Dict[str, RatePair] | None = None, **kwargs):
        super().__init__(**kwargs)
        self.rates = dict(FALLBACK_RATES if rates is None else rates)

    async def fetch(self) -> Dict[str, RateQuote]:
        return self._quotes(self.rates)
