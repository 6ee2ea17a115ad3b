# app/domain/entities/rates.py
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class Operation(str, Enum):
    BUY = "buy"
    SELL = "sell"


class RateSource(str, Enum):
    SCRAPED = "scraped"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ConversionRequest:
    operation: Operation
    currency: str
    amount: Decimal


@dataclass(frozen=True)
class RateQuote:
    currency: str
    buy_rate: Decimal
    sell_rate: Decimal
    fetched_at: datetime
    source: RateSource
    strategy: str

    @property
    def spread_ok(self) -> bool:
        return self.sell_rate >= self.buy_rate

    def rate_for(self, operation: Operation) -> Decimal:
        return self.buy_rate if operation is Operation.BUY else self.sell_rate


@dataclass(frozen=True)
class ConversionResult:
    mxn: Decimal
    rate: Decimal
    operation: Operation
    currency: str
    amount: Decimal
    source: RateSource
    timestamp: datetime
    quote: RateQuote
