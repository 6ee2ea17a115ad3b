# app/schemas/conversion_schemas.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.entities.rates import ConversionResult, RateQuote


class ConvertBody(BaseModel):
    """Cuerpo de POST /api/convert; la validación real la hace el dominio (400)."""

    model_config = ConfigDict(extra="ignore")

    operation: Optional[Any] = Field(None, examples=["buy"])
    currency: Optional[Any] = Field(None, examples=["USD"])
    amount: Optional[Any] = Field(None, examples=[300])


class Meta(BaseModel):
    timestamp: str
    processing_time_ms: Optional[int] = None
    method: Optional[str] = None
    cached: Optional[bool] = None


class ConversionData(BaseModel):
    mxn: float
    rate: float
    operation: str
    currency: str
    amount: float
    source: str
    timestamp: str
    buy_rate: float
    sell_rate: float
    fetched_at: str
    strategy: str

    @classmethod
    def from_result(cls, result: ConversionResult) -> "ConversionData":
        return cls(
            mxn=float(result.mxn),
            rate=float(result.rate),
            operation=result.operation.value,
            currency=result.currency,
            amount=float(result.amount),
            source=result.source.value,
            timestamp=result.timestamp.isoformat(),
            buy_rate=float(result.quote.buy_rate),
            sell_rate=float(result.quote.sell_rate),
            fetched_at=result.quote.fetched_at.isoformat(),
            strategy=result.quote.strategy,
        )


class ConversionResponse(BaseModel):
    success: bool = True
    data: ConversionData
    meta: Meta


class RateEntry(BaseModel):
    buy: float
    sell: float
    source: str
    fetched_at: str
    strategy: str

    @classmethod
    def from_quote(cls, quote: RateQuote) -> "RateEntry":
        return cls(
            buy=float(quote.buy_rate),
            sell=float(quote.sell_rate),
            source=quote.source.value,
            fetched_at=quote.fetched_at.isoformat(),
            strategy=quote.strategy,
        )


class RatesData(BaseModel):
    rates: Dict[str, RateEntry]
    updated_at: Optional[str] = None


class RatesResponse(BaseModel):
    success: bool = True
    data: RatesData
    meta: Meta


class CurrenciesData(BaseModel):
    supported: List[str]
    operations: List[str]
    fallback_rates: Dict[str, Dict[str, float]]


class CurrenciesResponse(BaseModel):
    success: bool = True
    data: CurrenciesData


class CacheClearResponse(BaseModel):
    success: bool = True
    message: str
    removed: int
    meta: Meta


class DiagnosticsResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]
    meta: Meta


class DebugSummary(BaseModel):
    conversion_worked: bool
    rates_obtained: int
    using_fallback: bool


class DebugData(BaseModel):
    conversion: Optional[ConversionData] = None
    conversion_error: Optional[str] = None
    diagnostics: Dict[str, Any]
    rates: Dict[str, RateEntry]
    summary: DebugSummary


class DebugResponse(BaseModel):
    success: bool = True
    data: DebugData
    meta: Meta


class ErrorDetail(BaseModel):
    code: str
    message: str
    field: Optional[str] = None
    currency: Optional[str] = None
    strategy: Optional[str] = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorDetail
    meta: Meta
