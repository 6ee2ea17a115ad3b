# app/api/endpoints/rates.py
import time

from fastapi import APIRouter, Depends, Request

from app.api.deps import build_meta, get_provider
from app.core.config import settings
from app.core.errors import RateUnavailable
from app.core.limiter import limiter
from app.domain.services.rate_provider import RateProvider
from app.domain.services.validation import OPERATION_ALIASES
from app.infra.banregio.fallback import FALLBACK_RATES
from app.schemas.conversion_schemas import (
    CurrenciesData,
    CurrenciesResponse,
    RateEntry,
    RatesData,
    RatesResponse,
)

router = APIRouter(tags=["rates"])


@router.get("/rates", response_model=RatesResponse)
@limiter.limit(settings.RATE_LIMIT)
async def obtener_tasas(request: Request, provider: RateProvider = Depends(get_provider)):
    start = time.perf_counter()
    warm = all(code in provider.cache for code in provider.supported_currencies)
    quotes = await provider.get_rates()
    if not quotes:
        raise RateUnavailable(", ".join(provider.supported_currencies))

    updated_at = max(q.fetched_at for q in quotes.values())
    return RatesResponse(
        data=RatesData(
            rates={code: RateEntry.from_quote(q) for code, q in quotes.items()},
            updated_at=updated_at.isoformat(),
        ),
        meta=build_meta(start, method="GET", cached=warm),
    )


@router.get("/currencies", response_model=CurrenciesResponse)
@limiter.limit(settings.RATE_LIMIT)
async def monedas_soportadas(request: Request, provider: RateProvider = Depends(get_provider)):
    return CurrenciesResponse(
        data=CurrenciesData(
            supported=provider.supported_currencies,
            operations=list(OPERATION_ALIASES),
            fallback_rates={
                code: {"buy": float(buy), "sell": float(sell)} for code, (buy, sell) in FALLBACK_RATES.items()
            },
        )
    )
