# app/api/endpoints/diagnostics.py
import time

from fastapi import APIRouter, Depends, Request

from app.api.deps import build_meta, get_conversion_service, get_provider
from app.core.config import settings
from app.core.errors import ConversionError
from app.core.limiter import limiter
from app.domain.entities.rates import RateSource
from app.domain.services.conversion_service import ConversionService
from app.domain.services.rate_provider import RateProvider
from app.domain.services.validation import parse_conversion_request
from app.schemas.conversion_schemas import (
    ConversionData,
    DebugData,
    DebugResponse,
    DebugSummary,
    DiagnosticsResponse,
    RateEntry,
)

router = APIRouter(tags=["diagnostics"])


@router.get("/diagnostics", response_model=DiagnosticsResponse)
@limiter.limit(settings.RATE_LIMIT)
async def diagnostico(request: Request, provider: RateProvider = Depends(get_provider)):
    """Prueba cada estrategia en vivo (sin cache) y reporta cuáles funcionan."""
    start = time.perf_counter()
    data = await provider.diagnose()
    return DiagnosticsResponse(data=data, meta=build_meta(start, method="GET"))


@router.get("/debug/{operation}/{currency}/{amount}", response_model=DebugResponse)
@limiter.limit(settings.RATE_LIMIT)
async def depurar_conversion(
    request: Request,
    operation: str,
    currency: str,
    amount: str,
    provider: RateProvider = Depends(get_provider),
    service: ConversionService = Depends(get_conversion_service),
):
    """Conversión + diagnóstico de estrategias + tabla de tasas en una sola respuesta.

    Los parámetros inválidos siguen devolviendo 400; un fallo al obtener la
    tasa se reporta dentro de ``data`` en lugar de cortar la respuesta.
    """
    start = time.perf_counter()
    conversion = parse_conversion_request(operation, currency, amount)

    data = None
    error = None
    try:
        result, _ = await service.convert(conversion)
        data = ConversionData.from_result(result)
    except ConversionError as e:
        error = e.message

    diagnostics = await provider.diagnose()
    quotes = await provider.get_rates()

    return DebugResponse(
        data=DebugData(
            conversion=data,
            conversion_error=error,
            diagnostics=diagnostics,
            rates={code: RateEntry.from_quote(q) for code, q in quotes.items()},
            summary=DebugSummary(
                conversion_worked=data is not None,
                rates_obtained=len(quotes),
                using_fallback=any(q.source is RateSource.FALLBACK for q in quotes.values()),
            ),
        ),
        meta=build_meta(start, method="GET"),
    )
