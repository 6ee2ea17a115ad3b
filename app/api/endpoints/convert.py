# app/api/endpoints/convert.py
import time

from fastapi import APIRouter, Depends, Request

from app.api.deps import build_meta, get_conversion_service
from app.core.config import settings
from app.core.limiter import limiter
from app.domain.services.conversion_service import ConversionService
from app.domain.services.validation import parse_conversion_request
from app.schemas.conversion_schemas import ConversionData, ConversionResponse, ConvertBody

router = APIRouter(tags=["convert"])


async def _convertir(service: ConversionService, start: float, method: str, operation, currency, amount):
    conversion = parse_conversion_request(operation, currency, amount)
    result, cached = await service.convert(conversion)
    return ConversionResponse(
        data=ConversionData.from_result(result),
        meta=build_meta(start, method=method, cached=cached),
    )


@router.get("/convert/{operation}/{currency}/{amount}", response_model=ConversionResponse)
@limiter.limit(settings.RATE_LIMIT)
async def convertir_get(
    request: Request,
    operation: str,
    currency: str,
    amount: str,
    service: ConversionService = Depends(get_conversion_service),
):
    """Convierte ``amount`` de ``currency`` a MXN (compra o venta)."""
    return await _convertir(service, time.perf_counter(), "GET", operation, currency, amount)


@router.post("/convert", response_model=ConversionResponse)
@limiter.limit(settings.RATE_LIMIT)
async def convertir_post(
    request: Request,
    body: ConvertBody,
    service: ConversionService = Depends(get_conversion_service),
):
    return await _convertir(service, time.perf_counter(), "POST", body.operation, body.currency, body.amount)
