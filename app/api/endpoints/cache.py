# app/api/endpoints/cache.py
import logging

from fastapi import APIRouter, Depends, Request

from app.api.deps import build_meta, get_provider
from app.core.config import settings
from app.core.limiter import limiter
from app.domain.services.rate_provider import RateProvider
from app.schemas.conversion_schemas import CacheClearResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cache"])


@router.delete("/cache", response_model=CacheClearResponse)
@limiter.limit(settings.RATE_LIMIT)
async def limpiar_cache(request: Request, provider: RateProvider = Depends(get_provider)):
    removed = provider.cache.clear()
    logger.info(f"🧹 Cache limpiado manualmente ({removed} entradas)")
    return CacheClearResponse(message="Cache limpiado", removed=removed, meta=build_meta())
