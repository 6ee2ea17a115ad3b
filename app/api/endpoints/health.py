# app/api/endpoints/health.py
import asyncio

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_provider, iso_now
from app.core.config import settings
from app.core.limiter import limiter
from app.domain.services.rate_provider import RateProvider
from app.infra.banregio.page import probe_upstream
from app.schemas.health_schemas import ComponentStatus, HealthResponse, PageInfo, StatusObject

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
@limiter.limit(settings.RATE_LIMIT)
async def health_check(request: Request, provider: RateProvider = Depends(get_provider)):
    t = iso_now()

    # Sitio del banco
    probe = await asyncio.to_thread(
        probe_upstream, settings.BANK_PAGE_URLS[0], request.app.state.http_session
    )
    upstream_status = ComponentStatus(
        status="operational" if probe["reachable"] else "degraded_performance",
        detail=probe["error"] or f"Banregio {settings.BANK_PAGE_URLS[0]}",
        http_status=probe["status_code"],
        content_size=probe["content_size"],
    )

    # Cache
    snapshot = provider.cache.snapshot()
    last = max((q.fetched_at for q in snapshot.values()), default=None)
    cache_status = ComponentStatus(
        status="operational",
        detail=f"{len(provider.cache)} entradas",
        entries=len(provider.cache),
        ttl_seconds=int(provider.cache.ttl.total_seconds()),
        last_update=last.isoformat() if last else None,
    )

    # Indicator global: sin upstream seguimos respondiendo con tasas de respaldo
    if upstream_status.status != "operational":
        indicator = "degraded_performance"
        desc = "Banregio no responde; se usan tasas en cache o de respaldo."
    else:
        indicator = "operational"
        desc = "All systems functional."

    return HealthResponse(
        page=PageInfo(
            name=settings.PROJECT_NAME,
            version=settings.PROJECT_VERSION,
            time=t,
        ),
        status=StatusObject(
            indicator=indicator,
            description=desc,
        ),
        components={
            "upstream": upstream_status,
            "cache": cache_status,
        },
    )
