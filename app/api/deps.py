# app/api/deps.py
import time
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request

from app.domain.services.conversion_service import ConversionService
from app.domain.services.rate_provider import RateProvider
from app.schemas.conversion_schemas import Meta


def get_provider(request: Request) -> RateProvider:
    return request.app.state.provider


def get_conversion_service(request: Request) -> ConversionService:
    return request.app.state.conversion_service


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_meta(start: Optional[float] = None, **extra: Any) -> Meta:
    """Meta común de las respuestas; ``start`` viene de time.perf_counter()."""
    elapsed = int((time.perf_counter() - start) * 1000) if start is not None else None
    return Meta(timestamp=iso_now(), processing_time_ms=elapsed, **extra)
