# app/api/errors.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.deps import build_meta
from app.core.errors import ConversionError
from app.schemas.conversion_schemas import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def _envelope(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, **extra), meta=build_meta())
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def conversion_error_handler(request: Request, exc: ConversionError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
    payload = exc.to_dict()
    return _envelope(exc.status_code, payload.pop("code"), payload.pop("message"), **payload)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    if first.get("type") == "json_invalid":
        # loc trae la posición del error dentro del JSON, no un campo
        return _envelope(400, "validation_error", "Cuerpo JSON inválido")
    parts = [str(p) for p in first.get("loc", ()) if not isinstance(p, int) and p not in ("body", "path", "query")]
    return _envelope(400, "validation_error", first.get("msg", "Solicitud inválida"), field=".".join(parts) or None)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return _envelope(404, "not_found", "Endpoint no encontrado. GET / para ver los disponibles")
    return _envelope(exc.status_code, "http_error", str(exc.detail))


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return _envelope(429, "rate_limited", f"Demasiadas solicitudes: {exc.detail}")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"💥 Error no controlado en {request.method} {request.url.path}")
    return _envelope(500, "internal_error", "Error interno del servidor")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ConversionError, conversion_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
