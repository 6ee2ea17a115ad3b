# app/api/router.py
from fastapi import APIRouter

from app.api.endpoints.cache import router as cache_router
from app.api.endpoints.convert import router as convert_router
from app.api.endpoints.diagnostics import router as diagnostics_router
from app.api.endpoints.health import router as health_router
from app.api.endpoints.rates import router as rates_router


api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(convert_router)
api_router.include_router(rates_router)
api_router.include_router(cache_router)
api_router.include_router(diagnostics_router)
