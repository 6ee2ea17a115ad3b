# app/core/errors.py
from typing import Any, Dict, Optional


class ConversionError(Exception):
    """Base de los errores de dominio; cada uno sabe su status HTTP."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        payload.update({k: v for k, v in self.details.items() if v is not None})
        return payload


class ValidationError(ConversionError):
    """Entrada inválida (operación, moneda o cantidad)."""

    status_code = 400
    code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, field=field)
        self.field = field


class UpstreamUnavailable(ConversionError):
    """El sitio del banco (o el navegador) no respondió como se esperaba."""

    status_code = 503
    code = "upstream_unavailable"

    def __init__(self, message: str, strategy: Optional[str] = None):
        super().__init__(message, strategy=strategy)
        self.strategy = strategy


class RateUnavailable(ConversionError):
    """Ninguna estrategia produjo tasa para la moneda pedida."""

    status_code = 503
    code = "rate_unavailable"

    def __init__(self, currency: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(f"No hay tasa disponible para {currency}", currency=currency)
        self.currency = currency
        self.errors = errors or {}
