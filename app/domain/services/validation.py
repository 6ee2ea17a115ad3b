# app/domain/services/validation.py
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from app.core.config import settings
from app.core.errors import ValidationError
from app.domain.entities.rates import ConversionRequest, Operation

OPERATION_ALIASES = {
    "buy": Operation.BUY,
    "compra": Operation.BUY,
    "comprar": Operation.BUY,
    "sell": Operation.SELL,
    "venta": Operation.SELL,
    "vender": Operation.SELL,
}


def parse_operation(value: Any) -> Operation:
    key = str(value).strip().lower() if value is not None else ""
    try:
        return OPERATION_ALIASES[key]
    except KeyError:
        raise ValidationError(
            f"operation debe ser uno de: {', '.join(OPERATION_ALIASES)}",
            field="operation",
        ) from None


def parse_currency(value: Any, supported: Iterable[str]) -> str:
    supported = list(supported)
    code = str(value).strip().upper() if value is not None else ""
    if code not in supported:
        raise ValidationError(
            f"Moneda no soportada: '{code}'. Soportadas: {', '.join(supported)}",
            field="currency",
        )
    return code


def parse_amount(value: Any, min_amount: Decimal, max_amount: Decimal) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError("amount es requerido y debe ser numérico", field="amount")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"amount no es un número válido: '{value}'", field="amount") from None
    if not amount.is_finite() or amount < min_amount or amount > max_amount:
        raise ValidationError(
            f"amount debe estar entre {min_amount} y {max_amount}",
            field="amount",
        )
    return amount


def parse_conversion_request(
    operation: Any,
    currency: Any,
    amount: Any,
    supported: Optional[Iterable[str]] = None,
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
) -> ConversionRequest:
    """Valida la entrada cruda (path o body) antes de tocar la red."""
    return ConversionRequest(
        operation=parse_operation(operation),
        currency=parse_currency(currency, supported or settings.SUPPORTED_CURRENCIES),
        amount=parse_amount(
            amount,
            settings.MIN_AMOUNT if min_amount is None else min_amount,
            settings.MAX_AMOUNT if max_amount is None else max_amount,
        ),
    )
