# app/infra/banregio/parser.py
"""Extracción best-effort de tasas compra/venta desde el sitio de Banregio.

El HTML no es un contrato: cualquier cambio en la página puede romper estos
selectores. Todas las funciones devuelven ``{codigo: (compra, venta)}`` y
un dict vacío cuando no encuentran nada.
"""
import logging
import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

RatePair = Tuple[Decimal, Decimal]

# Rangos plausibles MXN por unidad; fuera de esto es ruido del HTML
PLAUSIBLE_RANGES: Dict[str, Tuple[Decimal, Decimal]] = {
    "USD": (Decimal("15"), Decimal("25")),
    "EUR": (Decimal("18"), Decimal("28")),
    "CAD": (Decimal("12"), Decimal("17")),
    "GBP": (Decimal("20"), Decimal("30")),
    "JPY": (Decimal("0.1"), Decimal("0.2")),
}

# Orden importa: "DOLAR CANADIENSE" debe resolverse antes que "DOLAR"
_LABEL_ALIASES = (
    ("CANAD", "CAD"),
    ("DOLAR", "USD"),
    ("EURO", "EUR"),
    ("LIBRA", "GBP"),
    ("YEN", "JPY"),
)

_PRICE_RX = re.compile(r"\d+(?:\.\d+)?")
_API_KEYS = ("rates", "exchangeRates", "currency", "divisas", "data")


def _normalize(text: str) -> str:
    text = unicodedata.normalize("NFKD", text)
    return "".join(c for c in text if not unicodedata.combining(c)).upper().strip()


def currency_code(label: str) -> Optional[str]:
    """'Dólar' -> 'USD', 'eur' -> 'EUR'; None si no se reconoce."""
    norm = _normalize(label)
    if norm in PLAUSIBLE_RANGES:
        return norm
    for needle, code in _LABEL_ALIASES:
        if needle in norm:
            return code
    return None


def parse_price(text: str) -> Optional[Decimal]:
    cleaned = text.replace("$", "").replace(",", "").replace("\xa0", " ")
    m = _PRICE_RX.search(cleaned)
    if not m:
        return None
    try:
        return Decimal(m.group(0))
    except InvalidOperation:
        return None


def is_plausible(code: str, value: Decimal) -> bool:
    bounds = PLAUSIBLE_RANGES.get(code)
    if bounds is None:
        return value > 0
    low, high = bounds
    return low <= value <= high


def parse_rates_table(html: str) -> Dict[str, RatePair]:
    """Lee la tabla de divisas: encabezados td.c-orange, fila compra y fila venta."""
    soup = BeautifulSoup(html, "lxml")
    table = next((t for t in soup.find_all("table") if t.select_one("td.c-orange")), None)
    if table is None:
        return {}

    headers = [td.get_text(strip=True) for td in table.select("td.c-orange")]
    body = table.find("tbody") or table
    rows = [tr for tr in body.find_all("tr") if not tr.select_one("td.c-orange")]
    if len(rows) < 2:
        return {}

    compra_vals = [td.get_text(strip=True) for td in rows[0].find_all("td")[1::2]]
    venta_vals = [td.get_text(strip=True) for td in rows[1].find_all("td")[1::2]]

    tasas: Dict[str, RatePair] = {}
    for label, compra_txt, venta_txt in zip(headers, compra_vals, venta_vals):
        code = currency_code(label)
        compra, venta = parse_price(compra_txt), parse_price(venta_txt)
        if code is None or compra is None or venta is None:
            continue
        tasas[code] = (compra, venta)
    return tasas


def extract_rates_from_text(html: str) -> Dict[str, RatePair]:
    """Busca 'USD ... 17.80 ... 19.30' en el texto visible y en scripts."""
    soup = BeautifulSoup(html, "lxml")
    chunks = [script.get_text() for script in soup.find_all("script")]
    for script in soup.find_all("script"):
        script.decompose()
    chunks.append(soup.get_text(" "))
    text = re.sub(r"\s+", " ", " ".join(chunks))

    tasas: Dict[str, RatePair] = {}
    for code in PLAUSIBLE_RANGES:
        rx = re.compile(rf"{code}[^\d]{{0,80}}?(\d{{1,2}}\.\d{{1,4}})[^\d]{{1,80}}?(\d{{1,2}}\.\d{{1,4}})")
        for m in rx.finditer(text):
            a, b = Decimal(m.group(1)), Decimal(m.group(2))
            if is_plausible(code, a) and is_plausible(code, b):
                tasas[code] = (min(a, b), max(a, b))
                break
    return tasas


def extract_rates(html: str) -> Dict[str, RatePair]:
    """Tabla primero; el texto solo completa monedas que la tabla no trajo."""
    tasas = parse_rates_table(html)
    if tasas:
        logger.info(f"✅ Tabla de divisas encontrada: {sorted(tasas)}")
    for code, pair in extract_rates_from_text(html).items():
        tasas.setdefault(code, pair)
    return tasas


def _as_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def parse_api_payload(data: Any) -> Dict[str, RatePair]:
    """Mapea respuestas JSON de endpoints alternativos.

    Se aceptan ``{"USD": {"compra": x, "venta": y}}`` (o buy/sell) y
    ``{"USD": 18.5}``; en el segundo caso se arma un spread de +-1%.
    """
    if not isinstance(data, dict):
        return {}

    tasas: Dict[str, RatePair] = {}
    for key in _API_KEYS:
        section = data.get(key)
        if not isinstance(section, dict):
            continue
        for name, rates in section.items():
            code = currency_code(str(name))
            if code is None:
                continue
            if isinstance(rates, dict):
                compra = _as_decimal(rates.get("compra", rates.get("buy")))
                venta = _as_decimal(rates.get("venta", rates.get("sell")))
                if compra and venta:
                    tasas[code] = (compra, venta)
            else:
                mid = _as_decimal(rates)
                if mid is not None and mid > 10:
                    tasas[code] = (mid * Decimal("0.99"), mid * Decimal("1.01"))
    return tasas
