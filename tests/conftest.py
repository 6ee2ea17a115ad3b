"""Shared test fixtures."""

import asyncio
import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# Antes de importar app.*: la config se lee al importar
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import requests
from fastapi.testclient import TestClient

from app.core.errors import UpstreamUnavailable
from app.domain.services.rate_provider import RateProvider
from app.infra.banregio.base import RateStrategy
from app.infra.banregio.fallback import StaticFallbackStrategy
from app.infra.cache.rate_cache import RateCache
from app.main import create_app

BANREGIO_HTML = """
<html><head><title>Divisas | Banregio</title></head>
<body>
  <h1>Tipo de cambio</h1>
  <table class="table c-lightergray table-bordered">
    <thead>
      <tr><td></td><td class="c-orange">Dólar</td><td></td><td class="c-orange">Euro</td></tr>
    </thead>
    <tbody>
      <tr><td>Compra</td><td>$17.95</td><td>Compra</td><td>$20.40</td></tr>
      <tr><td>Venta</td><td>$19.45</td><td>Venta</td><td>$21.95</td></tr>
    </tbody>
  </table>
  <p>{padding}</p>
</body></html>
""".replace("{padding}", "Banregio divisas " * 80)


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2025, 7, 31, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class FakeStrategy(RateStrategy):
    """Estrategia en memoria: puede fallar N veces o tardar más que su timeout."""

    def __init__(self, name, rates=None, failures=0, delay=0.0, **kwargs):
        kwargs.setdefault("timeout", 1.0)
        super().__init__(**kwargs)
        self.name = name
        self.rates = rates or {}
        self.failures = failures
        self.delay = delay
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.calls <= self.failures:
            raise UpstreamUnavailable(f"{self.name} caído", strategy=self.name)
        return self._quotes(self.rates)


class FakeResponse:
    def __init__(self, text="", status_code=200, json_data=None):
        self.text = text
        self.status_code = status_code
        self._json = json_data

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json


class FakeSession:
    """Sustituto de requests.Session: url -> FakeResponse o excepción."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.requested = []

    def get(self, url, headers=None, timeout=None):
        self.requested.append(url)
        result = self.responses.get(url)
        if result is None:
            raise requests.ConnectionError(f"sin ruta a {url}")
        if isinstance(result, Exception):
            raise result
        return result

    def close(self):
        pass


async def no_sleep(_delay):
    return None


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return RateCache(ttl_seconds=300, clock=clock)


@pytest.fixture
def live_strategy(clock):
    return FakeStrategy(
        "page",
        rates={"USD": (Decimal("17.95"), Decimal("19.45")), "EUR": (Decimal("20.40"), Decimal("21.95"))},
        clock=clock,
    )


@pytest.fixture
def provider(live_strategy, cache, clock):
    return RateProvider(
        [live_strategy, StaticFallbackStrategy(clock=clock)],
        cache,
        retries=2,
        retry_base_delay=0,
        sleep=no_sleep,
    )


@pytest.fixture
def session():
    return FakeSession({"https://www.banregio.com/divisas.php": FakeResponse(BANREGIO_HTML)})


@pytest.fixture
def client(provider, session):
    app = create_app(provider=provider, http_session=session)
    with TestClient(app) as c:
        yield c
