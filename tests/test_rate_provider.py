"""Tests for the strategy chain, cache use and fallback policy."""

import asyncio
from decimal import Decimal

import pytest

from app.core.errors import RateUnavailable
from app.domain.entities.rates import RateSource
from app.domain.services.rate_provider import RateProvider
from app.infra.banregio.fallback import FALLBACK_RATES, StaticFallbackStrategy

from conftest import FakeStrategy, no_sleep

USD = {"USD": (Decimal("18.00"), Decimal("19.00"))}


def make_provider(strategies, cache, **kwargs):
    kwargs.setdefault("retries", 2)
    kwargs.setdefault("retry_base_delay", 0)
    kwargs.setdefault("sleep", no_sleep)
    return RateProvider(strategies, cache, **kwargs)


class TestCaching:
    def test_second_request_within_ttl_reuses_quote(self, provider, live_strategy, clock):
        first = asyncio.run(provider.get_rate("USD"))
        clock.advance(120)
        second = asyncio.run(provider.get_rate("USD"))

        assert second.fetched_at == first.fetched_at
        assert live_strategy.calls == 1

    def test_expired_entry_triggers_new_fetch(self, provider, live_strategy, clock):
        first = asyncio.run(provider.get_rate("USD"))
        clock.advance(301)
        second = asyncio.run(provider.get_rate("USD"))

        assert live_strategy.calls == 2
        assert second.fetched_at > first.fetched_at

    def test_one_fetch_warms_every_currency(self, provider, live_strategy):
        asyncio.run(provider.get_rate("USD"))
        eur = asyncio.run(provider.get_rate("EUR"))

        assert live_strategy.calls == 1
        assert eur.buy_rate == Decimal("20.40")


class TestStrategyChain:
    def test_first_successful_strategy_wins(self, cache, clock):
        first = FakeStrategy("page", rates=USD, clock=clock)
        second = FakeStrategy("endpoints", rates={"USD": (Decimal("1"), Decimal("2"))}, clock=clock)
        provider = make_provider([first, second], cache)

        quote = asyncio.run(provider.get_rate("USD"))

        assert quote.strategy == "page"
        assert second.calls == 0

    def test_retries_before_giving_up_on_a_strategy(self, cache, clock):
        delays = []

        async def record(delay):
            delays.append(delay)

        flaky = FakeStrategy("page", rates=USD, failures=2, clock=clock)
        provider = make_provider([flaky], cache, retry_base_delay=0.5, sleep=record)

        quote = asyncio.run(provider.get_rate("USD"))

        assert flaky.calls == 3
        assert quote.source is RateSource.SCRAPED
        assert len(delays) == 2
        # backoff exponencial: 0.5 * 2**n + jitter en [0, 0.5]
        assert 0.5 <= delays[0] <= 1.0
        assert 1.0 <= delays[1] <= 1.5

    def test_moves_on_after_retries_exhausted(self, cache, clock):
        down = FakeStrategy("page", rates=USD, failures=10, clock=clock)
        backup = FakeStrategy("endpoints", rates=USD, clock=clock)
        provider = make_provider([down, backup], cache, retries=1)

        quote = asyncio.run(provider.get_rate("USD"))

        assert down.calls == 2
        assert quote.strategy == "endpoints"

    def test_timeout_counts_as_failure(self, cache, clock):
        slow = FakeStrategy("browser", rates=USD, delay=0.5, timeout=0.01, clock=clock)
        provider = make_provider([slow, StaticFallbackStrategy(clock=clock)], cache, retries=0)

        quote = asyncio.run(provider.get_rate("USD"))

        assert quote.source is RateSource.FALLBACK

    def test_strategy_without_currency_is_skipped(self, cache, clock):
        only_eur = FakeStrategy("page", rates={"EUR": (Decimal("20"), Decimal("21"))}, clock=clock)
        provider = make_provider([only_eur, StaticFallbackStrategy(clock=clock)], cache)

        quote = asyncio.run(provider.get_rate("GBP"))

        assert quote.strategy == "fallback"
        assert quote.buy_rate == Decimal("22.50")

    def test_unexpected_exception_is_contained(self, cache, clock):
        class Broken(FakeStrategy):
            async def fetch(self):
                self.calls += 1
                raise KeyError("tbody")

        broken = Broken("page", clock=clock)
        provider = make_provider([broken, StaticFallbackStrategy(clock=clock)], cache, retries=0)

        assert asyncio.run(provider.get_rate("USD")).source is RateSource.FALLBACK

    def test_rate_unavailable_when_chain_is_exhausted(self, cache, clock):
        provider = make_provider([FakeStrategy("page", failures=10, clock=clock)], cache, retries=0)

        with pytest.raises(RateUnavailable) as exc:
            asyncio.run(provider.get_rate("USD"))

        assert exc.value.currency == "USD"
        assert "page" in exc.value.errors
        assert len(cache) == 0


class TestFallbackTable:
    def test_fallback_quotes_are_tagged(self, cache, clock):
        provider = make_provider([StaticFallbackStrategy(clock=clock)], cache)
        quote = asyncio.run(provider.get_rate("USD"))
        assert quote.source is RateSource.FALLBACK
        assert (quote.buy_rate, quote.sell_rate) == (Decimal("17.80"), Decimal("19.30"))

    @pytest.mark.parametrize("currency", sorted(FALLBACK_RATES))
    def test_spread_invariant(self, currency):
        buy, sell = FALLBACK_RATES[currency]
        assert sell >= buy, f"{currency}: venta {sell} < compra {buy}"


class TestBulkAndDiagnostics:
    def test_get_rates_covers_supported_currencies(self, provider):
        rates = asyncio.run(provider.get_rates())
        assert set(rates) == {"USD", "EUR", "CAD", "GBP", "JPY"}
        assert rates["USD"].strategy == "page"
        assert rates["JPY"].source is RateSource.FALLBACK

    def test_fallback_does_not_overwrite_live_cache(self, provider, cache):
        asyncio.run(provider.get_rates())
        assert cache.get("USD").strategy == "page"
        assert cache.get("CAD").strategy == "fallback"

    def test_get_rates_skips_unquotable(self, cache, clock):
        provider = make_provider([FakeStrategy("page", rates=USD, clock=clock)], cache, retries=0)
        assert list(asyncio.run(provider.get_rates())) == ["USD"]

    def test_diagnose_reports_each_strategy(self, cache, clock):
        ok = FakeStrategy("page", rates=USD, clock=clock)
        down = FakeStrategy("endpoints", failures=10, clock=clock)
        provider = make_provider([ok, down, StaticFallbackStrategy(clock=clock)], cache)

        report = asyncio.run(provider.diagnose())

        assert [s["strategy"] for s in report["strategies"]] == ["page", "endpoints"]
        assert report["strategies"][0]["ok"] is True
        assert report["strategies"][0]["currencies"] == ["USD"]
        assert report["strategies"][1]["ok"] is False
        assert "caído" in report["strategies"][1]["error"]
        assert report["fallback"]["USD"] == {"buy": 17.8, "sell": 19.3}
        # diagnóstico no escribe en cache ni reintenta
        assert len(cache) == 0
        assert down.calls == 1
