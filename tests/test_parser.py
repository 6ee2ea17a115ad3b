"""Tests for Banregio HTML/JSON extraction."""

from decimal import Decimal

import pytest

from app.infra.banregio.parser import (
    currency_code,
    extract_rates,
    extract_rates_from_text,
    parse_api_payload,
    parse_price,
    parse_rates_table,
)

from conftest import BANREGIO_HTML


class TestHelpers:
    @pytest.mark.parametrize(
        "label,code",
        [
            ("Dólar", "USD"),
            ("DOLAR AMERICANO", "USD"),
            ("Dólar Canadiense", "CAD"),
            ("Euro", "EUR"),
            ("Libra esterlina", "GBP"),
            ("Yen", "JPY"),
            ("usd", "USD"),
            ("Peso", None),
        ],
    )
    def test_currency_code(self, label, code):
        assert currency_code(label) == code

    def test_parse_price(self):
        assert parse_price("$17.95") == Decimal("17.95")
        assert parse_price(" $ 1,017.50 ") == Decimal("1017.50")
        assert parse_price("N/D") is None


class TestTable:
    def test_reads_buy_and_sell_rows(self):
        assert parse_rates_table(BANREGIO_HTML) == {
            "USD": (Decimal("17.95"), Decimal("19.45")),
            "EUR": (Decimal("20.40"), Decimal("21.95")),
        }

    def test_no_table(self):
        assert parse_rates_table("<html><body><p>Mantenimiento</p></body></html>") == {}


class TestTextPatterns:
    def test_finds_pair_in_script(self):
        html = "<html><script>var tasas = {USD: {compra: 17.85, venta: 19.35}};</script></html>"
        assert extract_rates_from_text(html) == {"USD": (Decimal("17.85"), Decimal("19.35"))}

    def test_orders_pair_as_buy_sell(self):
        html = "<p>EUR venta 21.80 compra 20.20</p>"
        assert extract_rates_from_text(html)["EUR"] == (Decimal("20.20"), Decimal("21.80"))

    def test_ignores_implausible_values(self):
        html = "<p>USD 1.25 3.50</p><p>JPY 0.125 0.141</p>"
        assert extract_rates_from_text(html) == {"JPY": (Decimal("0.125"), Decimal("0.141"))}

    def test_table_takes_precedence_over_text(self):
        html = BANREGIO_HTML.replace("</body>", "<p>USD 18.00 19.00 GBP 22.40 24.10</p></body>")
        tasas = extract_rates(html)
        assert tasas["USD"] == (Decimal("17.95"), Decimal("19.45"))
        assert tasas["GBP"] == (Decimal("22.40"), Decimal("24.10"))


class TestApiPayload:
    def test_compra_venta_objects(self):
        data = {"rates": {"USD": {"compra": 17.9, "venta": "19.4"}}}
        assert parse_api_payload(data) == {"USD": (Decimal("17.9"), Decimal("19.4"))}

    def test_buy_sell_objects_under_data(self):
        data = {"data": {"EUR": {"buy": 20.1, "sell": 21.7}}}
        assert parse_api_payload(data) == {"EUR": (Decimal("20.1"), Decimal("21.7"))}

    def test_bare_number_gets_one_percent_spread(self):
        buy, sell = parse_api_payload({"divisas": {"USD": 18}})["USD"]
        assert buy == Decimal("17.82")
        assert sell == Decimal("18.18")

    @pytest.mark.parametrize("data", [[], "ok", {"rates": []}, {"rates": {"USD": 5}}, {"other": {"USD": 18}}])
    def test_unrecognised_payloads(self, data):
        assert parse_api_payload(data) == {}
