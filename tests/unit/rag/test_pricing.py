# tests/unit/rag/test_pricing.py
"""Unit tests for price extraction from plan documents."""

import pytest

from health_plan_rag.rag.pricing import (
    UNKNOWN_OPERATOR,
    detect_operator,
    extract_prices_from_content,
    get_age_band,
    get_age_band_name,
    get_price_for_age_band,
    parse_price,
)
from health_plan_rag.schemas import AgeBandPrices, PlanPricing


class TestAgeBands:
    """Tests for age band mapping."""

    @pytest.mark.parametrize(
        "age, band",
        [(0, 1), (18, 1), (19, 2), (38, 2), (39, 3), (59, 3), (60, 4), (75, 4), (76, 5), (99, 5)],
    )
    def test_band_boundaries(self, age, band):
        assert get_age_band(age) == band

    def test_band_names(self):
        assert get_age_band_name(2) == "19-38 anos"
        assert get_age_band_name(5) == "76+ anos"
        assert get_age_band_name(9) == "desconhecida"


class TestParsePrice:
    """Tests for Brazilian currency parsing."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("R$ 1.234,56", 1234.56),
            ("R$ 450,00", 450.0),
            ("1.450", 1450.0),
            ("r$180", 180.0),
            ("780,5", 780.5),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_price(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", [None, "", "R$", "sob consulta"])
    def test_unreadable(self, text):
        assert parse_price(text) is None


class TestExtractPrices:
    """Tests for table extraction."""

    def test_age_band_table(self, load_fixture):
        plans = extract_prices_from_content(load_fixture("age_band_table.md"))

        assert [p.plan_name for p in plans] == ["Essencial", "Executivo"]
        essencial = plans[0]
        assert essencial.operator == "Nexus Sudeste Total"
        assert essencial.prices_by_age_band == AgeBandPrices(
            band1=250.0, band2=450.0, band3=780.5, band4=1450.0, band5=2100.0
        )
        assert plans[1].prices_by_age_band.band3 == 1380.0

    def test_base_price_table(self, load_fixture):
        """Test base prices land in the 19-38 band only."""
        plans = extract_prices_from_content(load_fixture("base_price_table.md"))

        assert [(p.category, p.plan_name) for p in plans] == [("A", "Platinum Básico"), ("B", "Platinum Plus")]
        assert plans[0].operator == "MGA Platinum Access"
        assert plans[0].prices_by_age_band.band2 == 180.0
        assert plans[0].prices_by_age_band.band3 is None
        assert plans[1].prices_by_age_band.band2 == pytest.approx(1250.9)

    def test_text_without_prices(self, load_fixture):
        assert extract_prices_from_content(load_fixture("no_prices.md")) == []

    def test_empty_content(self):
        assert extract_prices_from_content("") == []


class TestOperatorAndLookup:
    """Tests for operator detection and band lookup."""

    @pytest.mark.parametrize(
        "content, operator",
        [
            ("Tabela NEXUS 2024", "Nexus Sudeste Total"),
            ("Planos NST", "Nexus Sudeste Total"),
            ("Linha PLATINUM", "MGA Platinum Access"),
            ("Rede Einstein", "Einstein"),
            ("Operadora regional", UNKNOWN_OPERATOR),
        ],
    )
    def test_detect_operator(self, content, operator):
        assert detect_operator(content) == operator

    def test_price_for_band(self):
        plan = PlanPricing(plan_name="X", operator="Y", prices_by_age_band=AgeBandPrices(band2=300.0, band3=500.0))

        assert get_price_for_age_band(plan, 3) == 500.0
        assert get_price_for_age_band(plan, 1) is None

    def test_unknown_band_falls_back_to_band_two(self):
        plan = PlanPricing(plan_name="X", operator="Y", prices_by_age_band=AgeBandPrices(band2=300.0))

        assert get_price_for_age_band(plan, 7) == 300.0
