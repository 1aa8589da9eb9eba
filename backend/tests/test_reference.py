"""
Tests for GICS sector data, industry benchmarks and the recommendation /
buyer-match generators.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from bizmeasure.services.benchmarks import FALLBACK_BENCHMARK, get_benchmark_value
from bizmeasure.services.buyer_matches import generate_buyer_matches
from bizmeasure.services.recommendations import generate_recommendations, recommendation_from_analysis
from bizmeasure.services.sectors import (
    GICS_INDUSTRY_GROUPS,
    GICS_SECTORS,
    get_sector_by_industry_group_id,
    resolve_sector_name,
)
from bizmeasure.services.valuation import ValuationInputs, compute_valuation


def test_every_industry_group_belongs_to_a_sector():
    assert len(GICS_SECTORS) == 11
    for group in GICS_INDUSTRY_GROUPS:
        assert get_sector_by_industry_group_id(group.id).id == group.sector_id


@pytest.mark.parametrize(
    "answer, expected",
    [
        ("45", "Information Technology"),
        ("4510", "Information Technology"),
        ("health care", "Health Care"),
        ("Healthcare", "Health Care"),
        ("fs", "Financials"),
        ("Underwater Basket Weaving", None),
        ("", None),
    ],
)
def test_resolve_sector_name(answer, expected):
    assert resolve_sector_name(answer) == expected


@pytest.mark.parametrize(
    "industry, metric, expected",
    [
        ("tech", "profit_margin", (20, 36)),
        ("fs", "debt_to_equity", (3, 5.4)),
        ("retail", "customer_retention", (75, 90)),
        ("retail", "roi", (15, 27)),
        ("Technology", "margin", (20, 36)),
        ("unknown", "revenue_growth", (8, 14.4)),
        ("tech", "unheard_of_metric", (50, 90)),
    ],
)
def test_benchmark_lookup(industry, metric, expected):
    value = get_benchmark_value(industry, metric)
    assert (value.average, value.max_value) == pytest.approx(expected)


def test_benchmark_invalid_input_falls_back():
    assert get_benchmark_value("", "roi") == FALLBACK_BENCHMARK
    assert get_benchmark_value("tech", None) == FALLBACK_BENCHMARK


def test_sector_endpoints(client):
    sectors = client.get("/api/sectors").json()
    assert [s["id"] for s in sectors][:3] == ["10", "15", "20"]

    groups = client.get("/api/sectors/45/industry-groups").json()
    assert [g["id"] for g in groups] == ["4510", "4520", "4530"]

    assert client.get("/api/sectors/99/industry-groups").status_code == 404


def test_benchmark_endpoint(client):
    body = client.get("/api/benchmarks/fs", params={"metrics": "profit_margin, cash_flow"}).json()

    assert body["industry"] == "finance"
    assert body["metrics"]["profit_margin"] == {"average": 25, "max_value": 45}
    assert set(body["metrics"]) == {"profit_margin", "cash_flow"}


def test_benchmark_endpoint_lists_all_metrics_by_default(client):
    body = client.get("/api/benchmarks/tech").json()
    assert {"revenue_growth", "r_and_d", "debt_to_equity"} <= set(body["metrics"])


# -----------------------------------------------------------------------------
# Recommendations / buyer matches
# -----------------------------------------------------------------------------

def test_recommendations_always_include_ai_operations():
    strong = compute_valuation(ValuationInputs(
        revenue_current=5_000_000, revenue_previous=4_000_000, ebitda=1_500_000, net_margin=25,
        years_in_business=25, employee_count=300, transformation_level=5, digital_system_count=10,
    ))

    assert [r["category"] for r in generate_recommendations(strong)] == ["AI Operations"]


def test_recommendations_follow_red_flags():
    weak = compute_valuation(ValuationInputs(
        revenue_current=900_000, revenue_previous=1_000_000, ebitda=20_000, net_margin=2, transformation_level=1,
    ))

    categories = [r["category"] for r in generate_recommendations(weak)]
    assert categories == ["AI Operations", "Digital Transformation", "Financial Health", "Market Position"]


def test_recommendation_from_analysis_uses_first_paragraph():
    rec = recommendation_from_analysis("First paragraph.\n\nSecond paragraph.")

    assert rec["category"] == "AI Analysis"
    assert rec["impact_potential"] == 4
    assert rec["suggestions"] == ["First paragraph."]


def test_buyer_matches_are_clamped_and_sorted():
    result = compute_valuation(ValuationInputs(revenue_current=100_000, ebitda=-80_000, net_margin=-40))
    company = SimpleNamespace(sector="Energy")

    matches = generate_buyer_matches(company, result, intent="grow")

    scores = [m["match_percentage"] for m in matches]
    assert scores == sorted(scores, reverse=True)
    assert all(0 <= s <= 100 for s in scores)
    assert {m["name"] for m in matches} == {"TechVentures Capital", "GrowthWave Acquisitions", "Horizon Partners"}
