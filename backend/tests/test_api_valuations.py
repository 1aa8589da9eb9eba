"""
API tests for intake, valuation generation, recommendations, buyer matches
and exports.
"""

from __future__ import annotations

import csv
import io

from bizmeasure.models import Financial


def test_intake_requires_existing_company(client):
    response = client.post("/api/financials", json={"company_id": 999, "revenue_current": 100})
    assert response.status_code == 404


def test_latest_intake_row_is_returned(client, company):
    for revenue in (1_000_000, 1_500_000):
        client.post("/api/financials", json={"company_id": company["id"], "revenue_current": revenue})

    response = client.get(f"/api/companies/{company['id']}/financials")

    assert response.status_code == 200
    assert response.json()["revenue_current"] == 1_500_000


def test_missing_intake_step_is_404(client, company):
    assert client.get(f"/api/companies/{company['id']}/technology").status_code == 404
    assert client.get("/api/companies/999/technology").status_code == 404


def test_intake_validation(client, company):
    response = client.post("/api/technology", json={"company_id": company["id"], "transformation_level": 6})
    assert response.status_code == 422

    response = client.post("/api/financials", json={"company_id": company["id"], "revenue_current": -5})
    assert response.status_code == 422


def test_all_intake_steps_round_trip(client, company):
    cid = company["id"]
    assert client.post("/api/employees", json={
        "company_id": cid, "count": 42, "digital_systems": ["CRM", "ERP"],
    }).status_code == 201
    assert client.post("/api/technology", json={
        "company_id": cid, "transformation_level": 4, "technologies_used": ["Cloud"],
        "tech_investment_percentage": 5,
    }).status_code == 201
    assert client.post("/api/owner-intent", json={
        "company_id": cid, "intent": "sell", "exit_timeline": "1-2 years",
    }).status_code == 201

    assert client.get(f"/api/companies/{cid}/employees").json()["digital_systems"] == ["CRM", "ERP"]
    assert client.get(f"/api/companies/{cid}/technology").json()["transformation_level"] == 4
    assert client.get(f"/api/companies/{cid}/owner-intent").json()["intent"] == "sell"


def test_generate_valuation(client, company, financials):
    response = client.post(f"/api/companies/{company['id']}/generate-valuation")

    assert response.status_code == 201, response.text
    body = response.json()

    valuation = body["valuation"]
    assert valuation["valuation_min"] <= valuation["valuation_median"] <= valuation["valuation_max"]
    assert valuation["ebitda_multiple"] == 400_000 * 6.5  # "Technology" onboarded as Information Technology
    assert valuation["risk_score"] == 60
    assert valuation["red_flags"] == []

    categories = [r["category"] for r in body["recommendations"]]
    assert categories == ["AI Operations", "Digital Transformation", "Market Position"]

    matches = [m["match_percentage"] for m in body["buyer_matches"]]
    assert matches == sorted(matches, reverse=True)
    assert body["buyer_matches"][0]["name"] == "TechVentures Capital"

    latest = client.get(f"/api/companies/{company['id']}/valuation").json()
    assert latest["id"] == valuation["id"]

    stored = client.get(f"/api/companies/{company['id']}/recommendations").json()
    assert len(stored) == 3
    assert len(client.get(f"/api/companies/{company['id']}/buyer-matches").json()) == 3


def test_generate_valuation_uses_other_intake_steps(client, company, financials):
    cid = company["id"]
    client.post("/api/technology", json={"company_id": cid, "transformation_level": 2})
    client.post("/api/owner-intent", json={"company_id": cid, "intent": "succession", "exit_timeline": "3-5 years"})

    body = client.post(f"/api/companies/{cid}/generate-valuation").json()

    assert "Digital Transformation Lag" in body["valuation"]["red_flags"]
    by_name = {m["name"]: m["match_percentage"] for m in body["buyer_matches"]}
    # TechVentures does not target succession deals
    assert by_name["TechVentures Capital"] == 94 + 3 - 10


def test_generate_valuation_without_financials_is_422(client, company):
    response = client.post(f"/api/companies/{company['id']}/generate-valuation")

    assert response.status_code == 422
    assert "insufficient data" in response.json()["detail"].lower()
    assert client.get(f"/api/companies/{company['id']}/valuation").status_code == 404


def test_intake_rejects_non_finite_and_oversized_amounts(client, company):
    too_large = {"company_id": company["id"], "revenue_current": 1e308, "ebitda": 100_000}
    assert client.post("/api/financials", json=too_large).status_code == 422

    # 1e400 parses to infinity
    response = client.post(
        "/api/financials",
        content=f'{{"company_id": {company["id"]}, "revenue_current": 1e400}}',
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 422


def test_generate_valuation_with_overflowing_figures_is_422(client, company, db_session):
    # Rows written outside the intake endpoint skip request validation
    db_session.add(Financial(company_id=company["id"], revenue_current=1e308, ebitda=100_000))
    db_session.commit()

    response = client.post(f"/api/companies/{company['id']}/generate-valuation")

    assert response.status_code == 422
    assert "not a finite number" in response.json()["detail"]
    assert client.get(f"/api/companies/{company['id']}/valuation").status_code == 404


def test_generate_valuation_unknown_company(client):
    assert client.post("/api/companies/12345/generate-valuation").status_code == 404


def test_store_valuation_rejects_unordered_range(client, company):
    payload = {
        "company_id": company["id"],
        "valuation_min": 300, "valuation_median": 200, "valuation_max": 400,
        "risk_score": 50, "financial_health_score": 50, "market_position_score": 50,
        "operational_efficiency_score": 50, "debt_structure_score": 50,
    }
    assert client.post("/api/valuations", json=payload).status_code == 422

    payload["valuation_min"] = 100
    response = client.post("/api/valuations", json=payload)
    assert response.status_code == 201
    assert response.json()["ebitda_multiple"] is None


def test_manual_recommendation_and_buyer_match(client, company):
    rec = client.post("/api/recommendations", json={
        "company_id": company["id"], "category": "Succession", "impact_potential": 2,
        "suggestions": ["Document key processes"],
        "estimated_value_impact_min": 3, "estimated_value_impact_max": 6,
    })
    assert rec.status_code == 201

    bad = client.post("/api/buyer-matches", json={
        "company_id": company["id"], "name": "X", "type": "Y", "description": "Z",
        "match_percentage": 120, "deal_type": "Full Acquisition",
    })
    assert bad.status_code == 422


# -----------------------------------------------------------------------------
# Exports
# -----------------------------------------------------------------------------

def test_csv_export_matches_stored_valuation(client, company, financials):
    client.post(f"/api/companies/{company['id']}/generate-valuation")
    valuation = client.get(f"/api/companies/{company['id']}/valuation").json()

    response = client.get(f"/api/exports/{company['id']}/csv")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="acme-logistics-gmbh-valuation.csv"' in response.headers["content-disposition"]

    row = next(csv.DictReader(io.StringIO(response.text)))
    assert row["Company Name"] == "Acme Logistics GmbH"
    assert float(row["Valuation (Median)"]) == valuation["valuation_median"]
    assert float(row["EBITDA Multiple"]) == valuation["ebitda_multiple"]
    assert int(row["Risk Score"]) == valuation["risk_score"]


def test_json_export_matches_stored_valuation(client, company, financials):
    client.post(f"/api/companies/{company['id']}/generate-valuation")
    valuation = client.get(f"/api/companies/{company['id']}/valuation").json()

    exported = client.get(f"/api/exports/{company['id']}/json").json()

    assert exported["company"]["name"] == "Acme Logistics GmbH"
    for field in ("valuation_min", "valuation_median", "valuation_max", "discounted_cash_flow", "risk_score"):
        assert exported["valuation"][field] == valuation[field]


def test_html_export_escapes_company_name(client, auth_headers):
    company = client.post("/api/companies", json={
        "name": "<Acme & Co>", "sector": "Industrials", "location": "Austria",
        "years_in_business": "5-10", "goal": "grow",
    }, headers=auth_headers).json()
    client.post("/api/financials", json={"company_id": company["id"], "revenue_current": 750_000})
    client.post(f"/api/companies/{company['id']}/generate-valuation")

    response = client.get(f"/api/exports/{company['id']}/html")

    assert response.status_code == 200
    assert "&lt;Acme &amp; Co&gt;" in response.text
    assert "<Acme & Co>" not in response.text


def test_export_without_valuation_is_404(client, company):
    assert client.get(f"/api/exports/{company['id']}/json").status_code == 404
