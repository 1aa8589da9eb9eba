"""
API tests for the AI company and market analysis endpoints.
"""

from __future__ import annotations

from bizmeasure.services import llm

ANALYSIS = (
    "Acme shows healthy margins and steady growth, supporting a mid-range multiple.\n\n"
    "Risks: customer concentration.\n\n"
    "Recommendations: 1. Diversify customers 2. Invest in ERP 3. Document processes"
)


def test_analyze_company_stores_recommendation(client, company, financials, fake_llm):
    fake_llm.reply_with(ANALYSIS)

    response = client.post("/api/ai/analyze-company", json={"company_id": company["id"]})

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["company_name"] == "Acme Logistics GmbH"
    assert body["analysis"] == ANALYSIS

    prompt = fake_llm.calls[0]["messages"][1]["content"]
    assert "Acme Logistics GmbH" in prompt
    assert "400000" in prompt  # EBITDA from the intake

    recommendations = client.get(f"/api/companies/{company['id']}/recommendations").json()
    ai = [r for r in recommendations if r["category"] == "AI Analysis"]
    assert len(ai) == 1
    assert ai[0]["suggestions"] == [ANALYSIS.split("\n\n")[0]]
    assert (ai[0]["estimated_value_impact_min"], ai[0]["estimated_value_impact_max"]) == (10, 20)

    assert client.get(f"/api/companies/{company['id']}").json()["ai_analyzed"] is True


def test_analyze_company_errors(client, company, fake_llm):
    assert client.post("/api/ai/analyze-company", json={"company_id": 999}).status_code == 404

    fake_llm.fail_with(llm.LLMResponseError("rate limited"))
    assert client.post("/api/ai/analyze-company", json={"company_id": company["id"]}).status_code == 502
    assert client.get(f"/api/companies/{company['id']}").json()["ai_analyzed"] is False


def test_analyze_company_without_llm_is_503(client, company):
    assert client.post("/api/ai/analyze-company", json={"company_id": company["id"]}).status_code == 503


def test_market_analysis_expands_gics_ids(client, fake_llm):
    fake_llm.reply_with("The European software market is growing.")

    response = client.post("/api/ai/market-analysis", json={
        "sector": "45", "industry_group": "4510", "location": "Germany",
    })

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["sector"] == "Information Technology"
    assert body["industry_group"] == "Software & Services"
    assert body["analysis"] == "The European software market is growing."

    call = fake_llm.calls[0]
    assert call["temperature"] == 0.2
    assert "Information Technology sector" in call["messages"][1]["content"]


def test_market_analysis_requires_sector(client):
    assert client.post("/api/ai/market-analysis", json={"sector": ""}).status_code == 422


def test_market_analysis_without_llm_is_503(client):
    assert client.post("/api/ai/market-analysis", json={"sector": "Energy"}).status_code == 503
