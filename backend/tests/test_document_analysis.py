"""
Tests for document upload and AI document analysis.

Tests verify that:
- Local rule checks flag implausible metrics per document type
- Provider replies are parsed, clamped and merged with rule-check issues
- Malformed provider replies raise LLMResponseError
- Comprehensive analysis averages scores and de-duplicates recommendations
- Upload validation (company, type, extension, size)
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bizmeasure.core.config import settings
from bizmeasure.services import llm
from bizmeasure.services.document_analysis import (
    DocumentAnalysis,
    DocumentIssue,
    DocumentValidation,
    ValuationImpact,
    analyze_document,
    analyze_documents_comprehensive,
    run_rule_checks,
)


def _reply(score=85, impact=3.0, issues=None, metrics=None, is_valid=True):
    return json.dumps({
        "validation": {
            "is_valid": is_valid,
            "score": score,
            "summary": "Statements are internally consistent.",
            "issues": issues or [],
        },
        "metrics": metrics or {},
        "valuation_impact": {"description": "Solid margins.", "impact": impact},
    })


# -----------------------------------------------------------------------------
# Rule checks
# -----------------------------------------------------------------------------

def test_financial_rules():
    issues = run_rule_checks("financial", {
        "profit_margins": {"gross": 30, "net": 35},
        "cash_flow": {"operating": 100, "free": 150},
    })

    assert [i.severity for i in issues] == ["critical", "warning"]


def test_financial_rules_accept_consistent_metrics():
    assert run_rule_checks("financial", {
        "profit_margins": {"gross": 40, "net": 12},
        "cash_flow": {"operating": 100, "free": 60},
    }) == []


def test_tax_rules():
    issues = run_rule_checks("tax", {"effective_tax_rate": 72, "compliance_score": 55})
    assert [i.severity for i in issues] == ["warning", "warning"]

    assert run_rule_checks("tax", {"effective_tax_rate": 24, "compliance_score": 90}) == []


def test_contract_rules():
    issues = run_rule_checks("contract", {"risk_exposure": 85, "termination_rights": "Unfavorable"})
    assert [i.severity for i in issues] == ["critical", "warning"]


def test_unknown_type_and_missing_metrics_have_no_rule_issues():
    assert run_rule_checks("marketing", {"anything": 1}) == []
    assert run_rule_checks("financial", {}) == []
    assert run_rule_checks("tax", {"effective_tax_rate": "n/a"}) == []


# -----------------------------------------------------------------------------
# analyze_document
# -----------------------------------------------------------------------------

def test_analyze_document_uses_json_mode(fake_llm):
    fake_llm.reply_with(_reply())

    result = analyze_document("financial", "Revenue 2023: 1.2M", document_id=4)

    call = fake_llm.calls[0]
    assert call["json_mode"] is True
    assert call["messages"][0]["role"] == "system"
    assert "financial analyst" in call["messages"][0]["content"]
    assert "Revenue 2023" in call["messages"][1]["content"]

    assert result.document_id == 4
    assert result.validation.is_valid is True
    assert result.validation.score == 85
    assert result.valuation_impact.impact == 3.0


def test_analyze_document_clamps_impact_and_score(fake_llm):
    fake_llm.reply_with(_reply(score=140, impact=25))

    result = analyze_document("tax", {"text": "..."})

    assert result.validation.score == 100
    assert result.valuation_impact.impact == 10


def test_critical_rule_issue_invalidates_document(fake_llm):
    fake_llm.reply_with(_reply(metrics={"profit_margins": {"gross": 20, "net": 25}}))

    result = analyze_document("financial", "statement text")

    assert result.validation.is_valid is False
    assert any(i.severity == "critical" for i in result.validation.issues)


def test_client_metrics_override_ai_metrics(fake_llm):
    fake_llm.reply_with(_reply(metrics={"risk_exposure": 20}))

    result = analyze_document("contract", "contract text", metrics={"risk_exposure": 90})

    assert result.metrics["risk_exposure"] == 90
    assert result.validation.is_valid is False


def test_fenced_json_reply_is_accepted(fake_llm):
    fake_llm.reply_with("```json\n" + _reply() + "\n```")
    assert analyze_document("financial", "x").validation.score == 85


def test_non_json_reply_raises(fake_llm):
    fake_llm.reply_with("I could not read the document, sorry.")
    with pytest.raises(llm.LLMResponseError):
        analyze_document("financial", "x")


def test_schema_violation_raises(fake_llm):
    fake_llm.reply_with(_reply(issues=[{"severity": "catastrophic", "description": "?"}]))
    with pytest.raises(llm.LLMResponseError):
        analyze_document("financial", "x")


@pytest.mark.parametrize(
    "reply",
    [
        "{}",
        json.dumps({"validation": {"is_valid": True, "score": 90, "summary": "Fine."}}),
        json.dumps({
            "validation": {"is_valid": True, "summary": "No score."},
            "valuation_impact": {"description": "n/a", "impact": 1},
        }),
        json.dumps({
            "validation": {"is_valid": True, "score": 70, "summary": "Fine."},
            "valuation_impact": {"description": "No impact figure."},
        }),
        json.dumps({
            "validation": {"is_valid": True, "score": 70, "summary": "Fine."},
            "metrics": ["not", "a", "map"],
            "valuation_impact": {"impact": 1},
        }),
    ],
)
def test_incomplete_reply_raises(fake_llm, reply):
    fake_llm.reply_with(reply)
    with pytest.raises(llm.LLMResponseError):
        analyze_document("financial", "x")


def test_reply_without_metrics_is_accepted(fake_llm):
    fake_llm.reply_with(json.dumps({
        "validation": {"is_valid": True, "score": 70, "summary": "Fine."},
        "valuation_impact": {"impact": -1.5},
    }))

    result = analyze_document("tax", "x", metrics={"compliance_score": 95})

    assert result.metrics == {"compliance_score": 95}
    assert result.valuation_impact.impact == -1.5


# -----------------------------------------------------------------------------
# Comprehensive analysis
# -----------------------------------------------------------------------------

def _analysis(score, impact, recommendations):
    return DocumentAnalysis(
        document_type="financial",
        validation=DocumentValidation(
            score=score,
            issues=[
                DocumentIssue(severity=severity, description=text, recommendation=text)
                for severity, text in recommendations
            ],
        ),
        valuation_impact=ValuationImpact(impact=impact),
    )


def test_comprehensive_analysis_averages_and_deduplicates():
    result = analyze_documents_comprehensive([
        _analysis(80, 4, [("warning", "Fix tax filings"), ("critical", "Restate margins")]),
        _analysis(60, -2, [("warning", "Fix tax filings")]),
    ])

    assert result.overall_score == 70
    assert result.valuation_impact == 1.0
    assert result.recommendations == ["Restate margins", "Fix tax filings"]


def test_comprehensive_analysis_requires_input():
    with pytest.raises(ValueError):
        analyze_documents_comprehensive([])


# -----------------------------------------------------------------------------
# API
# -----------------------------------------------------------------------------

def _upload(client, company_id, name="pl.csv", body=b"year,revenue\n2023,1200000\n", doc_type="financial"):
    return client.post(
        "/api/documents",
        data={"company_id": str(company_id), "type": doc_type},
        files={"file": (name, body, "text/csv")},
    )


def test_upload_and_list_documents(client, company):
    response = _upload(client, company["id"])

    assert response.status_code == 201, response.text
    assert response.json()["type"] == "financial"
    assert "file_path" not in response.json()

    listed = client.get(f"/api/companies/{company['id']}/documents").json()
    assert [d["file_name"] for d in listed] == ["pl.csv"]


def test_upload_validation(client, company, monkeypatch):
    assert _upload(client, 999).status_code == 404
    assert _upload(client, company["id"], doc_type="marketing").status_code == 400
    assert _upload(client, company["id"], name="payload.exe").status_code == 400
    assert _upload(client, company["id"], body=b"").status_code == 400

    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)
    assert _upload(client, company["id"]).status_code == 413


def test_failed_upload_commit_removes_stored_file(client, company, monkeypatch):
    def failing_commit(self):
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(Session, "commit", failing_commit)

    with pytest.raises(SQLAlchemyError):
        _upload(client, company["id"])

    assert list(Path(settings.UPLOAD_DIR).iterdir()) == []


def test_analyze_uploaded_csv_forwards_file_text(client, company, fake_llm):
    document = _upload(client, company["id"]).json()
    fake_llm.reply_with(_reply(score=77))

    response = client.post(f"/api/documents/{document['id']}/analyze")

    assert response.status_code == 200, response.text
    assert response.json()["validation"]["score"] == 77
    assert "2023,1200000" in fake_llm.calls[0]["messages"][1]["content"]


def test_analyze_document_without_llm_is_503(client, company):
    document = _upload(client, company["id"]).json()
    assert client.post(f"/api/documents/{document['id']}/analyze").status_code == 503


def test_analyze_document_bad_reply_is_502(client, company, fake_llm):
    document = _upload(client, company["id"]).json()
    fake_llm.reply_with("not json")
    assert client.post(f"/api/documents/{document['id']}/analyze", json={"content": "x"}).status_code == 502


def test_analyze_unknown_document_is_404(client):
    assert client.post("/api/documents/999/analyze").status_code == 404


def test_comprehensive_analysis_endpoint(client, company):
    analyses = [
        _analysis(90, 2, [("info", "Keep monthly closes")]).model_dump(),
        _analysis(70, 4, []).model_dump(),
    ]

    response = client.post(f"/api/companies/{company['id']}/documents/analysis", json={"analyses": analyses})

    assert response.status_code == 200, response.text
    assert response.json()["overall_score"] == 80
    assert response.json()["recommendations"] == ["Keep monthly closes"]

    empty = client.post(f"/api/companies/{company['id']}/documents/analysis", json={"analyses": []})
    assert empty.status_code == 422
