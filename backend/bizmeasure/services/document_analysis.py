"""
document_analysis.py — AI Document Analysis Delegator

Purpose:
- Forward a document's type tag + extracted content/metrics to the LLM in
  JSON mode and parse the reply into a structured DocumentAnalysis.
- Run local threshold checks on the extracted metrics and merge their
  issues into the AI's validation result.
- Aggregate several per-document analyses into a comprehensive view.

Response schema requested from the provider:
{
  "validation": {
    "is_valid": bool,
    "score": 0-100,
    "summary": str,
    "issues": [{"severity": "critical|warning|info", "description": str,
                "location": str|null, "recommendation": str|null}]
  },
  "metrics": {...},
  "valuation_impact": {"description": str, "impact": -10..10}
}

validation.is_valid, validation.score, validation.summary and
valuation_impact.impact are required; a reply without them raises
LLMResponseError.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from bizmeasure.core.logging import get_logger
from bizmeasure.services import llm

logger = get_logger(__name__)

Severity = Literal["critical", "warning", "info"]


# -----------------------------------------------------------------------------
# Schemas
# -----------------------------------------------------------------------------

class DocumentIssue(BaseModel):
    severity: Severity
    description: str
    location: Optional[str] = None
    recommendation: Optional[str] = None


class DocumentValidation(BaseModel):
    is_valid: bool = True
    score: float = Field(0, ge=0, le=100)
    summary: str = ""
    issues: List[DocumentIssue] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> float:
        return max(0.0, min(100.0, float(v)))


class ValuationImpact(BaseModel):
    description: str = ""
    impact: float = 0.0

    @field_validator("impact", mode="before")
    @classmethod
    def clamp_impact(cls, v: Any) -> float:
        return max(-10.0, min(10.0, float(v)))


class DocumentAnalysis(BaseModel):
    document_id: Optional[int] = None
    document_type: str
    validation: DocumentValidation
    metrics: Dict[str, Any] = Field(default_factory=dict)
    valuation_impact: ValuationImpact


class ComprehensiveAnalysis(BaseModel):
    overall_score: float
    valuation_impact: float
    document_analyses: List[DocumentAnalysis]
    recommendations: List[str]


class ValidationReply(DocumentValidation):
    """Provider side of `validation`: verdict, score and summary are required."""
    is_valid: bool
    score: float = Field(..., ge=0, le=100)
    summary: str


class ImpactReply(ValuationImpact):
    impact: float


class DocumentAnalysisReply(BaseModel):
    """The JSON object the provider must return."""
    validation: ValidationReply
    metrics: Optional[Dict[str, Any]] = None
    valuation_impact: ImpactReply


# -----------------------------------------------------------------------------
# Prompts
# -----------------------------------------------------------------------------

_SYSTEM_PROMPTS: Dict[str, str] = {
    "financial": (
        "You are an expert financial analyst specializing in business valuation for "
        "European SMBs. Analyze financial documents to identify strengths, weaknesses, "
        "issues, and valuation impacts."
    ),
    "tax": (
        "You are an expert tax consultant specializing in European SMB tax compliance "
        "and optimization. Analyze tax documents to identify compliance issues, risks, "
        "and valuation impacts."
    ),
    "contract": (
        "You are an expert legal consultant specializing in business contracts and M&A "
        "due diligence. Analyze contracts to identify risks, obligations, and valuation "
        "impacts."
    ),
}

_DEFAULT_SYSTEM_PROMPT = (
    "You are an expert business consultant specializing in document analysis for M&A "
    "due diligence. Analyze documents to identify issues, risks, and valuation impacts."
)

_METRIC_HINTS: Dict[str, str] = {
    "financial": (
        '"revenue_growth": {"one_year", "three_year"}, "profit_margins": {"gross", '
        '"operating", "net"}, "liquidity_ratios": {"current", "quick"}, "debt_ratios": '
        '{"debt_to_equity", "interest_coverage"}, "working_capital", "cash_flow": '
        '{"operating", "investing", "financing", "free"}'
    ),
    "tax": (
        '"effective_tax_rate", "total_tax_liability", "tax_credits", "deductions", '
        '"compliance_score" (0-100)'
    ),
    "contract": (
        '"risk_exposure" (0-100), "favorability" (negative = unfavorable), '
        '"term_length_months", "renewal_type" (automatic|manual|none), '
        '"termination_rights" (balanced|favorable|unfavorable)'
    ),
}

_RESPONSE_FORMAT = """Return a JSON object with exactly this structure:
{
  "validation": {
    "is_valid": true,
    "score": 0-100,
    "summary": "one or two sentences",
    "issues": [
      {"severity": "critical" | "warning" | "info", "description": "...",
       "location": "where in the document or null", "recommendation": "... or null"}
    ]
  },
  "metrics": { %s },
  "valuation_impact": {"description": "...", "impact": number between -10 and 10}
}
Percentages are plain numbers (12.5 means 12.5%%). Omit metrics you cannot find."""


def _build_messages(document_type: str, content: Any) -> List[Dict[str, str]]:
    system_prompt = _SYSTEM_PROMPTS.get(document_type, _DEFAULT_SYSTEM_PROMPT)
    hints = _METRIC_HINTS.get(document_type, "")
    system_prompt += "\n\n" + (_RESPONSE_FORMAT % hints)

    user_prompt = (
        f"Analyze this {document_type} document data and provide a detailed assessment "
        f"including validation issues, key metrics, and valuation impact:\n\n"
        f"{json.dumps(content, indent=2, default=str)}"
    )
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


# -----------------------------------------------------------------------------
# Local rule checks
# -----------------------------------------------------------------------------

def _number(mapping: Dict[str, Any], *path: str) -> Optional[float]:
    value: Any = mapping
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def validate_financial_metrics(metrics: Dict[str, Any]) -> List[DocumentIssue]:
    issues: List[DocumentIssue] = []

    gross = _number(metrics, "profit_margins", "gross")
    net = _number(metrics, "profit_margins", "net")
    if gross is not None and net is not None and net > gross:
        issues.append(DocumentIssue(
            severity="critical",
            description="Net profit margin cannot exceed gross profit margin",
            recommendation="Review expense categorization and profit calculations",
        ))

    operating_cf = _number(metrics, "cash_flow", "operating")
    free_cf = _number(metrics, "cash_flow", "free")
    investing_cf = _number(metrics, "cash_flow", "investing")
    if (
        operating_cf is not None
        and free_cf is not None
        and free_cf > operating_cf
        and not (investing_cf is not None and investing_cf > 0)
    ):
        issues.append(DocumentIssue(
            severity="warning",
            description="Free cash flow exceeds operating cash flow without positive investing cash flow",
            recommendation="Verify cash flow calculations and categorization",
        ))

    return issues


def validate_tax_metrics(metrics: Dict[str, Any]) -> List[DocumentIssue]:
    issues: List[DocumentIssue] = []

    rate = _number(metrics, "effective_tax_rate")
    if rate is not None and not 0 <= rate <= 60:
        issues.append(DocumentIssue(
            severity="warning",
            description=f"Effective tax rate of {rate:g}% is outside the plausible 0-60% range",
            recommendation="Reconcile reported tax expense with pre-tax income",
        ))

    compliance = _number(metrics, "compliance_score")
    if compliance is not None and compliance < 70:
        issues.append(DocumentIssue(
            severity="warning",
            description=f"Tax compliance score of {compliance:g} is below 70",
            recommendation="Resolve open compliance items before approaching buyers",
        ))

    return issues


def validate_contract_metrics(metrics: Dict[str, Any]) -> List[DocumentIssue]:
    issues: List[DocumentIssue] = []

    exposure = _number(metrics, "risk_exposure")
    if exposure is not None and exposure > 70:
        issues.append(DocumentIssue(
            severity="critical",
            description=f"Contract risk exposure of {exposure:g} exceeds 70",
            recommendation="Renegotiate liability and indemnity terms",
        ))

    if str(metrics.get("termination_rights", "")).lower() == "unfavorable":
        issues.append(DocumentIssue(
            severity="warning",
            description="Termination rights are unfavorable to the company",
            recommendation="Negotiate balanced termination clauses",
        ))

    return issues


_RULE_CHECKS = {
    "financial": validate_financial_metrics,
    "tax": validate_tax_metrics,
    "contract": validate_contract_metrics,
}


def run_rule_checks(document_type: str, metrics: Dict[str, Any]) -> List[DocumentIssue]:
    check = _RULE_CHECKS.get(document_type)
    if check is None:
        return []
    return check(metrics or {})


def _merge_issues(validation: DocumentValidation, extra: List[DocumentIssue]) -> DocumentValidation:
    known = {issue.description.lower() for issue in validation.issues}
    issues = list(validation.issues)
    for issue in extra:
        if issue.description.lower() not in known:
            issues.append(issue)
            known.add(issue.description.lower())

    has_critical = any(issue.severity == "critical" for issue in issues)
    return validation.model_copy(update={
        "issues": issues,
        "is_valid": validation.is_valid and not has_critical,
    })


# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------

def analyze_document(
    document_type: str,
    content: Any,
    document_id: Optional[int] = None,
    metrics: Optional[Dict[str, Any]] = None,
) -> DocumentAnalysis:
    """
    Analyze one document through the LLM and merge in local rule checks.

    Args:
        document_type: "financial", "tax", "contract" (anything else uses a generic prompt)
        content: extracted text and/or structured data sent to the provider
        document_id: id of the stored document, echoed back
        metrics: client-extracted metrics; checked locally and preferred over
            AI-extracted values for the same keys

    Raises:
        LLMNotConfiguredError, LLMResponseError
    """
    payload = {"content": content}
    if metrics:
        payload["metrics"] = metrics

    result = llm.chat_completion(
        _build_messages(document_type, payload),
        temperature=0.2,
        max_tokens=2000,
        json_mode=True,
    )
    data = llm.parse_json_content(result.content)

    try:
        reply = DocumentAnalysisReply.model_validate(data)
    except (ValidationError, TypeError, ValueError) as e:
        raise llm.LLMResponseError(f"LLM response did not match the document analysis schema: {e}") from e

    validation = DocumentValidation.model_validate(reply.validation.model_dump())
    impact = ValuationImpact.model_validate(reply.valuation_impact.model_dump())

    merged_metrics = {**(reply.metrics or {}), **(metrics or {})}

    validation = _merge_issues(validation, run_rule_checks(document_type, merged_metrics))

    logger.info(
        f"Document analysis ({document_type}) complete: score={validation.score:g} "
        f"issues={len(validation.issues)} impact={impact.impact:g}"
    )

    return DocumentAnalysis(
        document_id=document_id,
        document_type=document_type,
        validation=validation,
        metrics=merged_metrics,
        valuation_impact=impact,
    )


def analyze_documents_comprehensive(analyses: List[DocumentAnalysis]) -> ComprehensiveAnalysis:
    """
    Combine per-document analyses: mean validation score, mean valuation
    impact (kept within -10..10), and de-duplicated recommendations ordered
    critical first.
    """
    if not analyses:
        raise ValueError("At least one document analysis is required")

    overall = sum(a.validation.score for a in analyses) / len(analyses)
    impact = sum(a.valuation_impact.impact for a in analyses) / len(analyses)

    severity_rank = {"critical": 0, "warning": 1, "info": 2}
    issues = sorted(
        (issue for a in analyses for issue in a.validation.issues),
        key=lambda issue: severity_rank[issue.severity],
    )

    recommendations: List[str] = []
    for issue in issues:
        if issue.recommendation and issue.recommendation not in recommendations:
            recommendations.append(issue.recommendation)

    return ComprehensiveAnalysis(
        overall_score=round(overall, 1),
        valuation_impact=round(max(-10.0, min(10.0, impact)), 1),
        document_analyses=analyses,
        recommendations=recommendations,
    )
