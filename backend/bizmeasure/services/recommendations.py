"""
recommendations.py — Improvement Recommendation Generator

Purpose:
- Pick value-improvement recommendations from a canned catalogue based on a
  valuation's red flags and weak sub-scores.
- Turn a free-text AI company analysis into an "AI Analysis" recommendation.

Output dicts map 1:1 onto the `recommendations` table columns (minus ids).
"""

from __future__ import annotations

from typing import Any, Dict, List

from bizmeasure.services.valuation import ValuationResult

WEAK_SCORE_THRESHOLD = 60

RECOMMENDATION_CATALOGUE: Dict[str, Dict[str, Any]] = {
    "Digital Transformation": {
        "impact_potential": 4,
        "suggestions": [
            "Implement a comprehensive CRM system to improve customer tracking and engagement.",
            "Adopt an ERP solution to streamline operations and provide better financial visibility.",
            "Develop an e-commerce channel to expand market reach and create new revenue streams.",
        ],
        "estimated_value_impact_min": 12,
        "estimated_value_impact_max": 18,
    },
    "AI Operations": {
        "impact_potential": 5,
        "suggestions": [
            "Implement AI-powered customer support chatbots to improve response times and reduce costs.",
            "Use AI sales forecasting to optimize inventory and improve cash flow management.",
            "Adopt AI-based analytics to identify customer trends and create targeted marketing campaigns.",
        ],
        "estimated_value_impact_min": 15,
        "estimated_value_impact_max": 22,
    },
    "Financial Health": {
        "impact_potential": 3,
        "suggestions": [
            "Restructure existing debt to optimize interest rates and improve debt-to-equity ratio.",
            "Implement margin optimization strategies across product/service lines.",
            "Address tax filing inconsistencies and optimize tax structure.",
        ],
        "estimated_value_impact_min": 8,
        "estimated_value_impact_max": 14,
    },
    "Market Position": {
        "impact_potential": 3,
        "suggestions": [
            "Diversify the customer base to reduce concentration risk.",
            "Convert repeat customers to documented recurring revenue contracts.",
            "Strengthen the brand in core regional markets.",
        ],
        "estimated_value_impact_min": 5,
        "estimated_value_impact_max": 12,
    },
}


def _entry(category: str) -> Dict[str, Any]:
    template = RECOMMENDATION_CATALOGUE[category]
    return {
        "category": category,
        "impact_potential": template["impact_potential"],
        "suggestions": list(template["suggestions"]),
        "estimated_value_impact_min": template["estimated_value_impact_min"],
        "estimated_value_impact_max": template["estimated_value_impact_max"],
    }


def generate_recommendations(result: ValuationResult) -> List[Dict[str, Any]]:
    """
    Select catalogue entries triggered by `result`; "AI Operations" is always
    included. Ordered by impact potential (highest first), then category.
    """
    flags = set(result.red_flags)
    categories = {"AI Operations"}

    if "Digital Transformation Lag" in flags or result.operational_efficiency_score < WEAK_SCORE_THRESHOLD:
        categories.add("Digital Transformation")
    if flags & {"Low Profit Margin", "Negative EBITDA"} or result.financial_health_score < WEAK_SCORE_THRESHOLD:
        categories.add("Financial Health")
    if "Declining Revenue" in flags or result.market_position_score < WEAK_SCORE_THRESHOLD:
        categories.add("Market Position")

    entries = [_entry(category) for category in categories]
    entries.sort(key=lambda e: (-e["impact_potential"], e["category"]))
    return entries


def recommendation_from_analysis(text: str) -> Dict[str, Any]:
    """Build the "AI Analysis" recommendation from the analysis' first paragraph."""
    paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
    summary = paragraphs[0] if paragraphs else text.strip()
    return {
        "category": "AI Analysis",
        "impact_potential": 4,
        "suggestions": [summary],
        "estimated_value_impact_min": 10,
        "estimated_value_impact_max": 20,
    }
