"""
buyer_matches.py — Potential Buyer Matching

Purpose:
- Score a fixed set of buyer profiles against a company's sector, size,
  valuation and the owner's stated intent.

Scores are clamped to [0, 100]; results are sorted best match first.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from bizmeasure.services.sectors import resolve_sector_name
from bizmeasure.services.valuation import ValuationResult

BUYER_PROFILES: List[Dict[str, Any]] = [
    {
        "name": "TechVentures Capital",
        "type": "Private Equity Firm",
        "description": (
            "TechVentures Capital specializes in growth-stage technology companies with strong "
            "digital transformation potential. They typically invest $2-10M for minority stakes "
            "with a 5-7 year growth horizon."
        ),
        "base_score": 94,
        "sectors": ("Information Technology", "Communication Services", "Health Care"),
        "intents": ("grow", "partial-sale"),
        "min_valuation": 1_000_000,
        "tags": ["Technology Focus", "Digital Transformation", "$2-10M Investment Range", "Minority Stake"],
        "deal_type": "Strategic Investor",
    },
    {
        "name": "GrowthWave Acquisitions",
        "type": "Strategic Buyer",
        "description": (
            "GrowthWave is actively acquiring companies in your sector to expand their portfolio. "
            "They focus on established businesses with proven revenue models and digital growth "
            "potential."
        ),
        "base_score": 87,
        "sectors": (),
        "intents": ("sell", "succession"),
        "min_valuation": 500_000,
        "tags": ["Full Acquisition", "$1-5M Revenue Target", "Management Transition", "Established Operations"],
        "deal_type": "Full Acquisition",
    },
    {
        "name": "Horizon Partners",
        "type": "Angel Investor Network",
        "description": (
            "Horizon Partners is a network of angel investors focusing on early-stage growth "
            "companies. They typically provide funding alongside strategic guidance and industry "
            "connections."
        ),
        "base_score": 79,
        "sectors": (),
        "intents": ("grow", "partial-sale"),
        "min_valuation": 0,
        "tags": ["Angel Investment", "$250K-$1M Investment", "Strategic Guidance", "Industry Connections"],
        "deal_type": "Angel Investment",
    },
]


def _score_profile(
    profile: Dict[str, Any],
    sector: Optional[str],
    result: ValuationResult,
    intent: Optional[str],
) -> int:
    score = float(profile["base_score"])

    if profile["sectors"]:
        score += 3 if sector in profile["sectors"] else -12

    if intent:
        score += 2 if intent.lower() in profile["intents"] else -10

    if result.valuation_median < profile["min_valuation"]:
        score -= 15

    if result.risk_score < 50:
        score -= 5

    return int(round(max(0.0, min(100.0, score))))


def generate_buyer_matches(company, result: ValuationResult, intent: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Args:
        company: Company row (only `sector` is read)
        result: the freshly computed valuation
        intent: OwnerIntent.intent, when the owner has answered that step
    """
    sector = resolve_sector_name(company.sector)
    matches = [
        {
            "name": profile["name"],
            "type": profile["type"],
            "description": profile["description"],
            "match_percentage": _score_profile(profile, sector, result, intent),
            "tags": list(profile["tags"]),
            "deal_type": profile["deal_type"],
        }
        for profile in BUYER_PROFILES
    ]
    matches.sort(key=lambda m: m["match_percentage"], reverse=True)
    return matches
