"""
valuation.py — Valuation Aggregator

Purpose:
- Combine a company's submitted financial figures and qualitative intake
  answers into a valuation range, four method estimates, a risk score with
  four sub-scores, and a list of red flags.

Methods:
- EBITDA multiple:   EBITDA × sector EBITDA multiple
- Revenue multiple:  current revenue × sector revenue multiple
- DCF:               5-year projection of a cash-flow proxy, Gordon terminal value
- Asset-based:       current revenue × asset-to-revenue ratio

Rules:
- Pure and deterministic: identical inputs → identical ValuationResult.
- A missing figure removes the methods built on it; it never counts as zero.
- Neither current revenue nor EBITDA → InsufficientDataError.
- Non-finite figures or estimates → ImplausibleFiguresError.
- valuation_min ≤ valuation_median ≤ valuation_max, scores within [0, 100].

This module does NOT:
- Touch the database (see api/valuations.py for persistence).
- Call the LLM.
"""

from __future__ import annotations

import math
import re
import statistics
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from bizmeasure.core.logging import get_logger
from bizmeasure.services.sectors import resolve_sector_name

logger = get_logger(__name__)


class InsufficientDataError(ValueError):
    """Raised when the submitted financials cannot support any valuation method."""


class ImplausibleFiguresError(ValueError):
    """Raised when a figure or method estimate is not a finite number."""


# -----------------------------------------------------------------------------
# Inputs / Assumptions / Output
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ValuationInputs:
    """
    Everything the aggregator reads. All fields are optional.

    Financial amounts are absolute currency units; net_margin is a percent
    (12.5 means 12.5%).
    """
    revenue_current: Optional[float] = None
    revenue_previous: Optional[float] = None
    revenue_two_years_ago: Optional[float] = None
    ebitda: Optional[float] = None
    net_margin: Optional[float] = None

    sector: Optional[str] = None
    years_in_business: Optional[int] = None
    employee_count: Optional[int] = None
    digital_system_count: int = 0
    transformation_level: Optional[int] = None


@dataclass(frozen=True)
class SectorMultiples:
    ebitda: float
    revenue: float


# GICS sector → (EBITDA multiple, revenue multiple) for owner-managed SMBs
SECTOR_MULTIPLES: Dict[str, SectorMultiples] = {
    "Energy": SectorMultiples(4.0, 1.0),
    "Materials": SectorMultiples(4.5, 1.0),
    "Industrials": SectorMultiples(5.0, 1.0),
    "Consumer Discretionary": SectorMultiples(4.5, 0.8),
    "Consumer Staples": SectorMultiples(5.0, 0.9),
    "Health Care": SectorMultiples(6.0, 1.8),
    "Financials": SectorMultiples(5.0, 1.5),
    "Information Technology": SectorMultiples(6.5, 2.5),
    "Communication Services": SectorMultiples(5.5, 1.8),
    "Utilities": SectorMultiples(6.0, 1.5),
    "Real Estate": SectorMultiples(7.0, 3.0),
}


@dataclass(frozen=True)
class ValuationAssumptions:
    default_ebitda_multiple: float = 4.5
    default_revenue_multiple: float = 2.0
    asset_to_revenue_ratio: float = 0.8

    # DCF
    forecast_years: int = 5
    discount_rate: float = 0.15
    terminal_growth_rate: float = 0.02
    ebitda_cash_conversion: float = 0.7
    min_growth_rate: float = -0.10
    max_growth_rate: float = 0.25

    # Range around the median, as a fraction of |median|
    range_spread: float = 0.15

    def multiples_for(self, sector: Optional[str]) -> SectorMultiples:
        name = resolve_sector_name(sector) if sector else None
        if name and name in SECTOR_MULTIPLES:
            return SECTOR_MULTIPLES[name]
        return SectorMultiples(self.default_ebitda_multiple, self.default_revenue_multiple)


DEFAULT_ASSUMPTIONS = ValuationAssumptions()


@dataclass
class ValuationResult:
    valuation_min: float
    valuation_median: float
    valuation_max: float

    ebitda_multiple: Optional[float]
    discounted_cash_flow: Optional[float]
    revenue_multiple: Optional[float]
    asset_based: Optional[float]

    risk_score: int
    financial_health_score: int
    market_position_score: int
    operational_efficiency_score: int
    debt_structure_score: int

    red_flags: List[str] = field(default_factory=list)

    def to_record(self) -> Dict[str, Any]:
        """Column values for the `valuations` table."""
        return asdict(self)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _score(value: float) -> int:
    return int(round(_clamp(value, 0, 100)))


def _require_finite(label: str, value: Optional[float]) -> None:
    if value is not None and not math.isfinite(value):
        raise ImplausibleFiguresError(f"Implausible figures: {label} is not a finite number")


def _rounded_estimate(label: str, value: float) -> float:
    _require_finite(label, value)
    return float(round(value))


def parse_years_in_business(band: Optional[str]) -> Optional[int]:
    """
    Convert an onboarding tenure answer into whole years (lower bound of the band).

    "<1" → 0, "1-5" → 1, "5-10" → 5, "20+" → 20, "12" → 12, "" → None
    """
    if band is None:
        return None
    text = str(band).strip()
    if not text:
        return None
    if text.startswith("<"):
        return 0
    match = re.search(r"\d+", text)
    if not match:
        return None
    return int(match.group())


def revenue_growth_rate(inputs: ValuationInputs) -> Optional[float]:
    """
    Annualised revenue growth from the longest available history (CAGR).

    Returns None when fewer than two positive revenue points are known.
    """
    current = inputs.revenue_current
    if current is None or current <= 0:
        return None
    if inputs.revenue_two_years_ago and inputs.revenue_two_years_ago > 0:
        return (current / inputs.revenue_two_years_ago) ** 0.5 - 1
    if inputs.revenue_previous and inputs.revenue_previous > 0:
        return current / inputs.revenue_previous - 1
    return None


def _cash_flow_proxy(inputs: ValuationInputs, assumptions: ValuationAssumptions) -> Optional[float]:
    if inputs.ebitda is not None:
        return inputs.ebitda * assumptions.ebitda_cash_conversion
    if inputs.revenue_current is not None and inputs.net_margin is not None:
        return inputs.revenue_current * inputs.net_margin / 100.0
    return None


def discounted_cash_flow(inputs: ValuationInputs, assumptions: ValuationAssumptions = DEFAULT_ASSUMPTIONS) -> Optional[float]:
    """
    Present value of `forecast_years` of projected cash flow plus a Gordon
    growth terminal value. Growth is the clamped revenue CAGR (0 when unknown).
    """
    base_cf = _cash_flow_proxy(inputs, assumptions)
    if base_cf is None:
        return None

    growth = revenue_growth_rate(inputs)
    growth = 0.0 if growth is None else _clamp(growth, assumptions.min_growth_rate, assumptions.max_growth_rate)
    rate = assumptions.discount_rate

    pv = 0.0
    cf = base_cf
    for year in range(1, assumptions.forecast_years + 1):
        cf = cf * (1 + growth)
        pv += cf / (1 + rate) ** year

    terminal_value = cf * (1 + assumptions.terminal_growth_rate) / (rate - assumptions.terminal_growth_rate)
    pv += terminal_value / (1 + rate) ** assumptions.forecast_years
    return pv


# -----------------------------------------------------------------------------
# Scores
# -----------------------------------------------------------------------------

def _is_declining(inputs: ValuationInputs) -> bool:
    return (
        inputs.revenue_current is not None
        and inputs.revenue_previous is not None
        and inputs.revenue_current < inputs.revenue_previous
    )


def financial_health_score(inputs: ValuationInputs) -> int:
    margin = inputs.net_margin if inputs.net_margin is not None else 0.0
    score = _clamp(50 + margin * 2, 20, 100)
    if _is_declining(inputs):
        score -= 10
    return _score(score)


def market_position_score(inputs: ValuationInputs) -> int:
    score = 48.0

    years = inputs.years_in_business
    if years is not None:
        if years < 2:
            score -= 8
        elif years < 5:
            score -= 2
        elif years < 10:
            score += 5
        elif years < 20:
            score += 10
        else:
            score += 14

    headcount = inputs.employee_count
    if headcount is not None:
        if headcount < 10:
            score -= 5
        elif headcount >= 250:
            score += 10
        elif headcount >= 50:
            score += 6

    return _score(score)


def operational_efficiency_score(inputs: ValuationInputs) -> int:
    score = 35.0
    if inputs.transformation_level is not None and inputs.transformation_level > 3:
        score += 15
    score += min(max(inputs.digital_system_count, 0), 10)
    return _score(score)


def debt_structure_score(inputs: ValuationInputs) -> int:
    # No balance-sheet intake yet; only EBITDA sign informs serviceability
    score = 72.0
    if inputs.ebitda is not None and inputs.ebitda < 0:
        score -= 20
    return _score(score)


def red_flags(inputs: ValuationInputs) -> List[str]:
    flags: List[str] = []
    if _is_declining(inputs):
        flags.append("Declining Revenue")
    if inputs.net_margin is not None and inputs.net_margin < 10:
        flags.append("Low Profit Margin")
    if inputs.transformation_level is not None and inputs.transformation_level < 3:
        flags.append("Digital Transformation Lag")
    if inputs.ebitda is not None and inputs.ebitda < 0:
        flags.append("Negative EBITDA")
    return flags


# -----------------------------------------------------------------------------
# Aggregation
# -----------------------------------------------------------------------------

def compute_valuation(
    inputs: ValuationInputs,
    assumptions: ValuationAssumptions = DEFAULT_ASSUMPTIONS,
) -> ValuationResult:
    """
    Run every valuation method the inputs support and aggregate them.

    Raises:
        InsufficientDataError: neither current revenue nor EBITDA was supplied.
        ImplausibleFiguresError: a figure or method estimate is not finite.
    """
    if inputs.revenue_current is None and inputs.ebitda is None:
        raise InsufficientDataError(
            "Insufficient data: current revenue or EBITDA is required to value the company"
        )

    for name in ("revenue_current", "revenue_previous", "revenue_two_years_ago", "ebitda", "net_margin"):
        _require_finite(name, getattr(inputs, name))

    multiples = assumptions.multiples_for(inputs.sector)

    ebitda_multiple = None
    if inputs.ebitda is not None:
        ebitda_multiple = _rounded_estimate("EBITDA multiple", inputs.ebitda * multiples.ebitda)

    revenue_multiple = None
    asset_based = None
    if inputs.revenue_current is not None:
        revenue_multiple = _rounded_estimate("revenue multiple", inputs.revenue_current * multiples.revenue)
        asset_based = _rounded_estimate(
            "asset-based", inputs.revenue_current * assumptions.asset_to_revenue_ratio
        )

    dcf = discounted_cash_flow(inputs, assumptions)
    if dcf is not None:
        dcf = _rounded_estimate("discounted cash flow", dcf)

    estimates = [v for v in (ebitda_multiple, dcf, revenue_multiple, asset_based) if v is not None]
    median = statistics.median(estimates)
    spread = abs(median) * assumptions.range_spread
    _require_finite("valuation range", median - spread)
    _require_finite("valuation range", median + spread)

    financial = financial_health_score(inputs)
    market = market_position_score(inputs)
    operational = operational_efficiency_score(inputs)
    debt = debt_structure_score(inputs)
    risk = _score((financial + market + operational + debt) / 4)

    result = ValuationResult(
        valuation_min=float(round(median - spread)),
        valuation_median=float(round(median)),
        valuation_max=float(round(median + spread)),
        ebitda_multiple=ebitda_multiple,
        discounted_cash_flow=dcf,
        revenue_multiple=revenue_multiple,
        asset_based=asset_based,
        risk_score=risk,
        financial_health_score=financial,
        market_position_score=market,
        operational_efficiency_score=operational,
        debt_structure_score=debt,
        red_flags=red_flags(inputs),
    )

    logger.debug(
        f"Valuation computed from {len(estimates)} method(s): "
        f"median={result.valuation_median} risk={result.risk_score}"
    )
    return result


def inputs_from_records(company, financial, employee=None, technology=None) -> ValuationInputs:
    """
    Build ValuationInputs from ORM rows (any of which may be None except company).
    """
    digital_systems = (employee.digital_systems or []) if employee is not None else []
    return ValuationInputs(
        revenue_current=financial.revenue_current if financial is not None else None,
        revenue_previous=financial.revenue_previous if financial is not None else None,
        revenue_two_years_ago=financial.revenue_two_years_ago if financial is not None else None,
        ebitda=financial.ebitda if financial is not None else None,
        net_margin=financial.net_margin if financial is not None else None,
        sector=company.sector,
        years_in_business=parse_years_in_business(company.years_in_business),
        employee_count=employee.count if employee is not None else None,
        digital_system_count=len(digital_systems),
        transformation_level=technology.transformation_level if technology is not None else None,
    )
