"""
benchmarks.py — Industry Benchmark Reference Values

Purpose:
- Look up the industry average and top-quartile ("max") value of a KPI so the
  dashboard can place a company against its peers.

Lookup order:
1. Industry-specific value (after industry alias resolution)
2. Default value for the metric (after metric alias resolution)
3. {average: 50, max_value: 90}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from bizmeasure.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class BenchmarkValue:
    average: float
    max_value: float


def _bm(average: float, max_value: Optional[float] = None) -> BenchmarkValue:
    # Top-quartile values default to 1.8x the average
    return BenchmarkValue(average, max_value if max_value is not None else round(average * 1.8, 2))


INDUSTRY_BENCHMARKS: Dict[str, Dict[str, BenchmarkValue]] = {
    "tech": {
        "revenue_growth": _bm(18),
        "profit_margin": _bm(20),
        "digital_transformation": _bm(80, 95),
        "r_and_d": _bm(15),
    },
    "retail": {
        "profit_margin": _bm(8),
        "customer_acquisition_cost": _bm(50),
        "customer_retention": _bm(75, 90),
    },
    "manufacturing": {
        "revenue_growth": _bm(5),
        "employee_productivity": _bm(200000),
        "digital_transformation": _bm(42),
    },
    "healthcare": {
        "profit_margin": _bm(15),
        "employee_productivity": _bm(180000),
        "r_and_d": _bm(18),
    },
    "finance": {
        "profit_margin": _bm(25),
        "employee_productivity": _bm(350000),
        "debt_to_equity": _bm(3),
        "cash_flow": _bm(20),
    },
}

DEFAULT_BENCHMARKS: Dict[str, BenchmarkValue] = {
    "revenue_growth": _bm(8),
    "profit_margin": _bm(15),
    "roi": _bm(15),
    "employee_productivity": _bm(150000),
    "customer_acquisition_cost": _bm(200),
    "customer_retention": _bm(80, 92),
    "digital_transformation": _bm(65, 88),
    "r_and_d": _bm(5),
    "debt_to_equity": _bm(1.0),
    "cash_flow": _bm(15),
}

FALLBACK_BENCHMARK = BenchmarkValue(50, 90)

INDUSTRY_ALIASES: Dict[str, str] = {
    "fs": "finance",
    "financials": "finance",
    "technology": "tech",
    "information technology": "tech",
    "health": "healthcare",
    "health care": "healthcare",
    "industrials": "manufacturing",
    "consumer discretionary": "retail",
}

METRIC_ALIASES: Dict[str, str] = {
    "revenuegrowth": "revenue_growth",
    "growth": "revenue_growth",
    "profitmargin": "profit_margin",
    "margin": "profit_margin",
    "return_on_investment": "roi",
    "returnoninvestment": "roi",
    "digitaltransformation": "digital_transformation",
    "transformation": "digital_transformation",
}

BENCHMARK_INDUSTRIES: List[str] = sorted(INDUSTRY_BENCHMARKS)


def normalize_industry(industry: Optional[str]) -> Optional[str]:
    if not industry:
        return None
    key = industry.strip().lower()
    return INDUSTRY_ALIASES.get(key, key)


def normalize_metric(metric: Optional[str]) -> Optional[str]:
    if not metric:
        return None
    key = metric.strip().lower()
    return METRIC_ALIASES.get(key, key)


def get_benchmark_value(industry: Optional[str], metric: Optional[str]) -> BenchmarkValue:
    industry_key = normalize_industry(industry)
    metric_key = normalize_metric(metric)
    if not industry_key or not metric_key:
        logger.warning(f"Invalid benchmark lookup: industry={industry!r} metric={metric!r}")
        return FALLBACK_BENCHMARK

    industry_values = INDUSTRY_BENCHMARKS.get(industry_key, {})
    if metric_key in industry_values:
        return industry_values[metric_key]

    if metric_key in DEFAULT_BENCHMARKS:
        return DEFAULT_BENCHMARKS[metric_key]

    logger.debug(f"No benchmark for {metric_key} in {industry_key}; using fallback")
    return FALLBACK_BENCHMARK


def get_benchmarks(industry: str, metrics: Optional[List[str]] = None) -> Dict[str, BenchmarkValue]:
    """All requested metrics for one industry; every known metric when `metrics` is empty."""
    if not metrics:
        industry_key = normalize_industry(industry) or ""
        metrics = sorted(set(DEFAULT_BENCHMARKS) | set(INDUSTRY_BENCHMARKS.get(industry_key, {})))
    return {metric: get_benchmark_value(industry, metric) for metric in metrics}
