"""
reference.py — Reference Data Endpoints (API Layer)

Purpose:
- GICS sectors and industry groups offered by onboarding.
- Industry benchmark values for dashboard comparisons.

Read-only, no database access.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from bizmeasure.services.benchmarks import get_benchmarks, normalize_industry
from bizmeasure.services.sectors import GICS_SECTORS, get_industry_groups_by_sector_id, get_sector_by_id

router = APIRouter(tags=["reference"])

# -----------------------------------------------------------------------------
# Schemas
# -----------------------------------------------------------------------------

class SectorOut(BaseModel):
    id: str
    name: str
    description: str


class IndustryGroupOut(BaseModel):
    id: str
    sector_id: str
    name: str
    description: str


class BenchmarkOut(BaseModel):
    average: float
    max_value: float


class BenchmarksResponse(BaseModel):
    industry: str
    metrics: Dict[str, BenchmarkOut]


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.get("/sectors", response_model=List[SectorOut])
def list_sectors():
    return [SectorOut(id=s.id, name=s.name, description=s.description) for s in GICS_SECTORS]


@router.get("/sectors/{sector_id}/industry-groups", response_model=List[IndustryGroupOut])
def list_industry_groups(sector_id: str):
    if get_sector_by_id(sector_id) is None:
        raise HTTPException(status_code=404, detail="Sector not found")
    return [
        IndustryGroupOut(id=g.id, sector_id=g.sector_id, name=g.name, description=g.description)
        for g in get_industry_groups_by_sector_id(sector_id)
    ]


@router.get("/benchmarks/{industry}", response_model=BenchmarksResponse)
def read_benchmarks(
    industry: str,
    metrics: Optional[str] = Query(None, description="Comma-separated metric ids, e.g. profit_margin,roi"),
):
    """
    GET /benchmarks/{industry}?metrics=profit_margin,revenue_growth

    Unknown industries or metrics fall back to default values.
    """
    requested = [m.strip() for m in metrics.split(",") if m.strip()] if metrics else None
    values = get_benchmarks(industry, requested)
    return BenchmarksResponse(
        industry=normalize_industry(industry) or industry,
        metrics={name: BenchmarkOut(average=v.average, max_value=v.max_value) for name, v in values.items()},
    )
