"""
valuations.py — Valuation Endpoints (API Layer)

Purpose:
- POST /companies/{company_id}/generate-valuation → run the aggregator on the
  newest intake data, persist the valuation plus generated recommendations
  and buyer matches.
- POST /valuations → store an externally computed valuation.
- GET /companies/{company_id}/valuation → newest valuation.

The API layer does not compute anything itself: see services/valuation.py.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from bizmeasure.api.deps import company_from_path, require_company
from bizmeasure.api.recommendations import BuyerMatchOut, RecommendationOut
from bizmeasure.core.database import get_db
from bizmeasure.core.logging import get_logger
from bizmeasure.models import BuyerMatch, Company, Recommendation, Valuation
from bizmeasure.services import companies as company_data
from bizmeasure.services.buyer_matches import generate_buyer_matches
from bizmeasure.services.recommendations import generate_recommendations
from bizmeasure.services.valuation import (
    ImplausibleFiguresError,
    InsufficientDataError,
    compute_valuation,
    inputs_from_records,
)

logger = get_logger(__name__)

router = APIRouter(tags=["valuations"])

# -----------------------------------------------------------------------------
# Schemas
# -----------------------------------------------------------------------------

class ValuationIn(BaseModel):
    company_id: int

    valuation_min: float = Field(..., allow_inf_nan=False)
    valuation_median: float = Field(..., allow_inf_nan=False)
    valuation_max: float = Field(..., allow_inf_nan=False)

    ebitda_multiple: Optional[float] = Field(None, allow_inf_nan=False)
    discounted_cash_flow: Optional[float] = Field(None, allow_inf_nan=False)
    revenue_multiple: Optional[float] = Field(None, allow_inf_nan=False)
    asset_based: Optional[float] = Field(None, allow_inf_nan=False)

    risk_score: int = Field(..., ge=0, le=100)
    financial_health_score: int = Field(..., ge=0, le=100)
    market_position_score: int = Field(..., ge=0, le=100)
    operational_efficiency_score: int = Field(..., ge=0, le=100)
    debt_structure_score: int = Field(..., ge=0, le=100)

    red_flags: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_range_order(self) -> "ValuationIn":
        if not self.valuation_min <= self.valuation_median <= self.valuation_max:
            raise ValueError("valuation_min <= valuation_median <= valuation_max must hold")
        return self


class ValuationOut(ValuationIn):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class GeneratedValuationResponse(BaseModel):
    valuation: ValuationOut
    recommendations: List[RecommendationOut]
    buyer_matches: List[BuyerMatchOut]


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.post("/valuations", response_model=ValuationOut, status_code=status.HTTP_201_CREATED)
def store_valuation(payload: ValuationIn, db: Session = Depends(get_db)):
    require_company(db, payload.company_id)
    valuation = Valuation(**payload.model_dump())
    db.add(valuation)
    db.commit()
    db.refresh(valuation)
    return valuation


@router.get("/companies/{company_id}/valuation", response_model=ValuationOut)
def get_latest_valuation(company: Company = Depends(company_from_path), db: Session = Depends(get_db)):
    valuation = company_data.latest_valuation(db, company.id)
    if valuation is None:
        raise HTTPException(status_code=404, detail="Valuation not found for company")
    return valuation


@router.post(
    "/companies/{company_id}/generate-valuation",
    response_model=GeneratedValuationResponse,
    status_code=status.HTTP_201_CREATED,
)
def generate_valuation(company: Company = Depends(company_from_path), db: Session = Depends(get_db)):
    """
    POST /companies/{company_id}/generate-valuation

    High-Level Flow:
    1. Load the newest financial, employee, technology and owner-intent rows.
    2. Run the valuation aggregator (422 when revenue and EBITDA are both missing
       or a figure is not finite).
    3. Persist the valuation, the triggered recommendations and scored buyer matches.
    """
    financial = company_data.latest_financial(db, company.id)
    employee = company_data.latest_employee(db, company.id)
    technology = company_data.latest_technology(db, company.id)
    intent = company_data.latest_owner_intent(db, company.id)

    inputs = inputs_from_records(company, financial, employee, technology)
    try:
        result = compute_valuation(inputs)
    except (InsufficientDataError, ImplausibleFiguresError) as e:
        logger.warning(f"Valuation for company id={company.id} rejected: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    valuation = Valuation(company_id=company.id, **result.to_record())
    db.add(valuation)

    recommendations = [
        Recommendation(company_id=company.id, **entry)
        for entry in generate_recommendations(result)
    ]
    buyer_matches = [
        BuyerMatch(company_id=company.id, **match)
        for match in generate_buyer_matches(company, result, intent.intent if intent else None)
    ]
    db.add_all(recommendations + buyer_matches)
    db.commit()

    db.refresh(valuation)
    for row in recommendations + buyer_matches:
        db.refresh(row)

    logger.info(
        f"Generated valuation id={valuation.id} for company id={company.id}: "
        f"median={valuation.valuation_median:,.0f} risk={valuation.risk_score} "
        f"flags={valuation.red_flags}"
    )

    return GeneratedValuationResponse(
        valuation=ValuationOut.model_validate(valuation),
        recommendations=[RecommendationOut.model_validate(r) for r in recommendations],
        buyer_matches=[BuyerMatchOut.model_validate(m) for m in buyer_matches],
    )
