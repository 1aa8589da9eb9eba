"""
recommendations.py — Recommendation & Buyer Match Endpoints (API Layer)

Purpose:
- Store and list improvement recommendations and potential buyer matches.
- Generated rows come from POST /companies/{id}/generate-valuation and
  POST /ai/analyze-company; these endpoints also accept manual entries.
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from bizmeasure.api.deps import company_from_path, require_company
from bizmeasure.core.database import get_db
from bizmeasure.models import BuyerMatch, Company, Recommendation
from bizmeasure.services.companies import list_buyer_matches, list_recommendations

router = APIRouter(tags=["recommendations"])

# -----------------------------------------------------------------------------
# Schemas
# -----------------------------------------------------------------------------

class RecommendationIn(BaseModel):
    company_id: int
    category: str = Field(..., min_length=1)
    impact_potential: int = Field(..., ge=1, le=5)
    suggestions: List[str] = Field(default_factory=list)
    estimated_value_impact_min: int
    estimated_value_impact_max: int

    @model_validator(mode="after")
    def check_impact_range(self) -> "RecommendationIn":
        if self.estimated_value_impact_min > self.estimated_value_impact_max:
            raise ValueError("estimated_value_impact_min must not exceed estimated_value_impact_max")
        return self


class RecommendationOut(RecommendationIn):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class BuyerMatchIn(BaseModel):
    company_id: int
    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    description: str
    match_percentage: int = Field(..., ge=0, le=100)
    tags: List[str] = Field(default_factory=list)
    deal_type: str


class BuyerMatchOut(BuyerMatchIn):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.post("/recommendations", response_model=RecommendationOut, status_code=status.HTTP_201_CREATED)
def create_recommendation(payload: RecommendationIn, db: Session = Depends(get_db)):
    require_company(db, payload.company_id)
    row = Recommendation(**payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.get("/companies/{company_id}/recommendations", response_model=List[RecommendationOut])
def get_recommendations(company: Company = Depends(company_from_path), db: Session = Depends(get_db)):
    return list_recommendations(db, company.id)


@router.post("/buyer-matches", response_model=BuyerMatchOut, status_code=status.HTTP_201_CREATED)
def create_buyer_match(payload: BuyerMatchIn, db: Session = Depends(get_db)):
    require_company(db, payload.company_id)
    row = BuyerMatch(**payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.get("/companies/{company_id}/buyer-matches", response_model=List[BuyerMatchOut])
def get_buyer_matches(company: Company = Depends(company_from_path), db: Session = Depends(get_db)):
    """Best match first."""
    return list_buyer_matches(db, company.id)
