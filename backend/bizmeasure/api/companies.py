"""
companies.py — Company Onboarding Endpoints (API Layer)

Purpose:
- POST /companies → onboard a company for the authenticated owner.
- GET /companies/{company_id} → company details.

Key Interactions:
- bizmeasure.services.companies → unique_id generation, lookups
- bizmeasure.services.sectors → canonical GICS sector names
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from bizmeasure.api.deps import company_from_path
from bizmeasure.core.database import get_db
from bizmeasure.core.logging import get_logger
from bizmeasure.core.security import get_current_user
from bizmeasure.models import Company, User
from bizmeasure.services.companies import generate_unique_company_id
from bizmeasure.services.sectors import get_industry_group_by_id, resolve_sector_name

logger = get_logger(__name__)

router = APIRouter(
    prefix="/companies",
    tags=["companies"]
)

# -----------------------------------------------------------------------------
# Schemas
# -----------------------------------------------------------------------------

class CompanyCreate(BaseModel):
    """
    Onboarding answers.
    - `sector`: GICS sector id or name, or a common alias ("Technology")
    - `industry_group`: GICS industry group id or name (optional)
    - `years_in_business`: band such as "<1", "1-5", "5-10", "10-20", "20+"
    """
    name: str = Field(..., min_length=1, max_length=255)
    website: Optional[str] = None
    sector: str = Field(..., min_length=1)
    industry_group: Optional[str] = None
    location: str = Field(..., min_length=1)
    years_in_business: str = Field(..., min_length=1)
    goal: str = Field(..., min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Acme Logistics GmbH",
                "website": "https://www.acme-logistics.de",
                "sector": "20",
                "industry_group": "2030",
                "location": "Germany",
                "years_in_business": "10-20",
                "goal": "sell",
            }
        }


class CompanyOut(BaseModel):
    id: int
    user_id: int
    name: str
    website: Optional[str] = None
    unique_id: str
    sector: str
    industry_group: Optional[str] = None
    location: str
    years_in_business: str
    goal: str
    ai_analyzed: bool
    created_at: datetime

    class Config:
        from_attributes = True


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.post("", response_model=CompanyOut, status_code=status.HTTP_201_CREATED)
def create_company(
    payload: CompanyCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    POST /companies

    Sector answers that resolve to a GICS sector are stored under the
    canonical sector name; industry group ids are stored as group names.
    """
    sector = resolve_sector_name(payload.sector) or payload.sector.strip()

    industry_group = payload.industry_group
    if industry_group:
        group = get_industry_group_by_id(industry_group.strip())
        industry_group = group.name if group else industry_group.strip()

    company = Company(
        user_id=user.id,
        name=payload.name.strip(),
        website=payload.website,
        unique_id=generate_unique_company_id(payload.name, payload.website),
        sector=sector,
        industry_group=industry_group,
        location=payload.location.strip(),
        years_in_business=payload.years_in_business.strip(),
        goal=payload.goal.strip(),
        ai_analyzed=False,
    )
    db.add(company)
    db.commit()
    db.refresh(company)

    logger.info(f"Onboarded company id={company.id} unique_id={company.unique_id} for user id={user.id}")
    return company


@router.get("/{company_id}", response_model=CompanyOut)
def get_company(company: Company = Depends(company_from_path)):
    """
    GET /companies/{company_id}
    """
    return company
