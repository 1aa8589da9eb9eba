"""
intake.py — Business Data Wizard Endpoints (API Layer)

Purpose:
- Accept the four intake steps (financials, employees, technology, owner intent)
  for an existing company.
- Return the newest submitted row per step.

Rows are append-only: re-submitting a step inserts a new row.
A company that does not exist is a 404; intake never creates companies.
"""

from datetime import datetime
from typing import List, Optional, Type

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from bizmeasure.api.deps import company_from_path, require_company
from bizmeasure.core.database import get_db
from bizmeasure.core.logging import get_logger
from bizmeasure.models import Company, Employee, Financial, OwnerIntent, Technology
from bizmeasure.services.companies import latest_for_company

logger = get_logger(__name__)

router = APIRouter(tags=["intake"])

# -----------------------------------------------------------------------------
# Schemas
# -----------------------------------------------------------------------------

# Largest accepted currency amount; keeps every multiple and DCF step finite
MAX_AMOUNT = 1e15


class FinancialIn(BaseModel):
    """Absolute currency amounts; `net_margin` in percent (12.5 = 12.5%)."""
    company_id: int
    revenue_current: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    revenue_previous: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    revenue_two_years_ago: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    ebitda: Optional[float] = Field(None, ge=-MAX_AMOUNT, le=MAX_AMOUNT, allow_inf_nan=False)
    net_margin: Optional[float] = Field(None, ge=-100, le=100, allow_inf_nan=False)


class FinancialOut(FinancialIn):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class EmployeeIn(BaseModel):
    company_id: int
    count: Optional[int] = Field(None, ge=0)
    digital_systems: List[str] = Field(default_factory=list)
    other_system_details: Optional[str] = None


class EmployeeOut(EmployeeIn):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class TechnologyIn(BaseModel):
    """`transformation_level`: 1 (paper-based) .. 5 (fully digital)."""
    company_id: int
    transformation_level: Optional[int] = Field(None, ge=1, le=5)
    technologies_used: List[str] = Field(default_factory=list)
    tech_investment_percentage: Optional[float] = Field(None, ge=0, le=100)


class TechnologyOut(TechnologyIn):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class OwnerIntentIn(BaseModel):
    company_id: int
    intent: str = Field(..., min_length=1)
    exit_timeline: str = Field(..., min_length=1)
    ideal_outcome: Optional[str] = None
    valuation_expectations: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)


class OwnerIntentOut(OwnerIntentIn):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _store(db: Session, model: Type, payload: BaseModel):
    require_company(db, payload.company_id)
    row = model(**payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info(f"Stored {model.__tablename__} row id={row.id} for company id={payload.company_id}")
    return row


def _latest_or_404(db: Session, model: Type, company: Company, label: str):
    row = latest_for_company(db, model, company.id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"{label} not found for company")
    return row


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.post("/financials", response_model=FinancialOut, status_code=status.HTTP_201_CREATED)
def submit_financials(payload: FinancialIn, db: Session = Depends(get_db)):
    return _store(db, Financial, payload)


@router.get("/companies/{company_id}/financials", response_model=FinancialOut)
def get_financials(company: Company = Depends(company_from_path), db: Session = Depends(get_db)):
    return _latest_or_404(db, Financial, company, "Financial data")


@router.post("/employees", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
def submit_employees(payload: EmployeeIn, db: Session = Depends(get_db)):
    return _store(db, Employee, payload)


@router.get("/companies/{company_id}/employees", response_model=EmployeeOut)
def get_employees(company: Company = Depends(company_from_path), db: Session = Depends(get_db)):
    return _latest_or_404(db, Employee, company, "Employee data")


@router.post("/technology", response_model=TechnologyOut, status_code=status.HTTP_201_CREATED)
def submit_technology(payload: TechnologyIn, db: Session = Depends(get_db)):
    return _store(db, Technology, payload)


@router.get("/companies/{company_id}/technology", response_model=TechnologyOut)
def get_technology(company: Company = Depends(company_from_path), db: Session = Depends(get_db)):
    return _latest_or_404(db, Technology, company, "Technology data")


@router.post("/owner-intent", response_model=OwnerIntentOut, status_code=status.HTTP_201_CREATED)
def submit_owner_intent(payload: OwnerIntentIn, db: Session = Depends(get_db)):
    return _store(db, OwnerIntent, payload)


@router.get("/companies/{company_id}/owner-intent", response_model=OwnerIntentOut)
def get_owner_intent(company: Company = Depends(company_from_path), db: Session = Depends(get_db)):
    return _latest_or_404(db, OwnerIntent, company, "Owner intent")
