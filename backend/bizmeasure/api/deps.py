"""
deps.py — Shared Router Dependencies

Lookups that every resource router needs and that map a missing row onto a
404 response.
"""

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from bizmeasure.core.database import get_db
from bizmeasure.models import Company
from bizmeasure.services.companies import get_company


def require_company(db: Session, company_id: int) -> Company:
    company = get_company(db, company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


def company_from_path(company_id: int, db: Session = Depends(get_db)) -> Company:
    """Path-parameter dependency: `/companies/{company_id}/...` → Company or 404."""
    return require_company(db, company_id)
