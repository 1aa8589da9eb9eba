"""
companies.py — Company & Intake Data Access

Purpose:
- Query helpers shared by the routers: company lookup, the newest intake row
  per step, and the newest valuation.
- Build a company's stable unique_id at onboarding.
- Assemble the profile dict sent to the LLM for a company analysis.

Intake tables are append-only; "current" means the highest id for the company.
"""

from __future__ import annotations

import re
import uuid
from typing import Any, Dict, List, Optional, Type, TypeVar
from urllib.parse import urlparse

from sqlalchemy import select
from sqlalchemy.orm import Session

from bizmeasure.models import (
    BuyerMatch,
    Company,
    Document,
    Employee,
    Financial,
    OwnerIntent,
    Recommendation,
    Technology,
    Valuation,
)

T = TypeVar("T")


def _slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def website_domain(website: Optional[str]) -> Optional[str]:
    """`https://www.acme.eu/about` → `acme.eu`"""
    if not website:
        return None
    value = website.strip()
    if "://" not in value:
        value = f"http://{value}"
    host = urlparse(value).hostname
    if not host:
        return None
    return host[4:] if host.startswith("www.") else host


def generate_unique_company_id(name: str, website: Optional[str] = None) -> str:
    """Slug of the name plus the website domain, with a short random suffix."""
    parts = [_slugify(name) or "company"]
    domain = website_domain(website)
    if domain:
        parts.append(_slugify(domain))
    parts.append(uuid.uuid4().hex[:8])
    return "-".join(parts)


# -----------------------------------------------------------------------------
# Lookups
# -----------------------------------------------------------------------------

def get_company(db: Session, company_id: int) -> Optional[Company]:
    return db.get(Company, company_id)


def latest_for_company(db: Session, model: Type[T], company_id: int) -> Optional[T]:
    stmt = (
        select(model)
        .where(model.company_id == company_id)
        .order_by(model.id.desc())
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


def latest_financial(db: Session, company_id: int) -> Optional[Financial]:
    return latest_for_company(db, Financial, company_id)


def latest_employee(db: Session, company_id: int) -> Optional[Employee]:
    return latest_for_company(db, Employee, company_id)


def latest_technology(db: Session, company_id: int) -> Optional[Technology]:
    return latest_for_company(db, Technology, company_id)


def latest_owner_intent(db: Session, company_id: int) -> Optional[OwnerIntent]:
    return latest_for_company(db, OwnerIntent, company_id)


def latest_valuation(db: Session, company_id: int) -> Optional[Valuation]:
    return latest_for_company(db, Valuation, company_id)


def list_for_company(db: Session, model: Type[T], company_id: int) -> List[T]:
    stmt = select(model).where(model.company_id == company_id).order_by(model.id)
    return list(db.execute(stmt).scalars())


def list_documents(db: Session, company_id: int) -> List[Document]:
    return list_for_company(db, Document, company_id)


def list_recommendations(db: Session, company_id: int) -> List[Recommendation]:
    return list_for_company(db, Recommendation, company_id)


def list_buyer_matches(db: Session, company_id: int) -> List[BuyerMatch]:
    stmt = (
        select(BuyerMatch)
        .where(BuyerMatch.company_id == company_id)
        .order_by(BuyerMatch.match_percentage.desc(), BuyerMatch.id)
    )
    return list(db.execute(stmt).scalars())


# -----------------------------------------------------------------------------
# AI profile
# -----------------------------------------------------------------------------

def company_profile(db: Session, company: Company) -> Dict[str, Any]:
    """Company identity plus whatever intake data exists, for the AI analyst."""
    profile: Dict[str, Any] = {
        "name": company.name,
        "sector": company.sector,
        "industry_group": company.industry_group,
        "location": company.location,
        "years_in_business": company.years_in_business,
        "goal": company.goal,
    }

    financial = latest_financial(db, company.id)
    if financial is not None:
        profile["financials"] = {
            "revenue_current": financial.revenue_current,
            "revenue_previous": financial.revenue_previous,
            "revenue_two_years_ago": financial.revenue_two_years_ago,
            "ebitda": financial.ebitda,
            "net_margin_percent": financial.net_margin,
        }

    employee = latest_employee(db, company.id)
    if employee is not None:
        profile["employees"] = {
            "count": employee.count,
            "digital_systems": employee.digital_systems or [],
        }

    technology = latest_technology(db, company.id)
    if technology is not None:
        profile["technology"] = {
            "transformation_level": technology.transformation_level,
            "technologies_used": technology.technologies_used or [],
            "tech_investment_percentage": technology.tech_investment_percentage,
        }

    intent = latest_owner_intent(db, company.id)
    if intent is not None:
        profile["owner_intent"] = {
            "intent": intent.intent,
            "exit_timeline": intent.exit_timeline,
            "ideal_outcome": intent.ideal_outcome,
            "valuation_expectations": intent.valuation_expectations,
        }

    valuation = latest_valuation(db, company.id)
    if valuation is not None:
        profile["valuation"] = {
            "min": valuation.valuation_min,
            "median": valuation.valuation_median,
            "max": valuation.valuation_max,
            "risk_score": valuation.risk_score,
            "red_flags": valuation.red_flags or [],
        }

    return profile
