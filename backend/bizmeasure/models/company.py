"""
company.py — ORM Model for Company Entities

Purpose:
- Represent a business onboarded by its owner.
- Provides the stable identifier that every intake table, valuation,
  recommendation and buyer match hangs off.

Important Design Rule:
- This table stores *identity metadata only*, not financial values.
- Financial values live in the financials table; employee, technology and
  owner-intent answers live in their own append-only tables.
- Identity fields (name, unique_id) are not edited after onboarding.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from bizmeasure.core.database import Base, utcnow


class Company(Base):
    __tablename__ = "companies"

    # Primary key
    id = Column(Integer, primary_key=True, index=True)

    # Owner
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    owner = relationship("User", back_populates="companies")

    # Identifiers
    name = Column(String, nullable=False)
    website = Column(String, nullable=True)
    unique_id = Column(String, unique=True, nullable=False)  # slug of name + website domain

    # Classification (GICS sector name + optional industry group)
    sector = Column(String, nullable=False)
    industry_group = Column(String, nullable=True)

    location = Column(String, nullable=False)
    years_in_business = Column(String, nullable=False)  # band, e.g. "5-10"
    goal = Column(String, nullable=False)

    ai_analyzed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_companies_user", "user_id"),
        Index("idx_companies_sector", "sector"),
    )

    def __repr__(self):
        return f"<Company {self.unique_id} | {self.sector}>"
