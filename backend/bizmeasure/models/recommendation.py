"""
recommendation.py — ORM Models for Improvement Recommendations and Buyer Matches

Both tables are generated alongside a valuation (canned catalogue) or from an
AI analysis, and listed per company by the dashboard.
"""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text

from bizmeasure.core.database import Base, utcnow


class Recommendation(Base):
    __tablename__ = "recommendations"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    # e.g. "Digital Transformation", "AI Operations", "AI Analysis"
    category = Column(String, nullable=False)

    # 1 (low) .. 5 (high)
    impact_potential = Column(Integer, nullable=False)
    suggestions = Column(JSON, nullable=False, default=list)

    # Estimated valuation uplift in percent
    estimated_value_impact_min = Column(Integer, nullable=False)
    estimated_value_impact_max = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Recommendation {self.category} company={self.company_id}>"


class BuyerMatch(Base):
    __tablename__ = "buyer_matches"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    type = Column(String, nullable=False)  # e.g. "Private Equity Firm"
    description = Column(Text, nullable=False)
    match_percentage = Column(Integer, nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    deal_type = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<BuyerMatch {self.name} {self.match_percentage}%>"
