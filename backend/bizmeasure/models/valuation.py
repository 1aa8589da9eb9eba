"""
valuation.py — ORM Model for Computed Valuation Records

Purpose:
- Persist the output of the valuation aggregator (services/valuation.py).
- A derived record: recomputed on demand from the latest intake data, never
  updated in place. The newest row per company is the "current" valuation.

Fields:
- valuation_min / valuation_median / valuation_max: range, whole currency units
- ebitda_multiple, discounted_cash_flow, revenue_multiple, asset_based:
  the four method estimates (nullable when the base figure was missing)
- risk_score + four sub-scores, each 0..100
- red_flags: list of short strings, e.g. ["Declining Revenue"]
"""

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Float, ForeignKey, Integer

from bizmeasure.core.database import Base, utcnow


class Valuation(Base):
    __tablename__ = "valuations"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    valuation_min = Column(Float, nullable=False)
    valuation_median = Column(Float, nullable=False)
    valuation_max = Column(Float, nullable=False)

    ebitda_multiple = Column(Float, nullable=True)
    discounted_cash_flow = Column(Float, nullable=True)
    revenue_multiple = Column(Float, nullable=True)
    asset_based = Column(Float, nullable=True)

    risk_score = Column(Integer, nullable=False)
    financial_health_score = Column(Integer, nullable=False)
    market_position_score = Column(Integer, nullable=False)
    operational_efficiency_score = Column(Integer, nullable=False)
    debt_structure_score = Column(Integer, nullable=False)

    red_flags = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "valuation_min <= valuation_median AND valuation_median <= valuation_max",
            name="ck_valuations_range_ordered",
        ),
    )

    def __repr__(self):
        return f"<Valuation company={self.company_id} median={self.valuation_median}>"
