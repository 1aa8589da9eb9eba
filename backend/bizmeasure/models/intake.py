"""
intake.py — ORM Models for Business Data Wizard Answers

Purpose:
- Store the four intake steps an owner completes after onboarding:
    * Financials (revenue history, EBITDA, net margin)
    * Employees & digital systems
    * Technology usage
    * Owner intent (exit plans, expectations)

Rows are append-only: re-submitting a step inserts a new row and readers use
the most recent one (highest id) for the company.
"""

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text

from bizmeasure.core.database import Base, utcnow


class Financial(Base):
    __tablename__ = "financials"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    # Absolute currency amounts; any of them may be unknown
    revenue_current = Column(Float, nullable=True)
    revenue_previous = Column(Float, nullable=True)
    revenue_two_years_ago = Column(Float, nullable=True)
    ebitda = Column(Float, nullable=True)

    # Percent, e.g. 12.5 means 12.5%
    net_margin = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Financial company={self.company_id} revenue={self.revenue_current}>"


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    count = Column(Integer, nullable=True)

    # e.g. ["CRM", "ERP", "Accounting Software"]
    digital_systems = Column(JSON, nullable=True)
    other_system_details = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Employee company={self.company_id} count={self.count}>"


class Technology(Base):
    __tablename__ = "technology"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    # Self-assessed digital transformation level, 1 (paper-based) .. 5 (fully digital)
    transformation_level = Column(Integer, nullable=True)
    technologies_used = Column(JSON, nullable=True)
    tech_investment_percentage = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Technology company={self.company_id} level={self.transformation_level}>"


class OwnerIntent(Base):
    __tablename__ = "owner_intent"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    # e.g. "sell", "grow", "partial-sale", "succession"
    intent = Column(String, nullable=False)
    exit_timeline = Column(String, nullable=False)
    ideal_outcome = Column(Text, nullable=True)
    valuation_expectations = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<OwnerIntent company={self.company_id} intent={self.intent}>"
