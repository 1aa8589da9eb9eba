"""
user.py — ORM Model for Application Users

Purpose:
- Represent business owners (and admins) who log in to the platform.
- Stores hashed passwords only — never raw.

Used by:
- api/auth.py (register, login, current user)
- core/security.py (password + token validation)
"""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from bizmeasure.core.database import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Authentication fields
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)

    # Display
    full_name = Column(String, nullable=False)

    # "user" or "admin"
    role = Column(String, nullable=False, default="user")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    companies = relationship("Company", back_populates="owner", order_by="Company.id")

    def __repr__(self):
        return f"<User {self.email}>"
