"""
ORM models. Importing this package registers every table on `Base.metadata`.
"""

from bizmeasure.models.user import User
from bizmeasure.models.company import Company
from bizmeasure.models.intake import Employee, Financial, OwnerIntent, Technology
from bizmeasure.models.document import DOCUMENT_TYPES, Document
from bizmeasure.models.valuation import Valuation
from bizmeasure.models.recommendation import BuyerMatch, Recommendation

__all__ = [
    "User",
    "Company",
    "Financial",
    "Employee",
    "Technology",
    "OwnerIntent",
    "DOCUMENT_TYPES",
    "Document",
    "Valuation",
    "Recommendation",
    "BuyerMatch",
]
