"""
document.py — ORM Model for Uploaded Company Documents

Stores a reference to a file written under settings.UPLOAD_DIR; the file
bytes themselves never go into the database.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from bizmeasure.core.database import Base, utcnow

DOCUMENT_TYPES = ("financial", "tax", "contract")


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    # One of DOCUMENT_TYPES
    type = Column(String, nullable=False)

    file_name = Column(String, nullable=False)  # original client-side name
    file_path = Column(String, nullable=False)  # stored location on disk

    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Document {self.type} {self.file_name}>"
