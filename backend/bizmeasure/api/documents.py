"""
documents.py — Document Upload & AI Document Analysis Endpoints (API Layer)

Purpose:
- POST /documents → multipart upload (company_id, type, file); the file is
  written under settings.UPLOAD_DIR with a unique name.
- GET /companies/{company_id}/documents → uploaded documents.
- POST /documents/{document_id}/analyze → AI analysis of one document.
- POST /companies/{company_id}/documents/analysis → combine analyses.

Key Interactions:
- bizmeasure.services.document_analysis → LLM delegation + rule checks
"""

import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bizmeasure.api.deps import company_from_path, require_company
from bizmeasure.core.config import settings
from bizmeasure.core.database import get_db
from bizmeasure.core.logging import get_logger
from bizmeasure.models import DOCUMENT_TYPES, Company, Document
from bizmeasure.services.companies import list_documents
from bizmeasure.services.document_analysis import (
    ComprehensiveAnalysis,
    DocumentAnalysis,
    analyze_document,
    analyze_documents_comprehensive,
)
from bizmeasure.services.llm import LLMNotConfiguredError, LLMResponseError

logger = get_logger(__name__)

router = APIRouter(tags=["documents"])

# Text formats whose contents are forwarded when the client sends none
_TEXT_EXTENSIONS = {"csv"}
_MAX_FORWARDED_CHARS = 20000

# -----------------------------------------------------------------------------
# Schemas
# -----------------------------------------------------------------------------

class DocumentOut(BaseModel):
    id: int
    company_id: int
    type: str
    file_name: str
    uploaded_at: datetime

    class Config:
        from_attributes = True


class AnalyzeDocumentRequest(BaseModel):
    """
    Extracted document data.
    - `content`: extracted text or structured data (optional)
    - `metrics`: figures already extracted by the client, checked locally
    """
    content: Optional[Any] = None
    metrics: Optional[Dict[str, Any]] = None


class ComprehensiveAnalysisRequest(BaseModel):
    analyses: List[DocumentAnalysis] = Field(..., min_length=1)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _extension(file_name: str) -> str:
    return Path(file_name).suffix.lower().lstrip(".")


def _read_forwardable_text(document: Document) -> Optional[str]:
    if _extension(document.file_name) not in _TEXT_EXTENSIONS:
        return None
    path = Path(document.file_path)
    if not path.exists():
        return None
    return path.read_text(encoding="utf-8", errors="replace")[:_MAX_FORWARDED_CHARS]


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.post("/documents", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
def upload_document(
    company_id: int = Form(...),
    doc_type: str = Form(..., alias="type"),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    """
    POST /documents (multipart/form-data)

    Errors:
    - 404 unknown company
    - 400 unknown document type or file extension, empty file
    - 413 file larger than settings.MAX_UPLOAD_BYTES
    """
    require_company(db, company_id)

    doc_type = doc_type.strip().lower()
    if doc_type not in DOCUMENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid document type '{doc_type}'. Expected one of: {', '.join(DOCUMENT_TYPES)}",
        )

    file_name = Path(file.filename or "").name
    extension = _extension(file_name)
    if extension not in settings.ALLOWED_UPLOAD_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type. Allowed: {', '.join(settings.ALLOWED_UPLOAD_EXTENSIONS)}",
        )

    data = file.file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    stored_path = upload_dir / f"{uuid.uuid4().hex}.{extension}"
    stored_path.write_bytes(data)

    document = Document(
        company_id=company_id,
        type=doc_type,
        file_name=file_name,
        file_path=str(stored_path),
    )
    try:
        db.add(document)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        stored_path.unlink(missing_ok=True)
        logger.error(f"Could not record uploaded document for company id={company_id}; removed {stored_path.name}")
        raise
    db.refresh(document)

    logger.info(f"Stored {doc_type} document id={document.id} ({len(data)} bytes) for company id={company_id}")
    return document


@router.get("/companies/{company_id}/documents", response_model=List[DocumentOut])
def get_documents(company: Company = Depends(company_from_path), db: Session = Depends(get_db)):
    return list_documents(db, company.id)


@router.post("/documents/{document_id}/analyze", response_model=DocumentAnalysis)
def analyze_uploaded_document(
    document_id: int,
    payload: Optional[AnalyzeDocumentRequest] = None,
    db: Session = Depends(get_db),
):
    """
    POST /documents/{document_id}/analyze

    Sends the supplied content (or, for text formats, the stored file's text)
    to the AI analyst and merges in local rule checks.

    Errors:
    - 404 unknown document
    - 503 AI not configured
    - 502 provider failure or malformed analysis
    """
    document = db.get(Document, document_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")

    payload = payload or AnalyzeDocumentRequest()
    content = payload.content
    if content is None:
        content = _read_forwardable_text(document)
    if content is None:
        content = {"file_name": document.file_name, "document_type": document.type}

    try:
        return analyze_document(
            document.type,
            content,
            document_id=document.id,
            metrics=payload.metrics,
        )
    except LLMNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except LLMResponseError as e:
        logger.error(f"Document analysis failed for document id={document.id}: {e}")
        raise HTTPException(status_code=502, detail=f"Document analysis failed: {e}")


@router.post("/companies/{company_id}/documents/analysis", response_model=ComprehensiveAnalysis)
def comprehensive_analysis(
    payload: ComprehensiveAnalysisRequest,
    company: Company = Depends(company_from_path),
):
    """
    POST /companies/{company_id}/documents/analysis

    Combine per-document analyses (as returned by /documents/{id}/analyze)
    into an overall score, impact and recommendation list.
    """
    result = analyze_documents_comprehensive(payload.analyses)
    logger.info(
        f"Comprehensive document analysis for company id={company.id}: "
        f"{len(payload.analyses)} document(s), score={result.overall_score}"
    )
    return result
