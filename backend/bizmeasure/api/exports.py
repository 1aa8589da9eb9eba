"""
exports.py — Valuation Export Endpoints (API Layer)

Purpose:
- Download a company's newest valuation as CSV, JSON or a printable HTML report.

Key Interactions:
- bizmeasure.services.exports → formatters
- bizmeasure.services.companies → newest valuation lookup
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from bizmeasure.api.deps import company_from_path
from bizmeasure.core.database import get_db
from bizmeasure.models import Company, Valuation
from bizmeasure.services.companies import latest_valuation
from bizmeasure.services.exports import export_filename, format_csv, format_html, format_json

router = APIRouter(
    prefix="/exports",
    tags=["exports"]
)


def _valuation_or_404(db: Session, company: Company) -> Valuation:
    valuation = latest_valuation(db, company.id)
    if valuation is None:
        raise HTTPException(status_code=404, detail="Valuation not found for company")
    return valuation


def _download(body: str, media_type: str, filename: str) -> Response:
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{company_id}/csv")
def export_csv(company: Company = Depends(company_from_path), db: Session = Depends(get_db)):
    valuation = _valuation_or_404(db, company)
    return _download(format_csv(company, valuation), "text/csv; charset=utf-8", export_filename(company.name, "csv"))


@router.get("/{company_id}/json")
def export_json(company: Company = Depends(company_from_path), db: Session = Depends(get_db)):
    valuation = _valuation_or_404(db, company)
    return _download(format_json(company, valuation), "application/json", export_filename(company.name, "json"))


@router.get("/{company_id}/html")
def export_html(company: Company = Depends(company_from_path), db: Session = Depends(get_db)):
    valuation = _valuation_or_404(db, company)
    return _download(format_html(company, valuation), "text/html; charset=utf-8", export_filename(company.name, "html"))
