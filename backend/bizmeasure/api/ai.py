"""
ai.py — AI Analysis & Chat Assistant Endpoints (API Layer)

Purpose:
- POST /ai/analyze-company → LLM valuation assessment of a company; the first
  paragraph is stored as an "AI Analysis" recommendation.
- POST /ai/market-analysis → LLM market analysis for a sector.
- POST /chat/completions → chat relay with the "Emilia" assistant, answered
  in the OpenAI chat.completion shape.

Error mapping:
- LLMNotConfiguredError → 503
- LLMResponseError → 502
- The chat relay never fails on provider errors (fallback answers, HTTP 200).
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from bizmeasure.api.deps import require_company
from bizmeasure.core.database import get_db
from bizmeasure.core.logging import get_logger
from bizmeasure.models import Recommendation
from bizmeasure.services import llm
from bizmeasure.services.chat import format_chat_completion, process_chat
from bizmeasure.services.companies import company_profile
from bizmeasure.services.recommendations import recommendation_from_analysis
from bizmeasure.services.sectors import get_industry_group_by_id, get_sector_by_id

logger = get_logger(__name__)

router = APIRouter(tags=["ai"])

# -----------------------------------------------------------------------------
# Schemas
# -----------------------------------------------------------------------------

class AnalyzeCompanyRequest(BaseModel):
    company_id: int


class AnalyzeCompanyResponse(BaseModel):
    company_id: int
    company_name: str
    timestamp: datetime
    analysis: str


class MarketAnalysisRequest(BaseModel):
    """`sector` / `industry_group` accept GICS ids or names."""
    sector: str = Field(..., min_length=1)
    industry_group: Optional[str] = None
    company_name: Optional[str] = None
    location: Optional[str] = None


class MarketAnalysisResponse(BaseModel):
    sector: str
    industry_group: Optional[str] = None
    timestamp: datetime
    analysis: str
    model: str


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.post("/ai/analyze-company", response_model=AnalyzeCompanyResponse)
def analyze_company(payload: AnalyzeCompanyRequest, db: Session = Depends(get_db)):
    """
    POST /ai/analyze-company

    High-Level Flow:
    1. Build the company profile from identity + newest intake rows.
    2. Ask the LLM for strengths, risks and three recommendations.
    3. Store the first paragraph as an "AI Analysis" recommendation and mark
       the company as analysed.
    """
    company = require_company(db, payload.company_id)
    profile = company_profile(db, company)

    try:
        result = llm.analyze_company(profile)
    except llm.LLMNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except llm.LLMResponseError as e:
        logger.error(f"AI company analysis failed for company id={company.id}: {e}")
        raise HTTPException(status_code=502, detail=f"Error performing AI analysis: {e}")

    db.add(Recommendation(company_id=company.id, **recommendation_from_analysis(result.content)))
    company.ai_analyzed = True
    db.commit()
    logger.info(f"AI analysis stored for company id={company.id}")

    return AnalyzeCompanyResponse(
        company_id=company.id,
        company_name=company.name,
        timestamp=datetime.now(timezone.utc),
        analysis=result.content,
    )


@router.post("/ai/market-analysis", response_model=MarketAnalysisResponse)
def market_analysis(payload: MarketAnalysisRequest):
    """
    POST /ai/market-analysis

    Sector and industry group ids are expanded to their GICS names before
    prompting.
    """
    sector = get_sector_by_id(payload.sector.strip())
    sector_name = sector.name if sector else payload.sector.strip()

    industry_group = payload.industry_group
    if industry_group:
        group = get_industry_group_by_id(industry_group.strip())
        industry_group = group.name if group else industry_group.strip()

    prompt = llm.build_market_analysis_prompt(
        sector_name,
        industry_group=industry_group,
        location=payload.location,
        company_name=payload.company_name,
    )

    try:
        result = llm.generate_market_analysis(prompt)
    except llm.LLMNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except llm.LLMResponseError as e:
        logger.error(f"Market analysis failed for sector {sector_name}: {e}")
        raise HTTPException(status_code=502, detail=f"Error from market analysis API: {e}")

    return MarketAnalysisResponse(
        sector=sector_name,
        industry_group=industry_group,
        timestamp=datetime.now(timezone.utc),
        analysis=result.content,
        model=result.model,
    )


@router.post("/chat/completions")
def chat_completions(payload: ChatRequest):
    """
    POST /chat/completions

    Body: {"messages": [{"role": "user", "content": "..."}]}
    Returns an OpenAI-style chat.completion object.
    """
    if not any(m.role == "user" for m in payload.messages):
        raise HTTPException(status_code=400, detail="No user message found in the request")

    reply = process_chat([m.model_dump() for m in payload.messages])
    return format_chat_completion(reply)
