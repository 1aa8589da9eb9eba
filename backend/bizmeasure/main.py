"""
main.py — FastAPI Application Entrypoint

Purpose:
- Initialize application services (logging, config, database tables).
- Register API routers under settings.API_PREFIX.
- Define root-level health/status endpoints.
- Provide `app` object used by ASGI server (uvicorn).

This file should stay clean: no business logic here.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bizmeasure.api import (
    ai,
    auth,
    companies,
    documents,
    exports,
    intake,
    recommendations,
    reference,
    users,
    valuations,
)
from bizmeasure.core.config import settings
from bizmeasure.core.database import init_db
from bizmeasure.core.logging import configure_logging, get_logger

# -----------------------------------------------------------------------------
# App Initialization
# -----------------------------------------------------------------------------

configure_logging(settings.LOG_LEVEL)  # Set logging defaults at startup
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(
        f"Bizmeasure backend started (AI {'enabled' if settings.llm_configured else 'not configured'})"
    )
    yield


app = FastAPI(
    title="Bizmeasure Valuation Backend",
    description="Business valuation, intake and AI analysis backend for European SMBs",
    version="0.1.0",
    lifespan=lifespan,
)

# -----------------------------------------------------------------------------
# CORS
# -----------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------------------------------------------------------
# Router Registration
# -----------------------------------------------------------------------------

for module in (auth, users, companies, intake, documents, valuations, recommendations, ai, exports, reference):
    app.include_router(module.router, prefix=settings.API_PREFIX)

# -----------------------------------------------------------------------------
# Health Check
# -----------------------------------------------------------------------------

@app.get("/")
def root():
    return {"status": "ok", "message": "Bizmeasure backend running"}
