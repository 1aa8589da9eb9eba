"""
Shared fixtures: an in-memory SQLite database per test, a FastAPI TestClient
wired to it, and a stand-in for the LLM provider.
"""

from __future__ import annotations

import os

# Settings are read at import time; keep tests offline and off the dev database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["LLM_ENABLED"] = "false"
os.environ["OPENAI_API_KEY"] = ""
os.environ["OPENAI_API_KEY_PATH"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bizmeasure.core.config import settings
from bizmeasure.core.database import get_db, init_db
from bizmeasure.main import app
from bizmeasure.services import llm


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine, tmp_path, monkeypatch):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


class FakeLLM:
    """Records chat_completion calls and replies with queued contents."""

    def __init__(self):
        self.calls = []
        self.replies = []
        self.error = None

    def reply_with(self, *contents):
        self.replies.extend(contents)

    def fail_with(self, error):
        self.error = error

    def __call__(self, messages, **kwargs):
        self.calls.append({"messages": messages, **kwargs})
        if self.error is not None:
            raise self.error
        content = self.replies.pop(0) if self.replies else "Stub reply."
        return llm.ChatCompletionResult(content=content, model="stub-model", usage={})


@pytest.fixture
def fake_llm(monkeypatch):
    fake = FakeLLM()
    monkeypatch.setattr(llm, "chat_completion", fake)
    return fake


# -----------------------------------------------------------------------------
# API helpers
# -----------------------------------------------------------------------------

def register(client, username="owner", email="owner@example.com", password="s3cret-pass"):
    response = client.post(
        "/api/register",
        json={"username": username, "email": email, "password": password, "full_name": "Olga Owner"},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def auth_headers(client):
    token = register(client)["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def company(client, auth_headers):
    response = client.post(
        "/api/companies",
        json={
            "name": "Acme Logistics GmbH",
            "website": "https://www.acme-logistics.de",
            "sector": "Technology",
            "industry_group": "4510",
            "location": "Germany",
            "years_in_business": "10-20",
            "goal": "sell",
        },
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def financials(client, company):
    response = client.post(
        "/api/financials",
        json={
            "company_id": company["id"],
            "revenue_current": 2_000_000,
            "revenue_previous": 1_800_000,
            "revenue_two_years_ago": 1_600_000,
            "ebitda": 400_000,
            "net_margin": 12.0,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()
