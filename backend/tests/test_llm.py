"""
Tests for the chat-completion client wrapper. The OpenAI client is replaced
by a stand-in; no network access.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from openai import OpenAIError

from bizmeasure.core.config import settings
from bizmeasure.services import llm


class _FakeCompletions:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def create(self, **request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


def _fake_client(monkeypatch, response=None, error=None):
    completions = _FakeCompletions(response, error)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    monkeypatch.setattr(llm, "_build_client", lambda: client)
    return completions


def _response(content, model="gpt-4o-mini"):
    return SimpleNamespace(
        model=model,
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=5, total_tokens=17),
    )


def test_chat_completion_request_and_result(monkeypatch):
    completions = _fake_client(monkeypatch, _response("Hi there"))

    result = llm.chat_completion([{"role": "user", "content": "Hi"}], temperature=0.5, max_tokens=50)

    request = completions.requests[0]
    assert request["model"] == settings.OPENAI_MODEL
    assert request["temperature"] == 0.5
    assert request["max_tokens"] == 50
    assert "response_format" not in request

    assert result.content == "Hi there"
    assert result.usage["total_tokens"] == 17


def test_json_mode_sets_response_format(monkeypatch):
    completions = _fake_client(monkeypatch, _response("{}"))

    llm.chat_completion([{"role": "user", "content": "Hi"}], json_mode=True)

    assert completions.requests[0]["response_format"] == {"type": "json_object"}


def test_sdk_errors_become_response_errors(monkeypatch):
    _fake_client(monkeypatch, error=OpenAIError("connection reset"))

    with pytest.raises(llm.LLMResponseError):
        llm.chat_completion([{"role": "user", "content": "Hi"}])


def test_empty_content_is_an_error(monkeypatch):
    _fake_client(monkeypatch, _response(""))

    with pytest.raises(llm.LLMResponseError):
        llm.chat_completion([{"role": "user", "content": "Hi"}])


def test_disabled_or_missing_key_is_not_configured(monkeypatch):
    with pytest.raises(llm.LLMNotConfiguredError):
        llm.chat_completion([{"role": "user", "content": "Hi"}])

    monkeypatch.setattr(settings, "LLM_ENABLED", True)
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    with pytest.raises(llm.LLMNotConfiguredError):
        llm.chat_completion([{"role": "user", "content": "Hi"}])


def test_parse_json_content():
    assert llm.parse_json_content('{"a": 1}') == {"a": 1}
    assert llm.parse_json_content('```json\n{"a": 1}\n```') == {"a": 1}

    with pytest.raises(llm.LLMResponseError):
        llm.parse_json_content("[1, 2]")
    with pytest.raises(llm.LLMResponseError):
        llm.parse_json_content("not json")


def test_market_analysis_prompt():
    prompt = llm.build_market_analysis_prompt(
        "Industrials", industry_group="Transportation", location="Poland", company_name="TransPol",
    )

    assert prompt.startswith("Provide a detailed market analysis for the Industrials sector")
    assert "Transportation industry group" in prompt
    assert "in Poland" in prompt
    assert '"TransPol"' in prompt
    assert "8. European market specifics" in prompt
