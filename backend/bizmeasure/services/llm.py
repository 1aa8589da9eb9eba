"""
llm.py — Chat-Completion Client for the External AI Provider

Purpose:
- Single place where the backend talks to the LLM provider.
- Wraps the OpenAI SDK's Chat Completions API; OPENAI_BASE_URL lets the same
  code target any OpenAI-compatible provider (DeepSeek, Perplexity, ...).

Contract:
    request  {model, messages[], temperature, max_tokens}
    response {choices: [{message: {content}}], usage}

One request per call: no retries beyond settings.LLM_MAX_RETRIES (default 0),
no streaming.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError

from bizmeasure.core.config import settings
from bizmeasure.core.logging import get_logger

logger = get_logger(__name__)

Message = Dict[str, str]


class LLMError(RuntimeError):
    """Base exception for LLM failures."""


class LLMNotConfiguredError(LLMError):
    """Raised when AI features are disabled or no API key is configured."""


class LLMResponseError(LLMError):
    """Raised when the provider call fails or returns unusable content."""


@dataclass
class ChatCompletionResult:
    content: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)


def _build_client() -> OpenAI:
    if not settings.LLM_ENABLED:
        raise LLMNotConfiguredError("AI features are disabled (LLM_ENABLED=false)")
    if not settings.OPENAI_API_KEY:
        raise LLMNotConfiguredError(
            "LLM API key not configured. Set OPENAI_API_KEY environment variable "
            "or OPENAI_API_KEY_PATH."
        )

    kwargs: Dict[str, Any] = {
        "api_key": settings.OPENAI_API_KEY,
        "timeout": settings.LLM_TIMEOUT_SECONDS,
        "max_retries": settings.LLM_MAX_RETRIES,
    }
    if settings.OPENAI_BASE_URL:
        kwargs["base_url"] = settings.OPENAI_BASE_URL
    return OpenAI(**kwargs)


def chat_completion(
    messages: List[Message],
    *,
    model: Optional[str] = None,
    temperature: float = 0.3,
    max_tokens: int = 2000,
    json_mode: bool = False,
) -> ChatCompletionResult:
    """
    Send one chat-completion request and return the first choice's content.

    Raises:
        LLMNotConfiguredError: AI disabled or no API key
        LLMResponseError: SDK/transport error or empty content
    """
    client = _build_client()
    model_name = model or settings.OPENAI_MODEL

    request: Dict[str, Any] = {
        "model": model_name,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if json_mode:
        request["response_format"] = {"type": "json_object"}

    logger.info(f"Sending {len(messages)} message(s) to LLM model {model_name}")

    try:
        response = client.chat.completions.create(**request)
    except OpenAIError as e:
        logger.error(f"LLM request failed: {e}")
        raise LLMResponseError(f"LLM request failed: {e}") from e

    if not response.choices:
        raise LLMResponseError("LLM response contained no choices")

    content = response.choices[0].message.content
    if not content:
        raise LLMResponseError("Empty response from LLM")

    usage: Dict[str, int] = {}
    if response.usage is not None:
        usage = {
            "prompt_tokens": response.usage.prompt_tokens,
            "completion_tokens": response.usage.completion_tokens,
            "total_tokens": response.usage.total_tokens,
        }

    return ChatCompletionResult(content=content, model=response.model or model_name, usage=usage)


def parse_json_content(content: str) -> Dict[str, Any]:
    """
    Parse a JSON-mode response body. Tolerates a ```json fenced block.
    """
    text = content.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    try:
        result = json.loads(text)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"LLM returned invalid JSON: {e}") from e
    if not isinstance(result, dict):
        raise LLMResponseError("LLM JSON response must be an object")
    return result


# -----------------------------------------------------------------------------
# Company / market analysis prompts
# -----------------------------------------------------------------------------

COMPANY_ANALYST_PROMPT = (
    "You are a business valuation expert specializing in European small to medium "
    "businesses. Provide insightful analysis of business data to help owners "
    "understand their company's value and potential."
)

MARKET_ANALYST_PROMPT = (
    "You are a financial market analyst specializing in European business sectors. "
    "Provide detailed, fact-based analysis with specific data points and insights "
    "that would be valuable for business valuation."
)


def analyze_company(profile: Dict[str, Any]) -> ChatCompletionResult:
    """
    Ask for a brief valuation assessment with strengths, risks and three
    value-increasing recommendations for the given company profile.
    """
    messages = [
        {"role": "system", "content": COMPANY_ANALYST_PROMPT},
        {
            "role": "user",
            "content": (
                "Analyze this company data and provide a brief valuation assessment with "
                "key strengths, risks, and 3 specific recommendations to increase value: "
                f"{json.dumps(profile, default=str)}"
            ),
        },
    ]
    return chat_completion(messages, temperature=0.3, max_tokens=1000)


def build_market_analysis_prompt(
    sector: str,
    industry_group: Optional[str] = None,
    location: Optional[str] = None,
    company_name: Optional[str] = None,
) -> str:
    prompt = f"Provide a detailed market analysis for the {sector} sector"
    if industry_group:
        prompt += f", specifically focusing on the {industry_group} industry group"
    if location:
        prompt += f" in {location}"
    if company_name:
        prompt += f'. Consider the positioning of a company named "{company_name}"'
    prompt += """. Cover the following areas:
1. Current market size and growth projections
2. Key trends affecting the sector/industry
3. Main competitors and market leaders
4. Typical valuation multiples for similar businesses
5. Major M&A activity in the past 2 years
6. Regulatory challenges or opportunities
7. Technology disruptions impacting the space
8. European market specifics (if applicable)
"""
    return prompt


def generate_market_analysis(prompt: str) -> ChatCompletionResult:
    messages = [
        {"role": "system", "content": MARKET_ANALYST_PROMPT},
        {"role": "user", "content": prompt},
    ]
    return chat_completion(messages, temperature=0.2, max_tokens=2000)
