"""
chat.py — Chat Assistant Relay ("Emilia")

Purpose:
- Relay a conversation to the LLM with the assistant persona prepended and
  return the reply text.
- When AI is unavailable or the provider call fails, answer common questions
  from a small keyword knowledge base, otherwise with a fixed apology.

This module does NOT:
- Retry, stream, or queue requests. One provider call per relay.
- Persist conversations.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Dict, List, Optional

from bizmeasure.core.config import settings
from bizmeasure.core.logging import get_logger
from bizmeasure.services import llm

logger = get_logger(__name__)

ASSISTANT_NAME = "Emilia"

SYSTEM_PROMPT = f"""You are {ASSISTANT_NAME}, an intelligent and friendly business assistant at the MANDA Institute, \
specializing in business valuation, mergers, and acquisitions.

Your expertise includes:
- Business valuation methods (EBITDA multiples, DCF, revenue multiples, asset-based)
- European business transfer regulations and best practices
- Preparing a company for sale and increasing its value
- Understanding financial statements and KPIs
- Identifying red flags and improvement opportunities
- Digital transformation and AI adoption for SMBs

Guidelines:
- Be warm, professional, and concise
- Use plain language; explain financial terms when you use them
- Give practical, actionable advice
- When specific numbers are needed, ask the user to complete the valuation wizard
- Do not give legal or tax advice; recommend consulting a qualified advisor"""

APOLOGY_MESSAGE = (
    "I'm sorry, I'm having trouble answering right now. Please try again in a moment, "
    "or contact our team directly for assistance with your valuation questions."
)

# Keyword answers used when the provider is unavailable
KNOWLEDGE_BASE: List[Dict[str, Any]] = [
    {
        "keywords": ("fee", "cost", "price", "charges", "payment"),
        "answer": (
            "We put our customers first and have adopted a completely success-based fee "
            "system for M&A of transfer companies. We do not receive any retainer fee or "
            "interim fee. You only pay upon the successful closure of your M&A transaction."
        ),
    },
    {
        "keywords": ("valuation", "worth", "value"),
        "answer": (
            "Your business valuation begins entirely free of charge. We combine an EBITDA "
            "multiple, a revenue multiple, a discounted cash flow projection and an "
            "asset-based estimate into a valuation range with risk scores and red flags. "
            "Complete the business data wizard to generate yours."
        ),
    },
    {
        "keywords": ("about", "who are you", "company"),
        "answer": (
            "The MANDA Institute specializes in business valuation and M&A facilitation for "
            "European SMBs with EBITDA under €10 million. We offer zero upfront fees, "
            "AI-powered valuations, and a success-based fee structure."
        ),
    },
]


def knowledge_base_answer(question: str) -> Optional[str]:
    text = question.lower()
    for entry in KNOWLEDGE_BASE:
        if any(keyword in text for keyword in entry["keywords"]):
            return entry["answer"]
    return None


def _last_user_message(messages: List[Dict[str, str]]) -> str:
    for message in reversed(messages):
        if message.get("role") == "user":
            return message.get("content") or ""
    return ""


def _with_system_prompt(messages: List[Dict[str, str]]) -> List[Dict[str, str]]:
    if messages and messages[0].get("role") == "system":
        return list(messages)
    return [{"role": "system", "content": SYSTEM_PROMPT}] + list(messages)


def process_chat(messages: List[Dict[str, str]]) -> str:
    """
    Relay `messages` (OpenAI role/content dicts) and return the assistant reply.

    Never raises for provider problems: falls back to the knowledge base, then
    to APOLOGY_MESSAGE.
    """
    try:
        result = llm.chat_completion(_with_system_prompt(messages), temperature=0.7, max_tokens=800)
        return result.content
    except llm.LLMNotConfiguredError as e:
        logger.warning(f"Chat relay unavailable: {e}")
    except llm.LLMError as e:
        logger.error(f"Chat relay failed: {e}")

    answer = knowledge_base_answer(_last_user_message(messages))
    return answer if answer is not None else APOLOGY_MESSAGE


def format_chat_completion(content: str, model: Optional[str] = None) -> Dict[str, Any]:
    """Wrap a reply in the OpenAI `chat.completion` response shape."""
    return {
        "id": f"chatcmpl-{uuid.uuid4().hex[:24]}",
        "object": "chat.completion",
        "created": int(time.time()),
        "model": model or settings.OPENAI_MODEL,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }
