"""Chat-model builders and a metered invoke helper.

Components receive their chat model at construction time, so tests can pass
any object with an ``invoke(messages)`` method returning an ``AIMessage``.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage

from src.config import (
    ANTHROPIC_API_KEY,
    CLASSIFIER_MAX_TOKENS,
    CLASSIFIER_MODEL_NAME,
    CLASSIFIER_TEMPERATURE,
    LLM_MAX_TOKENS,
    LLM_TEMPERATURE,
    MODEL_NAME,
)
from src.services.metrics import metrics

logger = logging.getLogger(__name__)


def build_classifier_llm() -> ChatAnthropic:
    """Low-temperature model with a tiny output budget for intent selection."""
    return ChatAnthropic(
        model=CLASSIFIER_MODEL_NAME,
        api_key=ANTHROPIC_API_KEY,
        temperature=CLASSIFIER_TEMPERATURE,
        max_tokens=CLASSIFIER_MAX_TOKENS,
    )


def build_chat_llm() -> ChatAnthropic:
    """Model used for answer synthesis and the plain chat endpoint."""
    return ChatAnthropic(
        model=MODEL_NAME,
        api_key=ANTHROPIC_API_KEY,
        temperature=LLM_TEMPERATURE,
        max_tokens=LLM_MAX_TOKENS,
    )


def message_text(message: Any) -> str:
    """Extract plain text from a chat-model response.

    Anthropic may return ``content`` as a list of typed blocks rather than a
    string; only the ``text`` blocks are kept.
    """
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)


def invoke_text(
    llm: BaseChatModel,
    messages: list[BaseMessage],
    operation: str,
) -> str:
    """Invoke *llm* once, record metrics, return the response text.

    Exceptions from the model propagate unchanged.
    """
    t0 = time.perf_counter()
    try:
        response = llm.invoke(messages)
    except Exception as exc:
        elapsed = (time.perf_counter() - t0) * 1000
        metrics.record_failure(
            "anthropic", operation,
            error_type=type(exc).__name__, latency_ms=elapsed,
        )
        raise
    elapsed = (time.perf_counter() - t0) * 1000
    metrics.record_success("anthropic", operation, latency_ms=elapsed)
    logger.debug("%s responded in %.0fms", operation, elapsed)
    return message_text(response)
