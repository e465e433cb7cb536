"""Turn normalized calendar data into a natural-language answer."""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from src.assistant.llm import build_chat_llm, invoke_text
from src.errors import UpstreamError
from src.prompts import get_synthesis_prompt

logger = logging.getLogger(__name__)


class ResponseSynthesizer:
    """Ask the completion service to answer *user_query* from *calendar_data*.

    Unlike classification there is no fallback: a failed call raises
    ``UpstreamError`` so the caller sees the failure.
    """

    def __init__(self, llm: BaseChatModel | None = None):
        self._llm = llm or build_chat_llm()

    def synthesize(self, user_query: str, calendar_data: dict[str, Any]) -> str:
        messages = [
            SystemMessage(content=get_synthesis_prompt(calendar_data)),
            HumanMessage(content=user_query),
        ]
        try:
            return invoke_text(self._llm, messages, "synthesize")
        except Exception as exc:
            logger.error("Response synthesis failed: %s", exc)
            raise UpstreamError(f"Completion service failed: {exc}") from exc
