"""Map a free-text calendar question to one of the fixed operations.

Classification never fails the request: an unrecognised completion or an
unreachable completion service both resolve to ``Operation.TODAY_EVENTS``.
Each fallback is logged at WARNING and counted as an
``IntentClassifier/Fallback`` metric so misrouted questions stay visible.
"""

from __future__ import annotations

import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from src.assistant.llm import build_classifier_llm, invoke_text
from src.calendar_query.executor import Operation
from src.prompts import get_classifier_prompt
from src.services.metrics import metrics

logger = logging.getLogger(__name__)

DEFAULT_OPERATION = Operation.TODAY_EVENTS

FALLBACK_INVALID_COMPLETION = "invalid_completion"
FALLBACK_SERVICE_ERROR = "service_error"


def parse_operation(text: str) -> Operation | None:
    """Return the operation named by *text* (trimmed, case-sensitive) or ``None``."""
    try:
        return Operation(text.strip())
    except ValueError:
        return None


class IntentClassifier:
    """Single-turn LLM classifier over ``Operation``."""

    def __init__(self, llm: BaseChatModel | None = None):
        self._llm = llm or build_classifier_llm()

    def classify(self, user_text: str) -> Operation:
        prompt = get_classifier_prompt(user_text)
        try:
            completion = invoke_text(
                self._llm, [HumanMessage(content=prompt)], "intent_classify",
            )
        except Exception as exc:
            logger.warning(
                "Intent classification failed (%s), defaulting to %s",
                type(exc).__name__, DEFAULT_OPERATION,
            )
            metrics.record_fallback("intent_classifier", FALLBACK_SERVICE_ERROR)
            return DEFAULT_OPERATION

        operation = parse_operation(completion)
        if operation is None:
            logger.warning(
                "Classifier returned invalid operation %r, defaulting to %s",
                completion, DEFAULT_OPERATION,
            )
            metrics.record_fallback("intent_classifier", FALLBACK_INVALID_COMPLETION)
            return DEFAULT_OPERATION

        logger.info("Selected %s for query %r", operation, user_text)
        return operation
