"""LangGraph pipeline that answers a free-text calendar question.

Architecture:
  A three-node StateGraph run once per request:

    1. **classify**: ``IntentClassifier`` picks one ``Operation``
                      (never fails; degrades to ``TodayEvents``)
    2. **fetch**:    ``CalendarQueryExecutor`` runs it with the caller's
                      access token
    3. **respond**:  ``ResponseSynthesizer`` writes the answer

  Routing: classify → fetch → respond → END

  The graph is compiled without a checkpointer: the access token and the
  calendar data live only in the state of a single ``invoke``.  ``AuthError``,
  ``UpstreamError`` and ``InvalidArgumentError`` raised by ``fetch`` or
  ``respond`` propagate out of ``invoke`` unchanged.
"""

from __future__ import annotations

import logging
from typing import Any

from langgraph.graph import END, StateGraph
from typing_extensions import TypedDict

from src.assistant.classifier import IntentClassifier
from src.assistant.synthesizer import ResponseSynthesizer
from src.calendar_query.executor import CalendarQueryExecutor, Operation, QueryParams

logger = logging.getLogger(__name__)


class CalendarQueryState(TypedDict, total=False):
    """State flowing through the pipeline for one request."""

    query: str
    access_token: str
    context: dict[str, Any]
    operation: Operation
    calendar_data: dict[str, Any]
    response: str


def _make_classify_node(classifier: IntentClassifier):
    def classify_node(state: CalendarQueryState) -> dict:
        return {"operation": classifier.classify(state["query"])}

    return classify_node


def _make_fetch_node(executor: CalendarQueryExecutor):
    def fetch_node(state: CalendarQueryState) -> dict:
        result = executor.execute(
            state["access_token"],
            state["operation"],
            QueryParams.from_context(state.get("context")),
        )
        logger.debug(
            "%s returned %d event(s)", state["operation"], len(result.events or []),
        )
        return {"calendar_data": result.to_payload()}

    return fetch_node


def _make_respond_node(synthesizer: ResponseSynthesizer):
    def respond_node(state: CalendarQueryState) -> dict:
        return {
            "response": synthesizer.synthesize(state["query"], state["calendar_data"]),
        }

    return respond_node


def create_calendar_agent(
    classifier: IntentClassifier,
    executor: CalendarQueryExecutor,
    synthesizer: ResponseSynthesizer,
):
    """Build and compile the calendar question pipeline.

    Returns a compiled graph that can be invoked with:
        graph.invoke({
            "query": "What's on today?",
            "access_token": "ya29....",
            "context": {"max_results": 5},
        })["response"]
    """
    graph = StateGraph(CalendarQueryState)

    graph.add_node("classify", _make_classify_node(classifier))
    graph.add_node("fetch", _make_fetch_node(executor))
    graph.add_node("respond", _make_respond_node(synthesizer))

    graph.set_entry_point("classify")
    graph.add_edge("classify", "fetch")
    graph.add_edge("fetch", "respond")
    graph.add_edge("respond", END)

    return graph.compile()
