"""Plain chat pass-through to the completion service."""

from __future__ import annotations

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from src.assistant.llm import invoke_text
from src.errors import InvalidArgumentError, UpstreamError

_ROLE_TO_MESSAGE: dict[str, type[BaseMessage]] = {
    "system": SystemMessage,
    "user": HumanMessage,
    "assistant": AIMessage,
}


def to_langchain_messages(messages: list[dict[str, str]]) -> list[BaseMessage]:
    """Convert ``[{"role", "content"}]`` dicts to LangChain messages."""
    converted: list[BaseMessage] = []
    for message in messages:
        role = message.get("role")
        message_cls = _ROLE_TO_MESSAGE.get(role)
        if message_cls is None:
            raise InvalidArgumentError(f"Unsupported message role: {role!r}")
        converted.append(message_cls(content=message.get("content", "")))
    return converted


def complete_chat(llm: BaseChatModel, messages: list[dict[str, str]]) -> str:
    """Send the conversation as-is and return the model's reply."""
    converted = to_langchain_messages(messages)
    try:
        return invoke_text(llm, converted, "chat")
    except Exception as exc:
        raise UpstreamError(f"Completion service failed: {exc}") from exc
