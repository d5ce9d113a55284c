from __future__ import annotations

from typing import Any, List, Optional, Protocol, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from config.settings import Settings, get_settings
from relay.core.models import ConversationTurn, Role
from relay.exceptions import BackendFailure


class ChatBackend(Protocol):
    """Generative backend seam.

    ``history`` is the full conversation, ending with the user turn to answer.
    Returns the candidate answers; raises BackendFailure on any failure.
    """

    def send_message(self, history: Sequence[ConversationTurn]) -> List[ConversationTurn]:
        ...


def build_llm(settings: Settings) -> ChatGoogleGenerativeAI:
    if not settings.google_api_key:
        raise RuntimeError(
            "GOOGLE_API_KEY not set. Please configure it in environment or .env"
        )

    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.google_api_key,
        temperature=settings.temperature,
        top_p=settings.top_p,
        timeout=settings.backend_timeout,
        # Retrying is left to the caller
        max_retries=0,
    )


def to_lc_messages(history: Sequence[ConversationTurn]) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    for turn in history:
        if turn.role is Role.MODEL:
            messages.append(AIMessage(content=turn.text))
        else:
            messages.append(HumanMessage(content=turn.text))
    return messages


def _content_parts(content: Any) -> List[str]:
    if isinstance(content, str):
        return [content] if content.strip() else []
    parts: List[str] = []
    for item in content or []:
        if isinstance(item, str):
            text = item
        elif isinstance(item, dict):
            text = item.get("text") or ""
        else:
            continue
        if text.strip():
            parts.append(text)
    return parts


class GeminiBackend:
    """Gemini seam. The chat model is built on first use, so a missing key
    only fails the calls that actually reach the model."""

    def __init__(self, llm: Optional[BaseChatModel] = None, settings: Optional[Settings] = None):
        self._llm = llm
        self._settings = settings

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "GeminiBackend":
        return cls(settings=settings or get_settings())

    def _model(self) -> BaseChatModel:
        if self._llm is None:
            try:
                self._llm = build_llm(self._settings or get_settings())
            except RuntimeError as exc:
                raise BackendFailure(str(exc)) from exc
        return self._llm

    def send_message(self, history: Sequence[ConversationTurn]) -> List[ConversationTurn]:
        llm = self._model()
        try:
            result = llm.invoke(to_lc_messages(history))
        except Exception as exc:
            raise BackendFailure(f"Gemini call failed: {exc}") from exc

        parts = _content_parts(getattr(result, "content", None))
        if not parts:
            return []
        return [ConversationTurn(role=Role.MODEL, content=tuple(parts))]
