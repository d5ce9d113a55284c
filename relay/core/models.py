from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


class ConversationTurn(BaseModel):
    """One exchange unit of the conversation history."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: Tuple[str, ...] = Field(default_factory=tuple)

    @classmethod
    def user(cls, text: str) -> "ConversationTurn":
        return cls(role=Role.USER, content=(text,))

    @classmethod
    def model(cls, text: str) -> "ConversationTurn":
        return cls(role=Role.MODEL, content=(text,))

    @property
    def text(self) -> str:
        return "\n".join(self.content)


class EventKind(str, Enum):
    TEXT = "text"
    STICKER = "sticker"
    UNSUPPORTED = "unsupported"


class InboundEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: EventKind
    text: Optional[str] = None
    reply_target: Optional[str] = None
    message_type: Optional[str] = None

    @property
    def forwards_to_backend(self) -> bool:
        # Stickers are answered with their local description only
        return self.kind is EventKind.TEXT


class FailureReason(str, Enum):
    SIGNATURE_INVALID = "SignatureInvalid"
    WEBHOOK_PARSE_FAILURE = "WebhookParseFailure"
    BACKEND_FAILURE = "BackendFailure"
    UNSUPPORTED_MESSAGE_KIND = "UnsupportedMessageKind"
    OUTBOUND_SEND_FAILURE = "OutboundSendFailure"


class RelayResult(BaseModel):
    """Outcome of one relay attempt: a reply text or a failure reason."""

    model_config = ConfigDict(frozen=True)

    reply_text: Optional[str] = None
    error: Optional[FailureReason] = None
    detail: Optional[str] = None

    @classmethod
    def success(cls, reply_text: str) -> "RelayResult":
        return cls(reply_text=reply_text)

    @classmethod
    def failure(cls, reason: FailureReason, detail: Optional[str] = None) -> "RelayResult":
        return cls(error=reason, detail=detail)

    @property
    def ok(self) -> bool:
        return self.error is None
