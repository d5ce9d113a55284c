from __future__ import annotations

from typing import Any

from linebot.v3.webhooks import MessageEvent, StickerMessageContent, TextMessageContent

from relay.core.models import EventKind, InboundEvent


def describe_sticker(sticker_id: str, resource_type: Any) -> str:
    return f"sticker id is {sticker_id}, stickerResourceType is {resource_type}"


def _type_name(obj: Any) -> str:
    return getattr(obj, "type", None) or type(obj).__name__


def normalize_event(event: Any) -> InboundEvent:
    """Classify one LINE webhook event.

    Text messages pass through as prompts. Stickers get a local description
    and are never sent to the model. Everything else is unsupported.
    """
    if not isinstance(event, MessageEvent):
        return InboundEvent(kind=EventKind.UNSUPPORTED, message_type=_type_name(event))

    message = event.message
    if isinstance(message, TextMessageContent):
        return InboundEvent(
            kind=EventKind.TEXT,
            text=message.text,
            reply_target=event.reply_token,
            message_type="text",
        )
    if isinstance(message, StickerMessageContent):
        return InboundEvent(
            kind=EventKind.STICKER,
            text=describe_sticker(message.sticker_id, message.sticker_resource_type),
            reply_target=event.reply_token,
            message_type="sticker",
        )
    return InboundEvent(
        kind=EventKind.UNSUPPORTED,
        reply_target=event.reply_token,
        message_type=_type_name(message),
    )
