from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol

from fastapi import HTTPException
from linebot.v3.messaging import (
    ApiClient,
    Configuration,
    MessagingApi,
    ReplyMessageRequest,
    TextMessage,
)

from config.settings import Settings, get_settings
from relay.core.models import RelayResult
from relay.exceptions import OutboundSendFailure


logger = logging.getLogger("gemini_relay.dispatcher")


class Messenger(Protocol):
    def reply(self, reply_target: str, text: str) -> None:
        ...


class LineMessenger:
    """Sends text replies through the LINE Messaging API."""

    def __init__(self, access_token: str):
        self._configuration = Configuration(access_token=access_token)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "LineMessenger":
        settings = settings or get_settings()
        if not settings.line_channel_token:
            raise RuntimeError(
                "LINE_CHANNEL_TOKEN not set. Please configure it in environment or .env"
            )
        return cls(settings.line_channel_token)

    def reply(self, reply_target: str, text: str) -> None:
        try:
            with ApiClient(self._configuration) as api_client:
                MessagingApi(api_client).reply_message(
                    ReplyMessageRequest(
                        reply_token=reply_target,
                        messages=[TextMessage(text=text)],
                    )
                )
        except Exception as exc:
            raise OutboundSendFailure(f"LINE reply failed: {exc}") from exc


class ReplyDispatcher:
    def __init__(self, messenger: Messenger):
        self._messenger = messenger

    def send_text(self, reply_target: str, text: str) -> bool:
        try:
            self._messenger.reply(reply_target, text)
        except OutboundSendFailure as exc:
            logger.warning("%s: %s", exc.code.value, exc.message)
            return False
        logger.info("Sent text reply (%s chars)", len(text))
        return True

    def dispatch_webhook(self, result: RelayResult, reply_target: Optional[str]) -> bool:
        """Reply on the webhook path. Reply tokens are single-use, so errors send nothing."""
        if not result.ok:
            logger.warning("Relay failed (%s), no reply sent: %s", result.error.value, result.detail)
            return False
        if not reply_target:
            logger.warning("Relay succeeded but event has no reply token")
            return False
        return self.send_text(reply_target, result.reply_text or "")

    @staticmethod
    def to_http(result: RelayResult) -> Dict[str, str]:
        if not result.ok:
            raise HTTPException(
                status_code=500,
                detail=f"{result.error.value}: {result.detail or 'no reply from model'}",
            )
        return {"message": result.reply_text or ""}
