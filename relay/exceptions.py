"""Relay error types.

Every failure crossing a module boundary is a RelayError, so the HTTP layer
can map it to a status code without knowing which collaborator raised it.
"""
from __future__ import annotations

from relay.core.models import FailureReason


class RelayError(Exception):
    """Base class for relay failures.

    Attributes:
        code: the FailureReason this error stands for.
        message: human readable description.
        http_status: status code used when the error reaches an HTTP caller.
    """

    reason: FailureReason = FailureReason.BACKEND_FAILURE
    default_status: int = 500

    def __init__(self, message: str):
        self.code = self.reason
        self.message = message
        self.http_status = self.default_status
        super().__init__(message)


class BackendFailure(RelayError):
    """The AI backend raised, timed out, or returned no usable candidate."""

    reason = FailureReason.BACKEND_FAILURE


class SignatureInvalid(RelayError):
    reason = FailureReason.SIGNATURE_INVALID
    default_status = 400


class WebhookParseFailure(RelayError):
    reason = FailureReason.WEBHOOK_PARSE_FAILURE


class OutboundSendFailure(RelayError):
    """Reply delivery to the chat platform failed."""

    reason = FailureReason.OUTBOUND_SEND_FAILURE
