from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from relay.backend import ChatBackend
from relay.core.memory import ConversationContext
from relay.core.models import ConversationTurn, FailureReason, RelayResult
from relay.core.prompt import priming_seed
from relay.exceptions import BackendFailure


logger = logging.getLogger("gemini_relay.engine")


class RelayEngine:
    """Sole path from a prompt to the backend, and sole writer of the conversation.

    A relay holds the context lock for the whole backend round trip, so relays
    and resets are fully serialized.
    """

    def __init__(
        self,
        backend: ChatBackend,
        seed: Optional[Sequence[ConversationTurn]] = None,
    ):
        self._backend = backend
        self._seed: List[ConversationTurn] = list(seed) if seed is not None else priming_seed()
        self._context = ConversationContext(self._seed)

    @property
    def context(self) -> ConversationContext:
        return self._context

    def history(self) -> List[ConversationTurn]:
        return self._context.snapshot()

    def reset_topic(self) -> None:
        self._context.reset(self._seed)
        logger.info("Conversation reset to seed (%s turns)", len(self._seed))

    def relay(self, prompt: str) -> RelayResult:
        with self._context.transaction() as context:
            before = len(context)
            context.append(ConversationTurn.user(prompt))
            try:
                candidates = self._backend.send_message(context.snapshot())
                if not candidates or not candidates[0].content:
                    raise BackendFailure("Backend returned no candidates")
            except BackendFailure as exc:
                context.rollback(before)
                logger.warning("Relay failed, history kept at %s turns: %s", before, exc.message)
                return RelayResult.failure(FailureReason.BACKEND_FAILURE, exc.message)
            except Exception as exc:
                context.rollback(before)
                logger.exception("Unexpected backend error: %s", exc)
                return RelayResult.failure(FailureReason.BACKEND_FAILURE, str(exc))

            reply_text = candidates[0].content[0]
            context.append(ConversationTurn.model(reply_text))
            logger.info(
                "Relayed prompt (%s chars), reply %s chars, history=%s turns",
                len(prompt),
                len(reply_text),
                len(context),
            )
            return RelayResult.success(reply_text)
