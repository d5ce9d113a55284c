from __future__ import annotations

import threading
from collections import deque
from typing import Any, Deque, List, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient
from linebot.v3 import WebhookParser

import app.main as main
from line_payloads import CHANNEL_SECRET
from relay.core.models import ConversationTurn, Role
from relay.core.prompt import priming_seed
from relay.dispatcher import ReplyDispatcher
from relay.engine import RelayEngine


class FakeBackend:
    """Scripted backend: echoes the prompt unless an outcome is queued.

    Queued outcomes are either an exception instance (raised) or a list of
    candidates (returned as is).
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls: List[List[ConversationTurn]] = []
        self.outcomes: Deque[Any] = deque()
        self._lock = threading.Lock()

    def queue(self, *outcomes: Any) -> None:
        self.outcomes.extend(outcomes)

    def send_message(self, history: Sequence[ConversationTurn]) -> List[ConversationTurn]:
        with self._lock:
            self.calls.append(list(history))
            outcome = self.outcomes.popleft() if self.outcomes else None
        if self.delay:
            threading.Event().wait(self.delay)
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome is not None:
            return outcome
        return [ConversationTurn(role=Role.MODEL, content=(f"echo: {history[-1].text}",))]


class FakeMessenger:
    def __init__(self):
        self.sent: List[Tuple[str, str]] = []
        self.error: Optional[Exception] = None

    def reply(self, reply_target: str, text: str) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append((reply_target, text))


@pytest.fixture
def seed() -> List[ConversationTurn]:
    return priming_seed()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def engine(backend, seed) -> RelayEngine:
    return RelayEngine(backend, seed=seed)


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture
def dispatcher(messenger) -> ReplyDispatcher:
    return ReplyDispatcher(messenger)


@pytest.fixture
def client(engine, dispatcher):
    main.app.dependency_overrides[main.get_engine] = lambda: engine
    main.app.dependency_overrides[main.get_dispatcher] = lambda: dispatcher
    main.app.dependency_overrides[main.get_webhook_parser] = lambda: WebhookParser(CHANNEL_SECRET)
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()
