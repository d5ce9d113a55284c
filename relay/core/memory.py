"""Server-side conversation memory.

A single conversation is shared by every caller and lives only in process
memory. All reads and writes go through one re-entrant lock, and
``transaction()`` lets the relay engine hold that lock across a whole
backend round trip.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, List, Sequence

from relay.core.models import ConversationTurn


class ConversationContext:
    def __init__(self, seed: Sequence[ConversationTurn]):
        self._lock = threading.RLock()
        self._turns: List[ConversationTurn] = list(seed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._turns)

    @contextmanager
    def transaction(self) -> Iterator["ConversationContext"]:
        with self._lock:
            yield self

    def append(self, turn: ConversationTurn) -> None:
        with self._lock:
            self._turns.append(turn)

    def reset(self, seed: Sequence[ConversationTurn]) -> None:
        with self._lock:
            self._turns = list(seed)

    def snapshot(self) -> List[ConversationTurn]:
        with self._lock:
            return list(self._turns)

    def rollback(self, length: int) -> None:
        """Drop every turn appended after the history had ``length`` turns."""
        with self._lock:
            del self._turns[length:]
