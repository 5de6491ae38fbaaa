"""Per-user rolling conversation history."""

from __future__ import annotations

import threading
from collections import deque

from gpt_reply.types import Turn

DEFAULT_HISTORY_LIMIT = 20


class HistoryStore:
    """In-memory map of user id to their most recent turns.

    Each user keeps at most ``limit`` turns; once full, the oldest turn is
    dropped for every new one.  A single lock guards the whole map, so one
    store can be shared by all request threads.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError(f"history limit must be positive, got {limit}")
        self._limit = limit
        self._turns: dict[str, deque[Turn]] = {}
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self._limit

    def record(self, user_id: str, turn: Turn) -> None:
        """Append *turn* to the user's history, evicting the oldest if full."""
        with self._lock:
            self._append(user_id, turn)

    def read(self, user_id: str) -> list[Turn]:
        """Return a copy of the user's history (empty for unknown users)."""
        with self._lock:
            return list(self._turns.get(user_id, ()))

    def append_and_read(self, user_id: str, turn: Turn) -> list[Turn]:
        """Record *turn* and return the resulting history in one step."""
        with self._lock:
            self._append(user_id, turn)
            return list(self._turns[user_id])

    def _append(self, user_id: str, turn: Turn) -> None:
        turns = self._turns.get(user_id)
        if turns is None:
            turns = self._turns[user_id] = deque(maxlen=self._limit)
        turns.append(turn)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._turns

    def __len__(self) -> int:
        with self._lock:
            return len(self._turns)
