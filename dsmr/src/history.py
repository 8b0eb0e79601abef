"""
In-memory window of recently decoded telegrams.

Keeps the newest N telegrams in arrival order; older ones fall off the
front. Nothing is persisted: a restart starts with an empty window.

Operations:
- append(telegram): add the newest telegram, evicting the oldest when full.
- latest(): the newest telegram, or None.
- snapshot(): all kept telegrams, oldest first.
- count(): number of kept telegrams.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-013)

TODO:
- None
"""

from __future__ import annotations

import threading
from collections import deque

from dsmr.src.models import Telegram


class TelegramHistory:
    """Bounded FIFO of decoded telegrams.

    Safe to share between the reader thread and asyncio code.

    Args:
        size: Maximum number of telegrams kept.
    """

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError("history size must be >= 1")
        self._items: deque[Telegram] = deque(maxlen=size)
        self._lock = threading.Lock()

    def append(self, telegram: Telegram) -> None:
        with self._lock:
            self._items.append(telegram)

    def latest(self) -> Telegram | None:
        with self._lock:
            return self._items[-1] if self._items else None

    def snapshot(self) -> list[Telegram]:
        with self._lock:
            return list(self._items)

    def count(self) -> int:
        with self._lock:
            return len(self._items)
