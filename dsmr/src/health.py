"""
Health file writer for the P1 reader daemon.

Writes a JSON health file at a configurable path with these fields:
- last_telegram_ts: ISO timestamp of the most recently decoded telegram.
- last_valid_ts: ISO timestamp of the most recent valid telegram.
- valid_count / invalid_count: Telegrams decoded since startup.
- history_count: Telegrams currently kept in memory.

The file is rewritten on every state change, providing a simple liveness
signal that Docker HEALTHCHECK or monitoring can inspect.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-014)

TODO:
- None
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path


class HealthWriter:
    """Writes reader health status to a JSON file.

    Each mutating method updates the in-memory state and immediately
    rewrites the health file so it always reflects the latest status.

    Args:
        path: Filesystem path for the health JSON file. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._last_telegram_ts: str | None = None
        self._last_valid_ts: str | None = None
        self._valid_count: int = 0
        self._invalid_count: int = 0
        self._history_count: int = 0

    def record_telegram(self, *, valid: bool) -> None:
        """Record a decoded telegram and write health file.

        Args:
            valid: Whether the telegram passed validation.
        """
        now = datetime.now(tz=UTC).isoformat()
        self._last_telegram_ts = now
        if valid:
            self._last_valid_ts = now
            self._valid_count += 1
        else:
            self._invalid_count += 1
        self._write()

    def set_history_count(self, count: int) -> None:
        """Update the history count and write health file.

        Args:
            count: Current number of telegrams kept in memory.
        """
        self._history_count = count
        self._write()

    def _write(self) -> None:
        """Write the health JSON file with current state."""
        data = {
            "last_telegram_ts": self._last_telegram_ts,
            "last_valid_ts": self._last_valid_ts,
            "valid_count": self._valid_count,
            "invalid_count": self._invalid_count,
            "history_count": self._history_count,
        }
        self.path.write_text(json.dumps(data))
