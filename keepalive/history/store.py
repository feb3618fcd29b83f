"""History store — a 24-hour rolling log of run summaries under one key.

Every append is a read-modify-write of the whole JSON blob. The backend has no
transactional update, so two runs appending at the same moment can lose one
of the two entries (last writer wins). Closing the race needs a backend with
conditional writes.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from ..orchestrator.run import RunSummary
from .backends import KeyValueBackend

logger = logging.getLogger(__name__)

HISTORY_KEY = "keepalive:history"
RETENTION = timedelta(hours=24)


@dataclass
class HistoryLog:
    """Chronological run summaries plus the time of the last write."""

    runs: list[RunSummary] = field(default_factory=list)
    last_updated: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "runs": [r.to_dict() for r in self.runs],
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> HistoryLog:
        last = raw.get("lastUpdated")
        return cls(
            runs=[RunSummary.from_dict(r) for r in raw.get("runs") or []],
            last_updated=datetime.fromisoformat(last) if last else None,
        )


def prune(
    runs: list[RunSummary], now: datetime, retention: timedelta = RETENTION,
) -> list[RunSummary]:
    """Keep runs with timestamp >= now - retention, ordered oldest first."""
    cutoff = now - retention
    return sorted((r for r in runs if r.timestamp >= cutoff), key=lambda r: r.timestamp)


class HistoryStore:
    """Append/read access to the persisted HistoryLog."""

    def __init__(
        self,
        backend: KeyValueBackend,
        key: str = HISTORY_KEY,
        retention: timedelta = RETENTION,
    ) -> None:
        self.backend = backend
        self.key = key
        self.retention = retention

    def _load(self) -> HistoryLog | None:
        data = self.backend.get(self.key)
        if not data:
            return None
        return HistoryLog.from_dict(json.loads(data))

    def append(self, summary: RunSummary, now: datetime | None = None) -> None:
        """Add a run and drop expired ones. Failures are logged, never raised."""
        now = now or datetime.now(timezone.utc)
        try:
            history = self._load() or HistoryLog()
            history.runs.append(summary)
            history.runs = prune(history.runs, now, self.retention)
            history.last_updated = now
            self.backend.put(self.key, json.dumps(history.to_dict()))
            logger.info("✓ Saved run to history (%d entries)", len(history.runs))
        except Exception as e:
            logger.error("✗ Failed to save run to history: %s", e)

    def read(self) -> HistoryLog | None:
        """Stored log, or None when it was never written or cannot be read."""
        try:
            return self._load()
        except Exception as e:
            logger.error("✗ Failed to read history: %s", e)
            return None
