"""Status reporter — renders the history log as a health response.

Health is binary and follows the most recent run only:

  no history / empty log   → 200  no_data
  last run succeeded       → 200  healthy
  last run failed          → 503  degraded
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..history.store import HistoryLog

SERVICE_NAME = "keepalive"


@dataclass(frozen=True)
class StatusResponse:
    http_status: int
    body: dict[str, Any]


def render_status(log: HistoryLog | None, next_run: str = "") -> StatusResponse:
    if log is None or not log.runs:
        return StatusResponse(
            http_status=200,
            body={
                "service": SERVICE_NAME,
                "status": "no_data",
                "message": "No ping history available yet.",
                "nextRun": next_run,
            },
        )

    last = log.runs[-1]
    healthy = last.success

    return StatusResponse(
        http_status=200 if healthy else 503,
        body={
            "service": SERVICE_NAME,
            "status": "healthy" if healthy else "degraded",
            "lastRun": last.timestamp.isoformat(),
            "nextRun": next_run,
            "trigger": last.trigger.value,
            "message": last.message,
            "results": [r.to_dict() for r in last.results],
            "counts": last.counts.to_dict(),
            "history": {
                "available": True,
                "runCount": len(log.runs),
                "oldestRun": log.runs[0].timestamp.isoformat(),
            },
        },
    )
