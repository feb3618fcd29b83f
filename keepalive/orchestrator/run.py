"""Run orchestration — fan out probes, fan in a RunSummary, persist it.

Probes run as independent asyncio tasks sharing only the HTTP client. The
orchestrator waits for every probe; a slow target delays the run but is never
cancelled, and no probe is retried.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx

from ..health.engine import ProbeResult, RequestBuilder, probe
from ..targets.registry import Target

if TYPE_CHECKING:
    from ..history.store import HistoryStore

logger = logging.getLogger(__name__)

NO_TARGETS_MESSAGE = "No projects configured"


class Trigger(str, Enum):
    SCHEDULED = "scheduled"
    MANUAL = "manual"


@dataclass(frozen=True)
class RunCounts:
    total: int = 0
    succeeded: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "succeeded": self.succeeded, "failed": self.failed}


@dataclass(frozen=True)
class RunSummary:
    """One orchestrated batch of probes across all targets."""

    trigger: Trigger
    success: bool
    message: str
    results: tuple[ProbeResult, ...] = ()
    counts: RunCounts = field(default_factory=RunCounts)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "trigger": self.trigger.value,
            "success": self.success,
            "message": self.message,
            "results": [r.to_dict() for r in self.results],
            "counts": self.counts.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> RunSummary:
        counts = raw.get("counts") or {}
        return cls(
            trigger=Trigger(raw.get("trigger", Trigger.SCHEDULED.value)),
            success=bool(raw.get("success", False)),
            message=raw.get("message", ""),
            results=tuple(ProbeResult.from_dict(r) for r in raw.get("results") or []),
            counts=RunCounts(
                total=int(counts.get("total", 0)),
                succeeded=int(counts.get("succeeded", 0)),
                failed=int(counts.get("failed", 0)),
            ),
            timestamp=datetime.fromisoformat(raw["timestamp"]),
        )


def summarize(results: list[ProbeResult], trigger: Trigger) -> RunSummary:
    """Aggregate probe results into a RunSummary."""
    if not results:
        return RunSummary(trigger=trigger, success=False, message=NO_TARGETS_MESSAGE)

    succeeded = sum(1 for r in results if r.success)
    failed = len(results) - succeeded
    return RunSummary(
        trigger=trigger,
        success=failed == 0,
        message=f"Pinged {len(results)} project(s): {succeeded} succeeded, {failed} failed",
        results=tuple(results),
        counts=RunCounts(total=len(results), succeeded=succeeded, failed=failed),
    )


async def run_once(
    targets: list[Target],
    trigger: Trigger,
    store: HistoryStore,
    client: httpx.AsyncClient,
    build_request: RequestBuilder | None = None,
) -> RunSummary:
    """Probe every target concurrently, persist the summary, return it."""
    if not targets:
        logger.warning("No targets configured. Add URL_N and KEY_N entries to the environment.")
        results: list[ProbeResult] = []
    else:
        logger.info("Pinging %d target(s) (trigger=%s)...", len(targets), trigger.value)
        results = list(
            await asyncio.gather(*(probe(t, client, build_request) for t in targets))
        )

    summary = summarize(results, trigger)
    logger.info(
        "Completed: %d/%d succeeded, %d failed",
        summary.counts.succeeded, summary.counts.total, summary.counts.failed,
    )

    store.append(summary)
    return summary
