"""Probe engine — one authenticated read per target, never raises.

Every outcome (2xx, non-2xx, transport failure) becomes a ProbeResult so the
orchestrator can fan out without per-task exception handling.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx

from ..targets.registry import Target

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


# ── Models ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a single probe against a single target."""

    target_name: str
    success: bool
    duration_ms: int
    status_code: int | None = None
    error_message: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "targetName": self.target_name,
            "success": self.success,
            "durationMs": self.duration_ms,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.status_code is not None:
            d["statusCode"] = self.status_code
        if self.error_message is not None:
            d["errorMessage"] = self.error_message
        return d

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ProbeResult:
        return cls(
            target_name=raw["targetName"],
            success=bool(raw["success"]),
            duration_ms=int(raw.get("durationMs", 0)),
            status_code=raw.get("statusCode"),
            error_message=raw.get("errorMessage"),
            timestamp=datetime.fromisoformat(raw["timestamp"]),
        )


# ── Request shapes ───────────────────────────────────────────────────────────

RequestBuilder = Callable[[Target], httpx.Request]


def _auth_headers(target: Target) -> dict[str, str]:
    return {
        "apikey": target.credential,
        "Authorization": f"Bearer {target.credential}",
    }


def table_request(table: str = "keepalive") -> RequestBuilder:
    """Query a single-row table — a real database read.

    The table must exist and be readable by the anon role:

        CREATE TABLE public.keepalive (id integer PRIMARY KEY DEFAULT 1);
        INSERT INTO public.keepalive (id) VALUES (1);
        ALTER TABLE public.keepalive ENABLE ROW LEVEL SECURITY;
        CREATE POLICY "anon read" ON public.keepalive FOR SELECT USING (true);
    """

    def build(target: Target) -> httpx.Request:
        return httpx.Request(
            "GET",
            f"{target.endpoint.rstrip('/')}/rest/v1/{table}",
            params={"select": "id"},
            headers=_auth_headers(target),
        )

    return build


def metadata_request() -> RequestBuilder:
    """Hit the REST root, which returns the schema description."""

    def build(target: Target) -> httpx.Request:
        return httpx.Request(
            "GET",
            f"{target.endpoint.rstrip('/')}/rest/v1/",
            headers=_auth_headers(target),
        )

    return build


def request_builder(mode: str, table: str = "keepalive") -> RequestBuilder:
    if mode == "table":
        return table_request(table)
    if mode == "metadata":
        return metadata_request()
    raise ValueError(f"Unknown probe mode: {mode!r} (expected 'table' or 'metadata')")


def make_client(timeout: float = DEFAULT_TIMEOUT_SECONDS) -> httpx.AsyncClient:
    """Shared client for one run; probes hold no other state."""
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


# ── Probe ────────────────────────────────────────────────────────────────────


def _describe_error(exc: Exception) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return f"Timed out: {exc}" if str(exc) else "Timed out"
    if isinstance(exc, httpx.ConnectError):
        return f"Connection error: {exc}"
    if isinstance(exc, httpx.TransportError):
        return f"Transport error: {type(exc).__name__}: {exc}"
    return f"Error: {type(exc).__name__}: {exc}"


async def probe(
    target: Target,
    client: httpx.AsyncClient,
    build_request: RequestBuilder | None = None,
) -> ProbeResult:
    """Ping one target and report the outcome as data."""
    build_request = build_request or table_request()
    t0 = time.perf_counter()
    try:
        resp = await client.send(build_request(target))
    except Exception as e:
        duration = int((time.perf_counter() - t0) * 1000)
        message = _describe_error(e)
        logger.error("✗ %s: %s - %dms", target.name, message, duration)
        return ProbeResult(
            target_name=target.name, success=False,
            duration_ms=duration, error_message=message,
        )

    duration = int((time.perf_counter() - t0) * 1000)
    if resp.is_success:
        logger.info("✓ %s: OK (%d) - %dms", target.name, resp.status_code, duration)
    else:
        logger.error("✗ %s: Failed (%d) - %dms", target.name, resp.status_code, duration)

    return ProbeResult(
        target_name=target.name, success=resp.is_success,
        duration_ms=duration, status_code=resp.status_code,
    )
