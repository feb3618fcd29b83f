"""Target registry — discovers monitored endpoints from flat configuration.

Targets are declared as numbered pairs in the environment:

    URL_1=https://abcd1234.supabase.co
    KEY_1=<anon key>

Ordinals 1..99 are scanned; gaps are allowed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

MAX_ORDINAL = 99


# ── Data models ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Target:
    """One monitored endpoint with its access credential."""

    ordinal: int
    name: str
    endpoint: str
    credential: str = field(repr=False)

    def to_dict(self) -> dict[str, Any]:
        """Public view — the credential is never serialized."""
        return {"ordinal": self.ordinal, "name": self.name, "endpoint": self.endpoint}


# ── Discovery ────────────────────────────────────────────────────────────────


def target_name(endpoint: str, ordinal: int) -> str:
    """First label of the endpoint host, e.g. "abcd1234" from "https://abcd1234.supabase.co"."""
    try:
        hostname = urlsplit(endpoint).hostname or ""
    except ValueError:
        hostname = ""
    label = hostname.split(".")[0]
    return label or f"target-{ordinal}"


def discover(config: Mapping[str, str], prefix: str = "") -> list[Target]:
    """Scan URL_<i> / KEY_<i> pairs and return complete targets in ordinal order."""
    targets: list[Target] = []

    for i in range(1, MAX_ORDINAL + 1):
        url = (config.get(f"{prefix}URL_{i}") or "").strip()
        key = (config.get(f"{prefix}KEY_{i}") or "").strip()

        if url and key:
            targets.append(
                Target(ordinal=i, name=target_name(url, i), endpoint=url, credential=key)
            )
        elif url or key:
            missing = f"{prefix}KEY_{i}" if url else f"{prefix}URL_{i}"
            logger.warning("Incomplete config for target %d: missing %s", i, missing)

    logger.debug("Discovered %d target(s)", len(targets))
    return targets
