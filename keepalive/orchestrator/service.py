"""KeepaliveRunner — binds discovery, probing and history for one process."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

import httpx

from ..config import load_target_config
from ..health.engine import RequestBuilder
from ..targets.registry import Target, discover
from .run import RunSummary, Trigger, run_once

if TYPE_CHECKING:
    from ..history.store import HistoryStore


class KeepaliveRunner:
    """Runs one keepalive pass per call.

    Targets are re-discovered on every run so configuration changes apply
    without a restart.
    """

    def __init__(
        self,
        store: HistoryStore,
        client: httpx.AsyncClient,
        config_loader: Callable[[], Mapping[str, str]] = load_target_config,
        prefix: str = "",
        build_request: RequestBuilder | None = None,
    ) -> None:
        self.store = store
        self.client = client
        self._config_loader = config_loader
        self.prefix = prefix
        self.build_request = build_request

    def targets(self) -> list[Target]:
        return discover(self._config_loader(), self.prefix)

    async def run(self, trigger: Trigger) -> RunSummary:
        return await run_once(
            self.targets(), trigger, self.store, self.client, self.build_request,
        )
