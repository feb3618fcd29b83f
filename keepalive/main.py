"""Entry point for the keepalive service — `keepalive` console script.

    keepalive serve                    # HTTP API + in-process scheduler
    keepalive run                      # one scheduled run (for external cron)
    keepalive run --trigger manual
    keepalive status                   # rendered status from stored history
    keepalive targets                  # discovered targets (no credentials)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import timedelta

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from keepalive.config import load_target_config, settings
from keepalive.health.engine import make_client, request_builder
from keepalive.history.backends import SqliteKeyValueBackend
from keepalive.history.store import HistoryStore
from keepalive.orchestrator.run import RunSummary, Trigger
from keepalive.orchestrator.service import KeepaliveRunner
from keepalive.status.reporter import render_status
from keepalive.targets.registry import discover

console = Console()


def _store(backend: SqliteKeyValueBackend) -> HistoryStore:
    return HistoryStore(
        backend,
        key=settings.history_key,
        retention=timedelta(hours=settings.history_retention_hours),
    )


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(
        Panel.fit(
            f"[bold]Keepalive[/bold]\n"
            f"Bind:     {settings.api_host}:{settings.api_port}\n"
            f"History:  {settings.history_db_path}\n"
            f"Schedule: {settings.next_run_hint}",
            title="keepalive",
            border_style="green",
        )
    )
    uvicorn.run(
        "keepalive.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


async def _run(trigger: Trigger) -> RunSummary:
    backend = SqliteKeyValueBackend(settings.history_db_path)
    try:
        async with make_client(settings.probe_timeout_seconds) as client:
            runner = KeepaliveRunner(
                _store(backend),
                client,
                config_loader=load_target_config,
                prefix=settings.target_prefix,
                build_request=request_builder(settings.probe_mode, settings.probe_table),
            )
            return await runner.run(trigger)
    finally:
        backend.close()


def print_summary(summary: RunSummary) -> None:
    table = Table(title=summary.message)
    table.add_column("Target")
    table.add_column("Result")
    table.add_column("Status")
    table.add_column("Duration", justify="right")

    for r in summary.results:
        table.add_row(
            r.target_name,
            "[green]OK[/green]" if r.success else "[red]FAIL[/red]",
            str(r.status_code) if r.status_code is not None else (r.error_message or "-"),
            f"{r.duration_ms}ms",
        )

    if summary.results:
        console.print(table)
    else:
        console.print(f"[yellow]{summary.message}[/yellow]")


def run_cli(trigger: Trigger) -> int:
    """One keepalive pass; exit code 0 only when every target answered OK."""
    summary = asyncio.run(_run(trigger))
    print_summary(summary)
    return 0 if summary.success else 1


def show_status() -> int:
    backend = SqliteKeyValueBackend(settings.history_db_path)
    try:
        rendered = render_status(_store(backend).read(), next_run=settings.next_run_hint)
    finally:
        backend.close()
    console.print_json(json.dumps(rendered.body))
    return 0 if rendered.http_status == 200 else 1


def show_targets() -> int:
    targets = discover(load_target_config(), settings.target_prefix)
    if not targets:
        console.print("[yellow]No targets configured.[/yellow]")
        return 1

    table = Table(title=f"{len(targets)} target(s)")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Endpoint")
    for t in targets:
        table.add_row(str(t.ordinal), t.name, t.endpoint)
    console.print(table)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Keepalive database pinger")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Start the API server")

    run_parser = sub.add_parser("run", help="Ping every target once")
    run_parser.add_argument(
        "--trigger",
        choices=[t.value for t in Trigger],
        default=Trigger.SCHEDULED.value,
        help="Recorded trigger for this run (default: scheduled)",
    )

    sub.add_parser("status", help="Show status from stored history")
    sub.add_parser("targets", help="List configured targets")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    if args.command == "serve":
        run_server()
    elif args.command == "run":
        sys.exit(run_cli(Trigger(args.trigger)))
    elif args.command == "status":
        sys.exit(show_status())
    elif args.command == "targets":
        sys.exit(show_targets())
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
