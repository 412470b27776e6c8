"""Entry point for labwatch."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from labwatch.api.server import build_monitor
from labwatch.config import settings
from labwatch.health.persistence import SettingsFile
from labwatch.health.prober import aggregate, probe
from labwatch.health.scheduler import PollScheduler
from labwatch.presentation import ConsolePresenter

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)


def run_server() -> None:
    """Start the FastAPI server (the poller runs in its lifespan)."""
    console.print(Panel("Starting labwatch API server", style="bold green"))
    uvicorn.run(
        "labwatch.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


def run_watch() -> None:
    """Poll in the foreground and print a status panel after every cycle."""
    settings_file = SettingsFile(settings.settings_path)
    presenter = ConsolePresenter(console)
    monitor = build_monitor(settings_file, presenter=presenter)
    scheduler = PollScheduler(
        monitor.store,
        presenter=presenter,
        tick_seconds=settings.tick_seconds,
        probe_timeout=settings.probe_timeout,
    )
    console.print(
        f"[dim]Watching {len(monitor.list_services())} services "
        f"every {monitor.get_interval()}s — Ctrl+C to quit[/dim]"
    )
    try:
        asyncio.run(scheduler.run_forever())
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")


def run_check() -> int:
    """Probe every persisted service once. Returns a process exit code."""
    config = SettingsFile(settings.settings_path).load()

    with console.status("[bold green]Probing services..."):
        results = probe(config.services, timeout=settings.probe_timeout)

    table = Table(title="labwatch")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Service")
    table.add_column("Address")
    table.add_column("Status")
    for i, r in enumerate(results):
        status = "[green]UP[/green]" if r.healthy else "[red]DOWN[/red]"
        table.add_row(str(i), r.service.name, r.service.address, status)
    console.print(table)

    return 0 if aggregate(results) else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="labwatch — TCP service monitor")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Start the API server and poller")
    sub.add_parser("watch", help="Poll in the foreground, printing status to the console")
    sub.add_parser("check", help="Probe all services once and exit")

    args = parser.parse_args()

    if args.command == "serve":
        run_server()
    elif args.command == "watch":
        run_watch()
    elif args.command == "check":
        sys.exit(run_check())
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
