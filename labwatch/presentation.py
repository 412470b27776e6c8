"""Presentation adapters — render health refreshes onto a status surface.

The core only knows the ``StatusPresenter`` protocol. Refreshes arrive from
the scheduler's worker thread and from API request threads, so every
presenter here must be safe to call from any thread.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Iterable
from typing import Any, Protocol

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from labwatch.health.models import HealthReport, IconSet

logger = logging.getLogger(__name__)


class StatusPresenter(Protocol):
    def refresh(self, report: HealthReport, icon_set: IconSet) -> None: ...


def status_payload(report: HealthReport, icon_set: IconSet) -> dict[str, Any]:
    """JSON view of a refresh, shared by the SSE stream and /api/status."""
    data = report.to_dict()
    data["icon_set"] = icon_set.value
    data["icon"] = icon_set.icon_for(report.aggregate_healthy)
    data["is_template"] = icon_set.is_template
    return data


# ── Console ──────────────────────────────────────────────────────────────────


class ConsolePresenter:
    """Tray-style status panel printed with rich."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self._lock = threading.Lock()

    def render(self, report: HealthReport, icon_set: IconSet) -> Panel:
        icon = icon_set.icon_for(report.aggregate_healthy)
        body = Text()
        for name, healthy in report.per_service:
            body.append(f"{'✅' if healthy else '❌'} {name}\n")
        if not report.per_service:
            body.append("No services monitored.\n", style="dim")
        body.append(f"\n[{icon}] checked {report.checked_at}", style="dim")

        if report.aggregate_healthy:
            title, style = "All systems normal", "bold green"
        else:
            title, style = "Service down", "bold red"
        return Panel(body, title=title, style=style)

    def refresh(self, report: HealthReport, icon_set: IconSet) -> None:
        with self._lock:
            self.console.print(self.render(report, icon_set))


# ── SSE broadcast ────────────────────────────────────────────────────────────


class BroadcastPresenter:
    """Pushes refreshes to every SSE subscriber queue."""

    def __init__(self, maxsize: int = 50) -> None:
        self._maxsize = maxsize
        self._subscribers: list[tuple[asyncio.AbstractEventLoop, asyncio.Queue[dict[str, Any]]]] = []
        self._lock = threading.Lock()

    def subscribe(self) -> asyncio.Queue[dict[str, Any]]:
        """Register a queue bound to the running event loop."""
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=self._maxsize)
        with self._lock:
            self._subscribers.append((asyncio.get_running_loop(), queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[dict[str, Any]]) -> None:
        with self._lock:
            self._subscribers = [(lp, q) for lp, q in self._subscribers if q is not queue]

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def refresh(self, report: HealthReport, icon_set: IconSet) -> None:
        data = status_payload(report, icon_set)
        with self._lock:
            subscribers = list(self._subscribers)
        for loop, queue in subscribers:
            try:
                loop.call_soon_threadsafe(_offer, queue, data)
            except RuntimeError:
                # Loop already closed
                self.unsubscribe(queue)


def _offer(queue: asyncio.Queue[dict[str, Any]], data: dict[str, Any]) -> None:
    try:
        queue.put_nowait(data)
    except asyncio.QueueFull:
        pass  # slow consumer, drop


# ── Fan-out ──────────────────────────────────────────────────────────────────


class FanOutPresenter:
    """Forwards each refresh to several presenters; one failing doesn't stop the rest."""

    def __init__(self, presenters: Iterable[StatusPresenter] = ()) -> None:
        self.presenters = list(presenters)

    def refresh(self, report: HealthReport, icon_set: IconSet) -> None:
        for presenter in self.presenters:
            try:
                presenter.refresh(report, icon_set)
            except Exception:
                logger.exception("Presenter %s failed", type(presenter).__name__)
