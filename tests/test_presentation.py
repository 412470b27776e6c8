"""Tests for the presentation adapters."""

from __future__ import annotations

import asyncio
import io

from rich.console import Console

from labwatch.api.server import build_presenter
from labwatch.health.models import HealthReport, IconSet
from labwatch.presentation import (
    BroadcastPresenter,
    ConsolePresenter,
    FanOutPresenter,
    status_payload,
)

DOWN = HealthReport(aggregate_healthy=False, per_service=(("NAS", True), ("Router", False)))
UP = HealthReport(aggregate_healthy=True, per_service=(("NAS", True),))


def _console() -> tuple[Console, io.StringIO]:
    buf = io.StringIO()
    return Console(file=buf, width=100, color_system=None), buf


class TestStatusPayload:
    def test_default_icons(self) -> None:
        assert status_payload(UP, IconSet.DEFAULT)["icon"] == "green.png"
        assert status_payload(DOWN, IconSet.DEFAULT)["icon"] == "red.png"

    def test_alt_icons(self) -> None:
        data = status_payload(DOWN, IconSet.ALT)
        assert data["icon"] == "cross.png"
        assert data["is_template"] is True
        assert data["icon_set"] == "alt"


class TestConsolePresenter:
    def test_renders_menu_lines(self) -> None:
        console, buf = _console()
        ConsolePresenter(console).refresh(DOWN, IconSet.DEFAULT)
        out = buf.getvalue()
        assert "✅ NAS" in out
        assert "❌ Router" in out
        assert "red.png" in out
        assert "Service down" in out

    def test_empty_list(self) -> None:
        console, buf = _console()
        ConsolePresenter(console).refresh(HealthReport(aggregate_healthy=True), IconSet.ALT)
        out = buf.getvalue()
        assert "No services monitored." in out
        assert "checked.png" in out


class TestBroadcastPresenter:
    def test_delivers_to_subscribers(self) -> None:
        broadcaster = BroadcastPresenter()

        async def scenario() -> dict:
            queue = broadcaster.subscribe()
            # Refreshes come from worker threads in practice
            await asyncio.get_running_loop().run_in_executor(
                None, broadcaster.refresh, DOWN, IconSet.DEFAULT,
            )
            data = await asyncio.wait_for(queue.get(), timeout=1)
            broadcaster.unsubscribe(queue)
            return data

        data = asyncio.run(scenario())
        assert data["aggregate_healthy"] is False
        assert data["icon"] == "red.png"
        assert broadcaster.subscriber_count == 0

    def test_slow_consumer_dropped(self) -> None:
        broadcaster = BroadcastPresenter(maxsize=1)

        async def scenario() -> int:
            queue = broadcaster.subscribe()
            broadcaster.refresh(UP, IconSet.DEFAULT)
            broadcaster.refresh(DOWN, IconSet.DEFAULT)
            await asyncio.sleep(0.01)
            return queue.qsize()

        assert asyncio.run(scenario()) == 1

    def test_closed_loop_unsubscribes(self) -> None:
        broadcaster = BroadcastPresenter()

        async def scenario() -> None:
            broadcaster.subscribe()

        asyncio.run(scenario())  # loop closed afterwards
        broadcaster.refresh(UP, IconSet.DEFAULT)
        assert broadcaster.subscriber_count == 0


class TestFanOutPresenter:
    def test_failure_isolated(self, presenter) -> None:
        class Broken:
            def refresh(self, report, icon_set):
                raise RuntimeError("boom")

        fan = FanOutPresenter([Broken(), presenter])
        fan.refresh(UP, IconSet.DEFAULT)
        assert presenter.calls == [(UP, IconSet.DEFAULT)]


class TestServerPresenter:
    def test_console_status_fans_out(self) -> None:
        broadcaster = BroadcastPresenter()
        presenter = build_presenter(broadcaster, console_status=True)
        assert isinstance(presenter, FanOutPresenter)
        assert presenter.presenters[0] is broadcaster
        assert isinstance(presenter.presenters[1], ConsolePresenter)

    def test_console_status_off(self) -> None:
        broadcaster = BroadcastPresenter()
        assert build_presenter(broadcaster, console_status=False) is broadcaster
