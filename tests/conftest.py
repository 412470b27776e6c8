"""Shared test fixtures."""

from __future__ import annotations

import socket
from collections.abc import Generator
from pathlib import Path

import pytest

from labwatch.health.models import HealthReport, IconSet
from labwatch.health.persistence import SettingsFile
from labwatch.health.service import MonitorService
from labwatch.health.store import HealthStore


class RecordingPresenter:
    """Presenter that remembers every refresh it receives."""

    def __init__(self) -> None:
        self.calls: list[tuple[HealthReport, IconSet]] = []

    def refresh(self, report: HealthReport, icon_set: IconSet) -> None:
        self.calls.append((report, icon_set))


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    return tmp_path / "settings.json"


@pytest.fixture
def settings_file(settings_path: Path) -> SettingsFile:
    return SettingsFile(settings_path)


@pytest.fixture
def store(settings_file: SettingsFile) -> HealthStore:
    """Store seeded with the built-in defaults (2 services, 10s)."""
    return HealthStore(settings_file.load(), lock_timeout=1.0)


@pytest.fixture
def monitor(
    store: HealthStore, settings_file: SettingsFile, presenter: RecordingPresenter,
) -> MonitorService:
    return MonitorService(store, settings_file, presenter=presenter)


@pytest.fixture
def open_port() -> Generator[int, None, None]:
    """A loopback port with a listener — connects succeed via the backlog."""
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen(16)
    try:
        yield srv.getsockname()[1]
    finally:
        srv.close()


@pytest.fixture
def closed_port() -> int:
    """A loopback port nothing listens on — connects are refused."""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port
