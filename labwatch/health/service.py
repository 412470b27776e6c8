"""Mutation API — the operations user actions are allowed to perform.

Each mutator changes the store under its lock, releases it, then persists
synchronously before returning. A failed save is logged by the gateway and
doesn't undo anything: the in-memory state stays authoritative.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from .errors import IndexOutOfRange
from .models import Configuration, HealthReport, IconSet, Service
from .persistence import SettingsFile
from .store import HealthStore

if TYPE_CHECKING:
    from labwatch.presentation import StatusPresenter

logger = logging.getLogger(__name__)


def _check_index(config: Configuration, index: int) -> None:
    if not 0 <= index < len(config.services):
        raise IndexOutOfRange(index, len(config.services))


class MonitorService:
    """Service list, interval and icon-set operations over a HealthStore."""

    def __init__(
        self,
        store: HealthStore,
        settings_file: SettingsFile,
        presenter: StatusPresenter | None = None,
    ) -> None:
        self.store = store
        self.settings_file = settings_file
        self.presenter = presenter

    # ── Services ─────────────────────────────────────────────────────────

    def list_services(self) -> list[Service]:
        return list(self.store.snapshot().services)

    def add_service(self, name: str, host: str, port: str) -> list[Service]:
        service = Service(name=name, host=host, port=port)
        config = self._apply(
            lambda c: dataclasses.replace(c, services=c.services + (service,)),
        )
        logger.info("Added service %s (%s)", name, service.address)
        return list(config.services)

    def update_service(self, index: int, name: str, host: str, port: str) -> list[Service]:
        service = Service(name=name, host=host, port=port)

        def replace(c: Configuration) -> Configuration:
            _check_index(c, index)
            services = list(c.services)
            services[index] = service
            return dataclasses.replace(c, services=tuple(services))

        config = self._apply(replace)
        logger.info("Updated service #%d → %s (%s)", index, name, service.address)
        return list(config.services)

    def remove_service(self, index: int) -> list[Service]:
        def remove(c: Configuration) -> Configuration:
            _check_index(c, index)
            return dataclasses.replace(
                c, services=c.services[:index] + c.services[index + 1:],
            )

        config = self._apply(remove)
        logger.info("Removed service #%d", index)
        return list(config.services)

    # ── Interval ─────────────────────────────────────────────────────────

    def get_interval(self) -> int:
        return self.store.snapshot().interval_secs

    def set_interval(self, seconds: int) -> int:
        """Set the poll interval. 0 means probe on every scheduler tick."""
        if seconds < 0:
            raise ValueError("Interval must be >= 0")
        config = self._apply(lambda c: dataclasses.replace(c, interval_secs=int(seconds)))
        logger.info("Poll interval set to %ds", config.interval_secs)
        return config.interval_secs

    # ── Icon set ─────────────────────────────────────────────────────────

    def get_icon_set(self) -> IconSet:
        return self.store.snapshot().icon_set

    def set_icon_set(self, preference: str | IconSet) -> IconSet:
        """Switch icon set and redraw right away with the cached health verdict."""
        icon_set = IconSet.parse(preference)
        self._apply(lambda c: dataclasses.replace(c, icon_set=icon_set))
        logger.info("Icon set changed to %s", icon_set.value)

        current, healthy, last = self.store.view()
        if self.presenter is not None:
            if last is None:
                report = HealthReport(aggregate_healthy=healthy)
            else:
                report = dataclasses.replace(last, aggregate_healthy=healthy)
            try:
                self.presenter.refresh(report, current.icon_set)
            except Exception:
                logger.exception("Presenter refresh after icon set change failed")
        return icon_set

    # ── Health ───────────────────────────────────────────────────────────

    def overall_healthy(self) -> bool:
        return self.store.health()

    # ── Internals ────────────────────────────────────────────────────────

    def _apply(self, fn: Callable[[Configuration], Configuration]) -> Configuration:
        config, revision = self.store.mutate(fn)
        self.settings_file.save(config, revision)
        return config
