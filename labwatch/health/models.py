"""Value types shared by the store, prober, scheduler and presenters."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


# ── Display preference ───────────────────────────────────────────────────────


class IconSet(str, Enum):
    DEFAULT = "default"
    ALT = "alt"

    @classmethod
    def parse(cls, value: str | IconSet) -> IconSet:
        """Strict conversion for user input — unknown values raise ValueError."""
        if isinstance(value, IconSet):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown icon set: {value!r}") from None

    @classmethod
    def coerce(cls, value: Any) -> IconSet:
        """Lenient conversion for persisted data — unknown values fall back to DEFAULT."""
        try:
            return cls.parse(value)
        except ValueError:
            return cls.DEFAULT

    def icon_for(self, healthy: bool) -> str:
        return _ICONS[self][healthy]

    @property
    def is_template(self) -> bool:
        # Template images are tinted by the host menu bar
        return self is IconSet.ALT


# icon set → (healthy → asset file)
_ICONS: dict[IconSet, dict[bool, str]] = {
    IconSet.DEFAULT: {True: "green.png", False: "red.png"},
    IconSet.ALT: {True: "checked.png", False: "cross.png"},
}


# ── Configuration ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Service:
    """A monitored endpoint. Port is kept as text, exactly as the user typed it."""

    name: str
    host: str
    port: str

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "ip": self.host, "port": self.port}


@dataclass(frozen=True)
class Configuration:
    """The durable part of the monitor state."""

    services: tuple[Service, ...] = ()
    interval_secs: int = 10
    icon_set: IconSet = IconSet.DEFAULT


DEFAULT_SERVICES = (
    Service(name="Google DNS", host="8.8.8.8", port="53"),
    Service(name="Localhost HTTP", host="127.0.0.1", port="80"),
)
DEFAULT_INTERVAL_SECS = 10


def default_configuration() -> Configuration:
    return Configuration(
        services=DEFAULT_SERVICES,
        interval_secs=DEFAULT_INTERVAL_SECS,
        icon_set=IconSet.DEFAULT,
    )


# ── Probe results ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProbeResult:
    service: Service
    healthy: bool


@dataclass(frozen=True)
class HealthReport:
    """What a presenter needs to render one refresh."""

    aggregate_healthy: bool
    per_service: tuple[tuple[str, bool], ...] = ()
    checked_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
    )

    @classmethod
    def from_results(cls, results: list[ProbeResult], aggregate_healthy: bool) -> HealthReport:
        return cls(
            aggregate_healthy=aggregate_healthy,
            per_service=tuple((r.service.name, r.healthy) for r in results),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "aggregate_healthy": self.aggregate_healthy,
            "per_service": [
                {"name": name, "healthy": healthy} for name, healthy in self.per_service
            ],
            "checked_at": self.checked_at,
        }
