"""Settings file — JSON persistence for the durable Configuration.

File shape::

    {
      "services": [{"name": "...", "ip": "...", "port": "..."}],
      "interval_secs": 10,
      "icon_set": "default"
    }

The runtime health flag is never written. Load failures fall back to the
built-in defaults; save failures are logged and reported as ``False``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import LoadFailure, PersistenceFailure
from .models import Configuration, IconSet, Service, default_configuration

logger = logging.getLogger(__name__)


# ── On-disk models ───────────────────────────────────────────────────────────


class PersistedService(BaseModel):
    name: str
    ip: str
    port: str


class PersistedSettings(BaseModel):
    services: list[PersistedService]
    interval_secs: int = Field(ge=0)
    icon_set: str = IconSet.DEFAULT.value

    @field_validator("icon_set", mode="before")
    @classmethod
    def _known_icon_set(cls, value: Any) -> str:
        return IconSet.coerce(value).value

    @classmethod
    def from_config(cls, config: Configuration) -> PersistedSettings:
        return cls(
            services=[
                PersistedService(name=s.name, ip=s.host, port=s.port)
                for s in config.services
            ],
            interval_secs=config.interval_secs,
            icon_set=config.icon_set.value,
        )

    def to_config(self) -> Configuration:
        return Configuration(
            services=tuple(
                Service(name=s.name, host=s.ip, port=s.port) for s in self.services
            ),
            interval_secs=self.interval_secs,
            icon_set=IconSet.coerce(self.icon_set),
        )


# ── Gateway ──────────────────────────────────────────────────────────────────


class SettingsFile:
    """Reads and writes the settings JSON file.

    Writes are serialized by the gateway's own lock (never the store's).
    When a revision is passed to ``save``, writes older than the last one
    on disk are skipped so two racing mutations can't leave the stale one
    as the durable state.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._write_lock = threading.Lock()
        self._written_revision = -1

    def load(self) -> Configuration:
        """Return the persisted Configuration, or the defaults if unavailable."""
        if not self.path.exists():
            logger.info("No settings file at %s — using defaults", self.path)
            return default_configuration()

        try:
            config = self._read()
        except LoadFailure as e:
            logger.error("Failed to load settings from %s: %s — using defaults", self.path, e)
            return default_configuration()

        logger.info(
            "Loaded settings from %s (%d services, interval=%ds)",
            self.path, len(config.services), config.interval_secs,
        )
        return config

    def save(self, config: Configuration, revision: int | None = None) -> bool:
        """Write ``config`` to disk. Returns False if the write failed."""
        with self._write_lock:
            if revision is not None and revision <= self._written_revision:
                logger.debug(
                    "Skipping stale settings write (rev %d <= %d)",
                    revision, self._written_revision,
                )
                return True
            try:
                self._write(config)
            except PersistenceFailure as e:
                logger.error("Failed to save settings to %s: %s", self.path, e)
                return False
            if revision is not None:
                self._written_revision = revision

        logger.debug("Settings saved to %s", self.path)
        return True

    # ── Internals ────────────────────────────────────────────────────────

    def _read(self) -> Configuration:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise LoadFailure(f"read error: {e}") from e
        try:
            return PersistedSettings.model_validate_json(raw).to_config()
        except ValidationError as e:
            raise LoadFailure(f"invalid settings: {e.error_count()} error(s)") from e

    def _write(self, config: Configuration) -> None:
        try:
            payload = json.dumps(
                PersistedSettings.from_config(config).model_dump(), indent=2,
            )
        except (TypeError, ValueError) as e:
            raise PersistenceFailure(f"serialize error: {e}") from e

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceFailure(f"write error: {e}") from e
