"""Tests for the JSON settings file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from labwatch.health.models import Configuration, IconSet, Service, default_configuration
from labwatch.health.persistence import PersistedSettings, SettingsFile


@pytest.fixture
def custom_config() -> Configuration:
    return Configuration(
        services=(
            Service(name="NAS", host="192.168.1.10", port="445"),
            Service(name="NAS", host="192.168.1.10", port="445"),  # duplicates allowed
            Service(name="Router", host="::1", port="not-a-port"),
        ),
        interval_secs=600,
        icon_set=IconSet.ALT,
    )


class TestLoad:
    def test_missing_file_gives_defaults(self, settings_file: SettingsFile) -> None:
        assert settings_file.load() == default_configuration()

    def test_roundtrip(self, settings_file: SettingsFile, custom_config: Configuration) -> None:
        assert settings_file.save(custom_config) is True
        assert settings_file.load() == custom_config

    def test_file_shape(self, settings_file: SettingsFile, custom_config: Configuration) -> None:
        settings_file.save(custom_config)
        raw = json.loads(settings_file.path.read_text(encoding="utf-8"))
        assert set(raw) == {"services", "interval_secs", "icon_set"}
        assert raw["services"][0] == {"name": "NAS", "ip": "192.168.1.10", "port": "445"}
        assert raw["interval_secs"] == 600
        assert raw["icon_set"] == "alt"

    def test_health_flag_never_written(self, settings_file: SettingsFile) -> None:
        settings_file.save(default_configuration())
        text = settings_file.path.read_text(encoding="utf-8")
        assert "healthy" not in text

    def test_malformed_json_falls_back(
        self, settings_file: SettingsFile, caplog: pytest.LogCaptureFixture,
    ) -> None:
        settings_file.path.write_text("{not json", encoding="utf-8")
        with caplog.at_level(logging.ERROR, logger="labwatch.health.persistence"):
            config = settings_file.load()
        assert config == default_configuration()
        assert "Failed to load settings" in caplog.text

    def test_wrong_types_fall_back(self, settings_file: SettingsFile) -> None:
        settings_file.path.write_text(
            json.dumps({"services": "nope", "interval_secs": 5}), encoding="utf-8",
        )
        assert settings_file.load() == default_configuration()

    def test_invalid_utf8_falls_back(
        self, settings_file: SettingsFile, caplog: pytest.LogCaptureFixture,
    ) -> None:
        settings_file.path.write_bytes(
            b'{"services": [], "interval_secs": 5, "icon_set": "\xff\xfe"}',
        )
        with caplog.at_level(logging.ERROR, logger="labwatch.health.persistence"):
            config = settings_file.load()
        assert config == default_configuration()
        assert "Failed to load settings" in caplog.text

    def test_negative_interval_falls_back(self, settings_file: SettingsFile) -> None:
        settings_file.path.write_text(
            json.dumps({"services": [], "interval_secs": -1}), encoding="utf-8",
        )
        assert settings_file.load() == default_configuration()

    def test_missing_icon_set_defaults(self, settings_file: SettingsFile) -> None:
        settings_file.path.write_text(
            json.dumps({"services": [], "interval_secs": 5}), encoding="utf-8",
        )
        config = settings_file.load()
        assert config.icon_set is IconSet.DEFAULT
        assert config.services == ()
        assert config.interval_secs == 5

    def test_unknown_icon_set_defaults(self, settings_file: SettingsFile) -> None:
        settings_file.path.write_text(
            json.dumps({"services": [], "interval_secs": 5, "icon_set": "neon"}),
            encoding="utf-8",
        )
        assert settings_file.load().icon_set is IconSet.DEFAULT


class TestSave:
    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        sf = SettingsFile(tmp_path / "nested" / "dir" / "settings.json")
        assert sf.save(default_configuration()) is True
        assert sf.path.exists()

    def test_write_failure_returns_false(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory", encoding="utf-8")
        sf = SettingsFile(blocker / "settings.json")
        assert sf.save(default_configuration()) is False

    def test_replace_failure_leaves_previous_file(
        self, settings_file: SettingsFile, custom_config: Configuration,
    ) -> None:
        settings_file.save(default_configuration())
        before = settings_file.path.read_text(encoding="utf-8")

        with patch("labwatch.health.persistence.os.replace", side_effect=OSError("disk full")):
            assert settings_file.save(custom_config) is False

        assert settings_file.path.read_text(encoding="utf-8") == before
        leftovers = [p for p in settings_file.path.parent.iterdir() if p.suffix == ".tmp"]
        assert leftovers == []

    def test_stale_revision_skipped(
        self, settings_file: SettingsFile, custom_config: Configuration,
    ) -> None:
        assert settings_file.save(custom_config, revision=5) is True
        assert settings_file.save(default_configuration(), revision=4) is True
        assert settings_file.load() == custom_config

    def test_newer_revision_written(
        self, settings_file: SettingsFile, custom_config: Configuration,
    ) -> None:
        settings_file.save(default_configuration(), revision=1)
        settings_file.save(custom_config, revision=2)
        assert settings_file.load() == custom_config


class TestPersistedSettings:
    def test_from_and_to_config(self, custom_config: Configuration) -> None:
        model = PersistedSettings.from_config(custom_config)
        assert model.services[2].ip == "::1"
        assert model.to_config() == custom_config
