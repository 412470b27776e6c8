from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings

DATA_DIR = Path(__file__).parent.parent / "data"


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Persisted service list / interval / icon set (JSON)
    settings_file: str = str(DATA_DIR / "settings.json")

    # Poller
    probe_timeout: float = 2.0  # seconds per TCP connect attempt
    tick_seconds: float = 1.0  # scheduler wake-up period, independent of the poll interval
    lock_timeout: float = 5.0  # max wait for the health store lock

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"
    console_status: bool = True  # also print the status panel while serving

    @property
    def settings_path(self) -> Path:
        return Path(self.settings_file).expanduser()


settings = Settings()
