from __future__ import annotations

import os
from pathlib import Path

from dotenv import dotenv_values
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"

    # Target discovery — URL_<i> / KEY_<i>, optionally prefixed (e.g. SUPABASE_)
    target_prefix: str = ""

    # Probe request shape: "table" queries a single-row table, "metadata" hits the REST root
    probe_mode: str = "table"
    probe_table: str = "keepalive"
    probe_timeout_seconds: float = 30.0

    # History store
    history_db_path: str = "data/keepalive.db"
    history_key: str = "keepalive:history"
    history_retention_hours: int = 24

    # In-process scheduler (0 = rely on an external cron calling `keepalive run`)
    schedule_interval_hours: float = 6

    @property
    def next_run_hint(self) -> str:
        if self.schedule_interval_hours <= 0:
            return "Runs on external schedule"
        return f"Runs every {self.schedule_interval_hours:g} hours"


def load_target_config(env_file: str | Path = ".env") -> dict[str, str]:
    """Flat configuration namespace for target discovery.

    Process environment wins over values from the .env file.
    """
    config = {k: v for k, v in dotenv_values(env_file).items() if v is not None}
    config.update(os.environ)
    return config


settings = Settings()
