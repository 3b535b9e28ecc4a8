"""Runtime settings, read from ``SIMS_*`` environment variables or ``.env``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Repo root when installed in editable mode.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


class Settings(BaseSettings):

    data_dir: Path = Field(default=_DEFAULT_DATA_DIR)
    log_level: str = Field(default="WARNING")
    log_format: str = Field(default="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    # Used as the actor when the CLI is not told who is operating it.
    operator_id: str = Field(default="cli")
    operator_name: str = Field(default="CLI Operator")
    operator_department: str = Field(default="maintenance")

    model_config = SettingsConfigDict(env_prefix="SIMS_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
