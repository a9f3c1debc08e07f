"""
Sideloader Configuration

Settings can be overridden via environment variables with the SIDELOADER_
prefix (e.g., SIDELOADER_PLUGINS_DIR, SIDELOADER_MAX_CONCURRENT_PROBES).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sideloader.paths import paths


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SIDELOADER_")

    plugins_dir: Path = Field(default_factory=lambda: paths.plugins)
    state_file: Path = Field(default_factory=lambda: paths.state)

    max_concurrent_probes: int = Field(
        default=8,
        description="Maximum update probes in flight at once",
        ge=1,
        le=64,
    )

    probe_timeout: float = Field(
        default=30.0,
        description="Seconds before a single update probe counts as failed",
        gt=0,
    )

    probe_backend: Literal["git", "github"] = "git"
    github_token: Optional[str] = None

    host: str = "127.0.0.1"
    port: int = 8009
