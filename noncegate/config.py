"""Gate configuration — env-driven via pydantic-settings.

Reads from a .env file and NONCEGATE_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GateConfig(BaseSettings):
    """Runtime configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export NONCEGATE_LOG_LEVEL=DEBUG
        export NONCEGATE_MAX_PENDING_PER_SOURCE=10000
        export NONCEGATE_LEDGER_PATH=/data/ledger.db
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="NONCEGATE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Reorder buffer bound per source; None keeps it unbounded.
    max_pending_per_source: int | None = Field(default=None, ge=1)

    # Reference ledger sink
    ledger_path: Path = Path(".noncegate/ledger.db")

    # Simulation
    simulation_workers: int = Field(default=8, ge=1)

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    @property
    def buffer_bounded(self) -> bool:
        return self.max_pending_per_source is not None


# Module-level singleton — import as `from noncegate.config import config`
config = GateConfig()
