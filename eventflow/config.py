"""Engine configuration loaded from the environment."""

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.logging import RichHandler

from eventflow.persistence import (
    FilePersistence,
    InMemoryPersistence,
    PersistenceStore,
    SqlitePersistence,
)


class EngineSettings(BaseSettings):
    """Settings for stores, logging and the Temporal adapter."""

    persistence_backend: Literal["memory", "file", "sqlite"] = Field(
        default="memory",
        description="Where interrupted runs are stored",
    )
    persistence_path: Path = Field(
        default=Path(".eventflow"),
        description="Snapshot directory (file) or database file (sqlite)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    heartbeat_interval: float = Field(
        default=5.0,
        gt=0.0,
        description="Seconds between background heartbeats in Temporal activities",
    )

    model_config = SettingsConfigDict(
        env_prefix="EVENTFLOW_",
        env_file=".env",
        extra="ignore",
    )

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        level = getattr(logging, self.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(rich_tracebacks=True)],
        )
        logging.getLogger("eventflow").setLevel(level)


def create_persistence(settings: EngineSettings | None = None) -> PersistenceStore:
    """Build the store selected by ``settings`` (read from the environment if omitted)."""
    settings = settings or EngineSettings()
    if settings.persistence_backend == "file":
        return FilePersistence(settings.persistence_path)
    if settings.persistence_backend == "sqlite":
        return SqlitePersistence(settings.persistence_path)
    return InMemoryPersistence()
