"""Runtime configuration shared by CLI command handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from packages.env import load_env
from packages.portfolio.config import PortfolioSettings


@dataclass(frozen=True)
class RuntimeConfig:
    """Resolved configuration for command handlers."""

    settings: PortfolioSettings
    log_level: str


def bootstrap() -> None:
    """Load environment variables once."""

    load_env()


def build_runtime_config(*, log_level: str, database_url: Optional[str] = None) -> RuntimeConfig:
    """Construct a :class:`RuntimeConfig`, applying the ``--db-url`` override."""

    settings = PortfolioSettings()
    if database_url:
        settings = settings.model_copy(update={"DATABASE_URL": database_url})
    return RuntimeConfig(settings=settings, log_level=log_level)
