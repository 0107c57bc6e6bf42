"""Staff portfolio query engine and HTTP service."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    # Models
    "Base",
    "Keyword",
    "KeywordGroup",
    "Project",
    "ProjectKeyword",
    "StaffExperience",
    "StaffMember",
    # Schema
    "Entity",
    "SchemaRegistry",
    "default_registry",
    # API
    "create_app",
    "PortfolioSettings",
    # Service
    "PortfolioService",
    "PortfolioDatabase",
    "init_engine",
    # Seeding
    "load_seed",
    "seed_database",
]

_MODULES = {
    "Base": ".models",
    "Keyword": ".models",
    "KeywordGroup": ".models",
    "Project": ".models",
    "ProjectKeyword": ".models",
    "StaffExperience": ".models",
    "StaffMember": ".models",
    "Entity": ".schema",
    "SchemaRegistry": ".schema",
    "default_registry": ".schema",
    "create_app": ".api",
    "PortfolioSettings": ".config",
    "PortfolioService": ".service",
    "PortfolioDatabase": ".service",
    "init_engine": ".service",
    "load_seed": ".seed",
    "seed_database": ".seed",
}


def __getattr__(name: str) -> Any:  # pragma: no cover - thin import shim
    if name not in _MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    value = getattr(import_module(_MODULES[name], __name__), name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:  # pragma: no cover - introspection helper
    return sorted(__all__)
