"""Helpers for loading `.env` files for the portfolio service."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Union

from dotenv import find_dotenv, load_dotenv

PathLike = Union[str, Path]
ENV_FILE_VARIABLE = "PORTFOLIO_ENV_FILE"
_LOADED: bool | None = None


def candidate_env_files(extra_paths: Iterable[PathLike] | None = None) -> List[Path]:
    """Existing env files in load order, without duplicates.

    Explicit paths come first, then ``$PORTFOLIO_ENV_FILE``, the nearest
    ``.env`` above the working directory and finally the repository ``.env``.
    """

    raw: List[PathLike] = list(extra_paths or [])
    if os.environ.get(ENV_FILE_VARIABLE):
        raw.append(os.environ[ENV_FILE_VARIABLE])
    found = find_dotenv(usecwd=True)
    if found:
        raw.append(found)
    raw.append(Path(__file__).resolve().parent.parent / ".env")

    seen: List[Path] = []
    for item in raw:
        path = Path(item).expanduser()
        if not path.exists():
            continue
        resolved = path.resolve()
        if resolved not in seen:
            seen.append(resolved)
    return seen


def load_env(*, override: bool = False, extra_paths: Iterable[PathLike] | None = None) -> bool:
    """Load environment variables from `.env` files if they exist.

    Returns ``True`` if any file was loaded. Repeated calls are no-ops that
    return the first call's result unless *override* or *extra_paths* is given.
    """

    global _LOADED

    if _LOADED is not None and not override and extra_paths is None:
        return _LOADED

    loaded_any = False
    for path in candidate_env_files(extra_paths):
        loaded_any = load_dotenv(path, override=override) or loaded_any

    if not override:
        _LOADED = loaded_any
    return loaded_any
