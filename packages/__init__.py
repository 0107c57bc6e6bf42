"""Top-level namespace for the portfolio service packages.

Importing any subpackage loads the project's ``.env`` first so settings
classes see the same environment whether started from the CLI or a test.
"""

from __future__ import annotations

from .env import load_env

load_env()

__all__ = ["load_env"]
