"""Command registrations for the portfolio CLI."""

from __future__ import annotations

from argparse import _SubParsersAction

from . import database, serve

__all__ = ["register"]


def register(subparsers: _SubParsersAction) -> None:
    """Register all CLI commands with *subparsers*."""

    serve.register(subparsers)
    database.register(subparsers)
