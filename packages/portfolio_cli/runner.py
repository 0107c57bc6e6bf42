"""Command-line entry point for the staff portfolio service."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Callable, List, Optional

import structlog

from . import commands
from .config import RuntimeConfig, bootstrap, build_runtime_config

CommandHandler = Callable[[argparse.Namespace, RuntimeConfig], None]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portfolio-cli",
        description="Serve and manage the staff portfolio database.",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("PORTFOLIO_LOG_LEVEL", "INFO"),
        help="Logging level (CRITICAL, ERROR, WARNING, INFO, DEBUG). Default: INFO",
    )
    parser.add_argument(
        "--db-url",
        dest="db_url",
        help="Override the database URL (env: PORTFOLIO_DATABASE_URL)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=os.getenv("PORTFOLIO_JSON_LOGS", "").lower() in {"1", "true", "yes"},
        help="Emit one JSON object per log line",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    commands.register(subparsers)
    return parser


def configure_logging(level_name: str, *, json_logs: bool = False) -> None:
    """Route structlog and stdlib records (uvicorn, SQLAlchemy) through one handler."""

    level_value = getattr(logging, level_name.upper(), logging.INFO)
    timestamper = structlog.processors.TimeStamper(fmt="iso", key="timestamp")

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_logs
        else structlog.processors.KeyValueRenderer(
            key_order=["timestamp", "level", "logger", "event"],
            sort_keys=True,
        )
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            timestamper,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level_value)

    logging.basicConfig(level=level_value, handlers=[handler], force=True)


def main(argv: Optional[List[str]] = None) -> None:
    bootstrap()
    parser = build_parser()
    args = parser.parse_args(argv)

    level_name = str(getattr(args, "log_level", "INFO")).upper()
    configure_logging(level_name, json_logs=bool(getattr(args, "json_logs", False)))

    handler: CommandHandler = getattr(args, "handler", None)
    if not callable(handler):
        parser.error("Command handler missing")

    runtime = build_runtime_config(log_level=level_name, database_url=getattr(args, "db_url", None))
    handler(args, runtime)


if __name__ == "__main__":  # pragma: no cover
    main()
