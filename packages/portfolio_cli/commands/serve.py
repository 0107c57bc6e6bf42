"""Run the portfolio FastAPI service."""

from __future__ import annotations

from argparse import _SubParsersAction, Namespace

from ..config import RuntimeConfig

__all__ = ["register", "run"]


def register(subparsers: _SubParsersAction) -> None:
    parser = subparsers.add_parser("serve", help="Run the portfolio FastAPI service")
    parser.add_argument("--host", help="Bind address (default: PORTFOLIO_API_HOST)")
    parser.add_argument("--port", type=int, help="Port (default: PORTFOLIO_API_PORT)")
    parser.set_defaults(handler=run)


def run(args: Namespace, config: RuntimeConfig) -> None:
    from packages.portfolio.api import create_app

    import uvicorn

    settings = config.settings
    app = create_app(settings)
    uvicorn.run(
        app,
        host=getattr(args, "host", None) or settings.API_HOST,
        port=int(getattr(args, "port", None) or settings.API_PORT),
        log_level=config.log_level.lower(),
    )
