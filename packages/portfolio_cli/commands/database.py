"""Create the schema and load seed data."""

from __future__ import annotations

from argparse import _SubParsersAction, Namespace

import structlog

from ..config import RuntimeConfig

__all__ = ["register", "run_init", "run_seed"]

logger = structlog.get_logger(__name__)


def register(subparsers: _SubParsersAction) -> None:
    init_parser = subparsers.add_parser("init-db", help="Create the portfolio tables")
    init_parser.add_argument(
        "--drop", action="store_true", help="Drop existing tables before creating them"
    )
    init_parser.set_defaults(handler=run_init)

    seed_parser = subparsers.add_parser("seed", help="Load a JSON seed document")
    seed_parser.add_argument(
        "--file", dest="seed_file", help="Seed document path (default: PORTFOLIO_SEED_FILE)"
    )
    seed_parser.add_argument(
        "--reset", action="store_true", help="Drop and recreate all tables before loading"
    )
    seed_parser.set_defaults(handler=run_seed)


def run_init(args: Namespace, config: RuntimeConfig) -> None:
    from packages.portfolio.models import Base
    from packages.portfolio.service import init_engine

    engine = init_engine(config.settings.model_copy(update={"CREATE_TABLES": False}))
    if getattr(args, "drop", False):
        Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    logger.info("tables_created", tables=sorted(Base.metadata.tables))


def run_seed(args: Namespace, config: RuntimeConfig) -> None:
    from packages.portfolio.models import Base
    from packages.portfolio.seed import load_seed, seed_database
    from packages.portfolio.service import PortfolioDatabase, init_engine

    path = getattr(args, "seed_file", None) or config.settings.SEED_FILE
    if not path:
        raise SystemExit("No seed file given; pass --file or set PORTFOLIO_SEED_FILE")

    engine = init_engine(config.settings)
    if getattr(args, "reset", False):
        Base.metadata.drop_all(engine)
        Base.metadata.create_all(engine)
    database = PortfolioDatabase(engine=engine)
    with database.session() as session:
        counts = seed_database(session, load_seed(path))
    print(", ".join(f"{section}: {count}" for section, count in counts.items()))
