"""Shared fixtures: a small portfolio with hand-computed totals.

``fixtures/portfolio_seed.json`` inserts bookings in this order, so
``experienceID`` runs 1..5:

    1. 22398800 / 37704  3730.75 h
    2. 22398800 / 29952   120.5 h
    3. 25397800 / 56876   200   h
    4. 30000100 / 37704    50   h   (confidential project)
    5. 30000100 / 56876    10   h   (confidential project)

41000200 has no bookings; 25397800 / 37704 is deliberately unbooked.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from packages.portfolio.api import create_app
from packages.portfolio.config import PortfolioSettings
from packages.portfolio.seed import load_seed, seed_database
from packages.portfolio.service import PortfolioDatabase, PortfolioService, init_engine

SEED_PATH = Path(__file__).resolve().parent / "fixtures" / "portfolio_seed.json"


@pytest.fixture()
def seed_path() -> Path:
    return SEED_PATH


@pytest.fixture()
def seed_document() -> Dict[str, Any]:
    return load_seed(SEED_PATH)


@pytest.fixture()
def settings() -> PortfolioSettings:
    return PortfolioSettings(DATABASE_URL="sqlite+pysqlite:///:memory:", CREATE_TABLES=True)


@pytest.fixture()
def database(settings: PortfolioSettings, seed_document: Dict[str, Any]) -> Iterator[PortfolioDatabase]:
    engine = init_engine(settings)
    database = PortfolioDatabase(engine=engine)
    with database.session() as session:
        seed_database(session, seed_document)
    yield database
    engine.dispose()


@pytest.fixture()
def session(database: PortfolioDatabase) -> Iterator[Session]:
    with database.session() as session:
        yield session


@pytest.fixture()
def service(session: Session) -> PortfolioService:
    return PortfolioService(session=session)


@pytest.fixture()
def client(settings: PortfolioSettings, seed_document: Dict[str, Any]) -> Iterator[TestClient]:
    app = create_app(settings)
    with app.state.database.session() as session:
        seed_database(session, seed_document)
    with TestClient(app) as test_client:
        yield test_client
