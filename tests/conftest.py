"""
Shared fixtures: an in-memory ledger for unit tests and a FastAPI client
backed by a throwaway SQLite database for API tests.
"""
import os
from datetime import date
from decimal import Decimal

os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import warehouse.models  # noqa: F401
from warehouse.costing import ConsumptionEngine, LayerLedger, ProfitReporter, ShortfallPolicy
from warehouse.db.database import Base, get_db
from warehouse.main import app


@pytest.fixture
def ledger():
    return LayerLedger()


@pytest.fixture
def engine(ledger):
    return ConsumptionEngine(ledger, ShortfallPolicy.degrade(Decimal("50.00")))


@pytest.fixture
def reporter(ledger, engine):
    return ProfitReporter(ledger, engine)


@pytest.fixture
def two_layer_ledger(ledger):
    """SKU-A: 5 units at 10 on day 1, 5 units at 20 on day 2."""
    ledger.add_layer("SKU-A", "PO-1", 5, Decimal("10"), date(2026, 1, 1))
    ledger.add_layer("SKU-A", "PO-2", 5, Decimal("20"), date(2026, 1, 2))
    return ledger


@pytest.fixture
def db_engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
