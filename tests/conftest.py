"""
Shared pytest fixtures: an in-memory database, a store bound to it, pile
snapshot builders and a TestClient with the database and clock overridden.
"""
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.deps import get_now
from app.database import get_db, init_db
from app.main import app
from app.schemas.compost_schemas import MoistureCategory, TemperatureCategory
from app.services.compost_store import CompostStore
from app.services.harvest_eta_service import MaterialSnapshot, PileSnapshot

NOW = datetime(2025, 6, 1, 12, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db_session):
    return CompostStore(db_session)


@pytest.fixture
def client(engine):
    TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: NOW
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_pile():
    """Build a PileSnapshot relative to NOW."""
    def _make(
        pile_id: int = 1,
        name: str = "Test Pile",
        age_days: float = 10,
        temperature: TemperatureCategory = TemperatureCategory.WARM,
        moisture: MoistureCategory = MoistureCategory.HUMID,
        logged_days_ago=0,
        materials=(),
        turn_days_ago=(),
        harvested: bool = False,
        estimated_harvest_at=None,
        method_envelope=None,
    ) -> PileSnapshot:
        created_at = NOW - timedelta(days=age_days)
        return PileSnapshot(
            id=pile_id,
            name=name,
            created_at=created_at,
            temperature=temperature,
            moisture=moisture,
            last_logged=None if logged_days_ago is None else NOW - timedelta(days=logged_days_ago),
            harvested_at=NOW if harvested else None,
            estimated_harvest_at=estimated_harvest_at,
            method_envelope=method_envelope,
            materials=tuple(
                MaterialSnapshot(brown_amount=b, green_amount=g, is_shredded=s, created_at=created_at)
                for b, g, s in materials
            ),
            turns=tuple(NOW - timedelta(days=d) for d in turn_days_ago),
        )
    return _make
