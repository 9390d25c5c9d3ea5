"""
Shared fixtures: a file-backed SQLite database configured like production
(BEGIN IMMEDIATE on every transaction), the same demo rows loaded into the
in-memory fake store, and a FastAPI TestClient wired to the test database.
"""

import os

# Settings are read at import time by medistock.core.*
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["REDIS_URL"] = ""
os.environ.pop("TERMINAL_API_KEY", None)
os.environ.pop("RESERVATION_CLAMP_QUANTITIES", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from medistock.core.database import build_engine, get_db
from medistock.core.security import create_access_token
from medistock.main import app
from medistock.models import Base, InventoryItem
from medistock.repositories.sqlalchemy_store import SqlAlchemyReservationStore
from tests.demo_data import ANA, CARLOS, INVENTORY, demo_rows
from tests.fakes import InMemoryStore


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'medistock.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


@pytest.fixture
def seeded(session_factory):
    medicines, dispensers, patients, prescriptions = demo_rows()
    with session_factory() as db:
        db.add_all(medicines + dispensers + patients)
        db.flush()
        db.add_all(
            [InventoryItem(dispenser_id=did, medicine_id=mid, units=units) for did, mid, units in INVENTORY]
        )
        db.add_all(prescriptions)
        db.commit()


@pytest.fixture
def db(session_factory, seeded):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def sql_store(db):
    return SqlAlchemyReservationStore(db)


@pytest.fixture
def memory_store():
    store = InMemoryStore()
    medicines, dispensers, patients, prescriptions = demo_rows()
    for medicine in medicines:
        store.put_medicine(medicine)
    for dispenser in dispensers:
        store.put_dispenser(dispenser)
    for patient in patients:
        store.put_patient(patient)
    for did, mid, units in INVENTORY:
        store.put_inventory(did, mid, units)
    for prescription in prescriptions:
        store.put_prescription(prescription)
    return store


@pytest.fixture(params=["sqlalchemy", "memory"])
def store(request):
    """Service tests run against the SQLAlchemy store and the fake."""
    if request.param == "sqlalchemy":
        return request.getfixturevalue("sql_store")
    return request.getfixturevalue("memory_store")


# =============================================================================
# HTTP
# =============================================================================

@pytest.fixture
def client(session_factory, seeded):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def ana_headers():
    return {"Authorization": f"Bearer {create_access_token(subject=ANA)}"}


@pytest.fixture
def carlos_headers():
    return {"Authorization": f"Bearer {create_access_token(subject=CARLOS)}"}
