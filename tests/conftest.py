"""
tests/conftest.py

Shared fixtures: an in-memory SQLite store per test and a FastAPI
TestClient wired to it. Upload builders live in tests/helpers.py.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import warehouse_server.app.models  # noqa: F401
from warehouse_server.app.api import app
from warehouse_server.app.db import Base, get_db, make_engine


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def item_payload():
    return {
        "tracking_code": "TRK-001",
        "sender_name": "Nino",
        "recipient_name": "Giorgi Beridze",
        "phone": "995555123456",
        "weight": "2.5",
        "city": "Tbilisi",
    }
