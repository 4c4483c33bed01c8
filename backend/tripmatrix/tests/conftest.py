"""
Shared fixtures: in-memory database, API client and auth tokens.
"""
import os

# Must be set before the application settings are imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import tripmatrix.models  # noqa: F401
from tripmatrix.core.security import create_access_token
from tripmatrix.db.base import Base
from tripmatrix.db.session import get_db
from tripmatrix.main import app

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    """Fresh schema per test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    """API client wired to the test database."""
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(uid: str) -> dict:
    """Bearer header for a user id."""
    return {"Authorization": f"Bearer {create_access_token({'sub': uid})}"}


@pytest.fixture
def alice_headers():
    return auth_headers("alice")


@pytest.fixture
def bob_headers():
    return auth_headers("bob")


@pytest.fixture
def mallory_headers():
    """A user who belongs to no trip."""
    return auth_headers("mallory")


@pytest.fixture
def trip_id(client, alice_headers):
    """Private trip created by alice, with bob as member and carol as guest."""
    response = client.post(
        "/api/trips",
        json={"title": "Lisbon", "guests": [{"guestName": "carol"}]},
        headers=alice_headers,
    )
    assert response.status_code == 201
    trip_id = response.json()["data"]["id"]

    response = client.post(
        f"/api/trips/{trip_id}/participants",
        json={"uid": "bob"},
        headers=alice_headers,
    )
    assert response.status_code == 201
    return trip_id
