"""Pytest configuration and shared fixtures for the wellness dashboard API."""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wellness_dashboard.db.base import get_db
from wellness_dashboard.db.models import Base
from wellness_dashboard.main import app
from tests.utils.test_data import StoreDataFactory


# One in-memory database shared by every thread of a test
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="function")
def test_engine():
    """Fresh in-memory SQLite engine with the reporting tables created."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def temp_db(test_engine) -> Generator[Session, None, None]:
    """Database session for arranging test data."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(temp_db: Session) -> StoreDataFactory:
    """Factory that writes clinic rows into the test database."""
    return StoreDataFactory(temp_db)


@pytest.fixture
def test_client(test_engine) -> Generator[TestClient, None, None]:
    """Test client whose requests each get their own session on the test engine."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_db, None)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "reports: Report endpoint tests")
