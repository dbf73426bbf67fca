"""Integration tests for error responses."""

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wellness_dashboard.core.config import settings
from wellness_dashboard.db.base import get_db, get_engine, get_session_factory
from wellness_dashboard.main import app
from tests.utils.assertions import TestAssertions

BASE = "/api/v1/wellness"


@pytest.fixture
def unreachable_store_client():
    """Client whose sessions point at a database without the reporting tables."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    SessionLocal = sessionmaker(bind=engine)

    def override_get_db():
        db = SessionLocal()
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
        engine.dispose()


@pytest.fixture
def unconfigured_client(monkeypatch):
    """Client running against the real session dependency with no DATABASE_URL."""
    monkeypatch.setattr(settings, "database_url", None)
    get_engine.cache_clear()
    get_session_factory.cache_clear()
    try:
        with TestClient(app) as client:
            yield client
    finally:
        get_engine.cache_clear()
        get_session_factory.cache_clear()


@pytest.mark.integration
class TestRequestValidation:
    """Integration tests for invalid query parameters."""

    @pytest.mark.parametrize("path", ["sales-trend", "daily-registration", "daily-closing", "occupancy-rate"])
    def test_start_after_end_is_rejected(self, test_client, path):
        response = test_client.get(f"{BASE}/{path}", params={"startDate": "2024-02-01", "endDate": "2024-01-01"})

        TestAssertions.assert_error_response(response, status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_DATE")
        error = response.json()["error"]
        assert error["field"] == "startDate"
        assert error["retryable"] is False

    def test_malformed_date_is_rejected(self, test_client):
        response = test_client.get(f"{BASE}/sales-trend", params={"startDate": "2024-13-01", "endDate": "2024-01-01"})

        TestAssertions.assert_error_response(response, status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR")
        assert any("startDate" in e["field"] for e in response.json()["error"]["errors"])

    def test_unknown_route(self, test_client):
        response = test_client.get(f"{BASE}/does-not-exist")

        TestAssertions.assert_error_response(response, status.HTTP_404_NOT_FOUND, "RESOURCE_NOT_FOUND")

    def test_request_id_is_echoed(self, test_client):
        response = test_client.get(
            f"{BASE}/sales-trend",
            params={"startDate": "2024-02-01", "endDate": "2024-01-01"},
            headers={"X-Request-ID": "req-123"},
        )

        assert response.headers["X-Request-ID"] == "req-123"
        assert response.json()["error"]["request_id"] == "req-123"


@pytest.mark.integration
class TestUpstreamFailures:
    """Integration tests for data store failures."""

    @pytest.mark.parametrize(
        "path", ["latest-date", "daily-sales", "sales-trend", "daily-registration", "daily-closing", "occupancy-rate"]
    )
    def test_query_failure_is_retryable_503(self, unreachable_store_client, path):
        response = unreachable_store_client.get(f"{BASE}/{path}")

        TestAssertions.assert_error_response(response, status.HTTP_503_SERVICE_UNAVAILABLE, "DATABASE_ERROR")
        assert response.json()["error"]["retryable"] is True

    def test_database_health_reports_outage(self, unreachable_store_client):
        response = unreachable_store_client.get("/api/v1/health/database")

        TestAssertions.assert_error_response(response, status.HTTP_503_SERVICE_UNAVAILABLE)

    def test_missing_configuration_is_fatal(self, unconfigured_client):
        response = unconfigured_client.get(f"{BASE}/latest-date")

        TestAssertions.assert_error_response(
            response, status.HTTP_500_INTERNAL_SERVER_ERROR, "CONFIGURATION_ERROR"
        )
        assert response.json()["error"]["retryable"] is False
