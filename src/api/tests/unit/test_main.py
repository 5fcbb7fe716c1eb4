"""Unit tests for main FastAPI application configuration."""

from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import status
from fastapi.testclient import TestClient

import main
from infrastructure.database.exceptions import MigrationError
from tenancy.application.services import CredentialResolver, LookupIndexMaintainer
from tenancy.dependencies import get_credential_resolver, get_lookup_index
from tenancy.domain.value_objects import CompanyId
from tenancy.ports.exceptions import IsolationViolationError, TenantUnavailableError


@pytest.fixture
def client(monkeypatch):
    """TestClient over the real app with lifespan side effects replaced."""
    monkeypatch.setattr(main, "configure_logging", Mock())
    monkeypatch.setattr(main, "close_database_connections", AsyncMock())
    redis_client = Mock()
    redis_client.aclose = AsyncMock()
    monkeypatch.setattr(main, "get_redis_client", Mock(return_value=redis_client))

    with TestClient(main.app, raise_server_exceptions=False) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}


def test_shutdown_closes_connections(monkeypatch):
    close = AsyncMock()
    redis_client = Mock()
    redis_client.aclose = AsyncMock()
    monkeypatch.setattr(main, "configure_logging", Mock())
    monkeypatch.setattr(main, "close_database_connections", close)
    monkeypatch.setattr(main, "get_redis_client", Mock(return_value=redis_client))

    with TestClient(main.app):
        pass

    close.assert_awaited_once()
    redis_client.aclose.assert_awaited_once()


class TestExceptionHandlers:
    """Failures surfacing from services map to fixed responses."""

    def _lookup_raising(self, error: Exception) -> AsyncMock:
        index = AsyncMock(spec=LookupIndexMaintainer)
        index.lookup_tenant_for_company.side_effect = error
        return index

    def test_unavailable_tenant_returns_503(self, client):
        index = self._lookup_raising(TenantUnavailableError("01A"))
        main.app.dependency_overrides[get_lookup_index] = lambda: index

        response = client.get(f"/companies/{CompanyId.generate().value}/tenant")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    def test_isolation_violation_returns_opaque_500(self, client):
        index = self._lookup_raising(IsolationViolationError("01C1", "01C2", "processes"))
        main.app.dependency_overrides[get_lookup_index] = lambda: index

        response = client.get(f"/companies/{CompanyId.generate().value}/tenant")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"detail": "Internal server error"}
        assert "01C2" not in response.text

    def test_migration_error_returns_503(self, client):
        resolver = AsyncMock(spec=CredentialResolver)
        resolver.authenticate.side_effect = MigrationError("script failed")
        main.app.dependency_overrides[get_credential_resolver] = lambda: resolver

        response = client.post(
            "/auth/login", json={"email": "ana@acme.com", "password": "x"}
        )

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
