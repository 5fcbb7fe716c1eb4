"""Unit tests for the tessera-admin batch commands."""

from __future__ import annotations

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, Mock

import pytest

from infrastructure.database.server import DatabaseServer
from infrastructure.locks import JobAlreadyRunningError, JobLock
from tenancy.application.services import (
    DatabaseLifecycleManager,
    DatabasePoolProvisioner,
    LookupIndexMaintainer,
    TenantProvisioningService,
)
from tenancy.application.value_objects import BackfillSummary, BatchSummary
from tenancy.dependencies import TenancyServices
from tenancy.domain.aggregates import Tenant
from tenancy.domain.value_objects import TenantId
from tenancy.presentation import cli


@pytest.fixture
def held_locks():
    return []


@pytest.fixture
def mock_job_lock(held_locks):
    lock = Mock(spec=JobLock)

    @asynccontextmanager
    async def hold(name):
        held_locks.append(name)
        yield

    lock.hold = Mock(side_effect=hold)
    return lock


@pytest.fixture
def mock_services():
    services = Mock(spec=TenancyServices)
    services.pool = AsyncMock(spec=DatabasePoolProvisioner)
    services.pool.replenish.return_value = 3
    services.pool.provision.return_value = 2
    services.pool.count_available.return_value = 5
    services.lifecycle = AsyncMock(spec=DatabaseLifecycleManager)
    services.lifecycle.apply_migrations_to_all.return_value = BatchSummary()
    services.lookup_index = AsyncMock(spec=LookupIndexMaintainer)
    services.lookup_index.bulk_repopulate.return_value = BackfillSummary()
    services.provisioning = AsyncMock(spec=TenantProvisioningService)
    return services


@pytest.fixture
def mock_server():
    server = Mock(spec=DatabaseServer)
    server.list_databases = AsyncMock(return_value=["tenant_a", "tenant_b"])
    return server


@pytest.fixture(autouse=True)
def patched_cli(monkeypatch, mock_job_lock, mock_services, mock_server):
    """Replace every connection-creating dependency of the CLI."""
    session = AsyncMock()
    session.__aenter__.return_value = session
    session.__aexit__.return_value = None

    monkeypatch.setattr(cli, "configure_logging", Mock())
    monkeypatch.setattr(cli, "get_job_lock", Mock(return_value=mock_job_lock))
    monkeypatch.setattr(cli, "get_central_sessionmaker", Mock(return_value=lambda: session))
    monkeypatch.setattr(cli, "get_cache_store", Mock())
    monkeypatch.setattr(cli, "build_tenancy_services", Mock(return_value=mock_services))
    monkeypatch.setattr(cli, "get_database_server", Mock(return_value=mock_server))
    monkeypatch.setattr(cli, "close_database_connections", AsyncMock())


class TestParseArgs:
    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            cli.parse_args([])

    def test_backfill_flags(self):
        args = cli.parse_args(["backfill-lookups", "--tenant-id", "01X", "--force"])

        assert args.command == "backfill-lookups"
        assert args.tenant_id == "01X"
        assert args.force is True


class TestMain:
    """Tests for exit codes and command dispatch."""

    def test_pool_replenish_tops_up(self, mock_services, held_locks):
        assert cli.main(["pool-replenish"]) == cli.EXIT_OK

        mock_services.pool.replenish.assert_awaited_once()
        assert held_locks == ["pool-replenish"]

    def test_pool_replenish_with_count(self, mock_services):
        assert cli.main(["pool-replenish", "--count", "2"]) == cli.EXIT_OK

        mock_services.pool.provision.assert_awaited_once_with(2)
        mock_services.pool.replenish.assert_not_awaited()

    def test_migrate_single_tenant(self, mock_services):
        tenant_id = TenantId.generate()

        assert cli.main(["migrate", "--tenant-id", tenant_id.value]) == cli.EXIT_OK

        mock_services.lifecycle.apply_migrations_to_all.assert_awaited_once_with(tenant_id)

    def test_tenant_failures_do_not_fail_the_run(self, mock_services):
        summary = BatchSummary()
        summary.record_success("01A")
        summary.record_failure("01B", RuntimeError("unreachable"))
        mock_services.lifecycle.apply_migrations_to_all.return_value = summary

        assert cli.main(["migrate"]) == cli.EXIT_OK

    def test_backfill_passes_force(self, mock_services):
        assert cli.main(["backfill-lookups", "--force"]) == cli.EXIT_OK

        mock_services.lookup_index.bulk_repopulate.assert_awaited_once_with(
            None, force=True
        )

    def test_deactivate_tenant(self, mock_services, held_locks):
        tenant = Tenant.create("Acme", "111", database_prefix="tenant_")
        mock_services.provisioning.deactivate_tenant.return_value = tenant

        assert cli.main(["deactivate-tenant", tenant.id.value]) == cli.EXIT_OK

        mock_services.provisioning.deactivate_tenant.assert_awaited_once_with(tenant.id)
        assert held_locks == ["deactivate-tenant"]

    def test_held_lock_exits_2(self, mock_job_lock, mock_services):
        @asynccontextmanager
        async def busy(name):
            raise JobAlreadyRunningError(name)
            yield

        mock_job_lock.hold.side_effect = busy

        assert cli.main(["migrate"]) == cli.EXIT_ALREADY_RUNNING
        mock_services.lifecycle.apply_migrations_to_all.assert_not_awaited()

    def test_unexpected_error_exits_1_and_closes_connections(self, mock_services):
        mock_services.lookup_index.bulk_repopulate.side_effect = RuntimeError("boom")

        assert cli.main(["backfill-lookups"]) == cli.EXIT_FAILURE
        cli.close_database_connections.assert_awaited_once()

    def test_invalid_tenant_id_exits_1(self):
        assert cli.main(["migrate", "--tenant-id", "nope"]) == cli.EXIT_FAILURE

    def test_list_databases_takes_no_lock(self, mock_server, held_locks):
        assert cli.main(["list-databases", "--prefix", "tenant_"]) == cli.EXIT_OK

        mock_server.list_databases.assert_awaited_once_with(prefix="tenant_")
        assert held_locks == []
