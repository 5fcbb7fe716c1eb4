"""Unit tests for domain probes.

Tests that domain probes correctly capture domain events
following the Domain Oriented Observability pattern.
"""

from unittest.mock import MagicMock

import structlog

from infrastructure.observability import ObservationContext
from infrastructure.observability.probes import (
    DefaultCacheProbe,
    DefaultConnectionProbe,
    DefaultDatabaseServerProbe,
    DefaultJobLockProbe,
)
from infrastructure.observability.startup_probe import DefaultStartupProbe
from tenancy.application.observability import (
    DefaultContextSwitcherProbe,
    DefaultCredentialResolverProbe,
    DefaultLookupIndexProbe,
    DefaultPoolProvisionerProbe,
    DefaultTenantProvisioningProbe,
)
from tenancy.infrastructure.observability import (
    DefaultIsolationProbe,
    DefaultMigrationRunnerProbe,
)


def _logger() -> MagicMock:
    return MagicMock(spec=structlog.stdlib.BoundLogger)


class TestConnectionProbe:
    """Tests for ConnectionProbe protocol and implementation."""

    def test_default_probe_creates_with_default_logger(self):
        """Default probe should work without explicit logger."""
        probe = DefaultConnectionProbe()
        assert probe._logger is not None

    def test_default_probe_accepts_custom_logger(self):
        """Default probe should accept a custom logger."""
        mock_logger = _logger()
        probe = DefaultConnectionProbe(logger=mock_logger)
        assert probe._logger is mock_logger

    def test_engine_disposed_logs_debug(self):
        mock_logger = _logger()
        probe = DefaultConnectionProbe(logger=mock_logger)

        probe.engine_disposed("tenant_x")

        mock_logger.debug.assert_called_once_with(
            "database_engine_disposed", database="tenant_x"
        )

    def test_with_context_includes_context_metadata(self):
        """Bound context should be included with every event."""
        mock_logger = _logger()
        context = ObservationContext(request_id="req-1", tenant_id="01TENANT")
        probe = DefaultConnectionProbe(logger=mock_logger).with_context(context)

        probe.pool_closed()

        mock_logger.info.assert_called_once_with(
            "connection_pool_closed", request_id="req-1", tenant_id="01TENANT"
        )


class TestDatabaseServerProbe:
    def test_database_renamed_logs_both_names(self):
        mock_logger = _logger()
        probe = DefaultDatabaseServerProbe(logger=mock_logger)

        probe.database_renamed("tenant_pool_a", "tenant_b")

        mock_logger.info.assert_called_once_with(
            "database_renamed", old_name="tenant_pool_a", new_name="tenant_b"
        )

    def test_operation_failed_logs_error(self):
        mock_logger = _logger()
        probe = DefaultDatabaseServerProbe(logger=mock_logger)

        probe.database_operation_failed("create", "tenant_b", Exception("denied"))

        mock_logger.error.assert_called_once_with(
            "database_operation_failed",
            operation="create",
            database="tenant_b",
            error="denied",
        )


class TestCacheAndLockProbes:
    def test_cache_unavailable_logs_warning(self):
        mock_logger = _logger()
        probe = DefaultCacheProbe(logger=mock_logger)

        probe.cache_unavailable("get", "tessera:company:x:tenant", Exception("down"))

        mock_logger.warning.assert_called_once_with(
            "cache_unavailable",
            operation="get",
            key="tessera:company:x:tenant",
            error="down",
        )

    def test_lock_busy_logs_warning(self):
        mock_logger = _logger()
        probe = DefaultJobLockProbe(logger=mock_logger)

        probe.lock_busy("pool-replenish")

        mock_logger.warning.assert_called_once_with(
            "job_already_running", lock="pool-replenish"
        )


class TestStartupProbe:
    def test_application_started_logs_mode(self):
        mock_logger = _logger()
        probe = DefaultStartupProbe(logger=mock_logger)

        probe.application_started("0.1.0", create_databases=False)

        mock_logger.info.assert_called_once_with(
            "application_started", version="0.1.0", create_databases=False
        )


class TestTenancyProbes:
    """Tests for tenancy application and infrastructure probes."""

    def test_context_conflict_logs_error(self):
        mock_logger = _logger()
        probe = DefaultContextSwitcherProbe(logger=mock_logger)

        probe.context_conflict("01A", "01B")

        mock_logger.error.assert_called_once_with(
            "tenant_context_conflict",
            active_tenant_id="01A",
            requested_tenant_id="01B",
        )

    def test_credential_resolved_logs_source(self):
        mock_logger = _logger()
        probe = DefaultCredentialResolverProbe(logger=mock_logger)

        probe.resolved("01A", "scan")

        mock_logger.info.assert_called_once_with(
            "credential_resolved", tenant_id="01A", source="scan"
        )

    def test_backfill_tenant_failed_logs_error_type(self):
        mock_logger = _logger()
        probe = DefaultLookupIndexProbe(logger=mock_logger)

        probe.backfill_tenant_failed("01A", ValueError("bad row"))

        mock_logger.error.assert_called_once_with(
            "lookup_backfill_tenant_failed",
            tenant_id="01A",
            error="bad row",
            error_type="ValueError",
        )

    def test_pool_exhausted_is_logged(self):
        mock_logger = _logger()
        probe = DefaultPoolProvisionerProbe(logger=mock_logger)

        probe.pool_exhausted("01A")

        mock_logger.warning.assert_called_once_with("pool_exhausted", tenant_id="01A")

    def test_isolation_violation_logs_critical(self):
        mock_logger = _logger()
        probe = DefaultIsolationProbe(logger=mock_logger)

        probe.isolation_violation("processes", "01C1", "01C2")

        mock_logger.critical.assert_called_once_with(
            "company_isolation_violation",
            table="processes",
            expected_company_id="01C1",
            actual_company_id="01C2",
        )

    def test_script_checksum_changed_logs_warning(self):
        mock_logger = _logger()
        probe = DefaultMigrationRunnerProbe(logger=mock_logger)

        probe.script_checksum_changed("tenant_x", "users/0001_create_users.sql")

        mock_logger.warning.assert_called_once_with(
            "tenant_script_checksum_changed",
            database="tenant_x",
            script="users/0001_create_users.sql",
        )

    def test_orphaned_database_logs_critical(self):
        mock_logger = _logger()
        probe = DefaultTenantProvisioningProbe(logger=mock_logger)

        probe.orphaned_database("tenant_01a", RuntimeError("permission denied"))

        mock_logger.critical.assert_called_once_with(
            "orphaned_database", database="tenant_01a", error="permission denied"
        )


class TestObservationContext:
    """Tests for ObservationContext."""

    def test_as_dict_leaves_out_unset_fields(self):
        context = ObservationContext(tenant_id="01TENANT", extra={"job": "migrate"})

        assert context.as_dict() == {"tenant_id": "01TENANT", "job": "migrate"}

    def test_with_tenant_drops_company_scope(self):
        context = ObservationContext(request_id="req-1", tenant_id="A", company_id="C")

        moved = context.with_tenant("B")

        assert moved.as_dict() == {"request_id": "req-1", "tenant_id": "B"}
        assert context.company_id == "C"

    def test_with_extra_merges_metadata(self):
        context = ObservationContext(tenant_id="A", company_id="C").with_extra(
            table="processes"
        )

        assert context.as_dict() == {
            "tenant_id": "A",
            "company_id": "C",
            "table": "processes",
        }
