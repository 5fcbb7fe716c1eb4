"""Architecture tests using pytest-archon.

These tests enforce DDD architectural boundaries between layers
within the Tenancy bounded context.
"""

from pytest_archon import archrule


class TestTenancyDomainLayerBoundaries:
    """Tests that the domain layer has no forbidden dependencies."""

    def test_domain_does_not_import_infrastructure(self):
        """Domain layer should not depend on infrastructure.

        The domain layer holds tenants, companies and users as plain
        objects and should not know about engines, SQL or Redis.
        """
        (
            archrule("domain_no_infrastructure")
            .match("tenancy.domain*")
            .should_not_import("tenancy.infrastructure*", "infrastructure*")
            .check("tenancy")
        )

    def test_domain_does_not_import_application(self):
        """Domain objects should be usable without application services."""
        (
            archrule("domain_no_application")
            .match("tenancy.domain*")
            .should_not_import("tenancy.application*")
            .check("tenancy")
        )

    def test_domain_does_not_import_fastapi(self):
        """Domain objects should be framework-agnostic."""
        (
            archrule("domain_no_fastapi")
            .match("tenancy.domain*")
            .should_not_import("fastapi*", "starlette*", "sqlalchemy*")
            .check("tenancy")
        )


class TestTenancyPortsLayerBoundaries:
    """Tests that the ports layer has no forbidden dependencies."""

    def test_ports_does_not_import_infrastructure(self):
        """Ports define interfaces; they should not know the implementations."""
        (
            archrule("ports_no_infrastructure")
            .match("tenancy.ports*")
            .should_not_import("tenancy.infrastructure*")
            .check("tenancy")
        )

    def test_ports_does_not_import_application(self):
        (
            archrule("ports_no_application")
            .match("tenancy.ports*")
            .should_not_import("tenancy.application*")
            .check("tenancy")
        )


class TestTenancyApplicationLayerBoundaries:
    """Tests that the application layer depends on ports, not implementations."""

    def test_application_does_not_import_infrastructure(self):
        """Application services should depend on repository interfaces (ports),
        not on the tenancy repositories, ORM models or isolation guard.
        """
        (
            archrule("application_no_infrastructure")
            .match("tenancy.application*")
            .should_not_import("tenancy.infrastructure*")
            .check("tenancy")
        )

    def test_application_does_not_import_presentation(self):
        (
            archrule("application_no_presentation")
            .match("tenancy.application*")
            .should_not_import("tenancy.presentation*", "fastapi*")
            .check("tenancy")
        )


class TestTenancyInfrastructureLayerBoundaries:
    def test_infrastructure_does_not_import_application(self):
        """Infrastructure should not depend on application layer."""
        (
            archrule("infrastructure_no_application")
            .match("tenancy.infrastructure*")
            .should_not_import("tenancy.application*", "tenancy.presentation*")
            .check("tenancy")
        )


class TestSharedInfrastructureBoundaries:
    def test_shared_infrastructure_does_not_import_tenancy(self):
        """Cross-cutting infrastructure should not import bounded contexts.

        The Alembic environment is exempt: it registers every context's
        central tables on the shared metadata before autogenerate runs.
        """
        (
            archrule("shared_infrastructure_no_tenancy")
            .match("infrastructure*")
            .exclude("infrastructure.migrations*")
            .should_not_import("tenancy*")
            .check("infrastructure")
        )
