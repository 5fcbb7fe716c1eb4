"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from infrastructure.database.dependencies import close_database_connections
from infrastructure.database.exceptions import ProvisioningError
from infrastructure.dependencies import get_redis_client
from infrastructure.logging import configure_logging
from infrastructure.observability import DefaultStartupProbe
from infrastructure.settings import get_tenancy_settings
from infrastructure.version import __version__
from tenancy.ports.exceptions import IsolationViolationError, TenantUnavailableError
from tenancy.presentation import routes as tenancy_routes


@asynccontextmanager
async def tessera_lifespan(app: FastAPI):
    """Application lifespan context.

    Manages:
    - Logging configuration
    - Engine and Redis client cleanup on shutdown (created lazily)
    """
    configure_logging()
    probe = DefaultStartupProbe()
    probe.application_started(__version__, get_tenancy_settings().create_databases)

    yield

    try:
        await close_database_connections()
    except Exception as e:
        probe.shutdown_cleanup_failed("database", e)
    try:
        await get_redis_client().aclose()
    except Exception as e:
        probe.shutdown_cleanup_failed("redis", e)
    probe.application_stopped()


app = FastAPI(
    title="Tessera API",
    description="Tenant resolution, provisioning and isolation",
    version=__version__,
    lifespan=tessera_lifespan,
)

app.include_router(tenancy_routes.router)


@app.exception_handler(TenantUnavailableError)
async def tenant_unavailable_handler(request: Request, exc: TenantUnavailableError):
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Tenant is temporarily unavailable"},
    )


@app.exception_handler(ProvisioningError)
async def provisioning_error_handler(request: Request, exc: ProvisioningError):
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Tenant database could not be provisioned"},
    )


@app.exception_handler(IsolationViolationError)
async def isolation_violation_handler(request: Request, exc: IsolationViolationError):
    # Already logged at critical level by the isolation guard
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "ok"}
