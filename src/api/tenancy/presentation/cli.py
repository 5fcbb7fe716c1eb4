"""Batch commands for tenant databases (``tessera-admin``).

Usage:
    tessera-admin pool-replenish [--count N]
    tessera-admin migrate [--tenant-id ID]
    tessera-admin backfill-lookups [--tenant-id ID] [--force]
    tessera-admin list-databases [--prefix PREFIX]
    tessera-admin deactivate-tenant TENANT_ID

Exit codes:
    0: Success. Per-tenant failures are summarized, not fatal
    1: Unrecoverable failure
    2: Another run of the same command holds the job lock
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from infrastructure.database.dependencies import (
    close_database_connections,
    get_central_sessionmaker,
    get_database_server,
)
from infrastructure.dependencies import get_cache_store, get_job_lock
from infrastructure.locks import JobAlreadyRunningError
from infrastructure.logging import configure_logging
from infrastructure.settings import get_tenancy_settings
from infrastructure.version import get_version
from tenancy.application.value_objects import BackfillSummary, BatchSummary
from tenancy.dependencies import TenancyServices, build_tenancy_services
from tenancy.domain.value_objects import TenantId

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_ALREADY_RUNNING = 2

console = Console()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="tessera-admin",
        description="Tenant database administration for Tessera",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {get_version()}"
    )
    parser.add_argument(
        "--log-level", default=None, help="Minimum log level (defaults to LOG_LEVEL)"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    replenish = commands.add_parser(
        "pool-replenish", help="Top the warm database pool up to its floor"
    )
    replenish.add_argument(
        "--count",
        type=int,
        default=None,
        help="Provision exactly this many entries instead of topping up",
    )

    migrate = commands.add_parser(
        "migrate", help="Create missing tenant databases and apply pending scripts"
    )
    migrate.add_argument("--tenant-id", help="Only migrate this tenant")

    backfill = commands.add_parser(
        "backfill-lookups", help="Rebuild company mappings and user lookups"
    )
    backfill.add_argument("--tenant-id", help="Only rebuild this tenant")
    backfill.add_argument(
        "--force", action="store_true", help="Overwrite existing entries"
    )

    databases = commands.add_parser(
        "list-databases", help="List physical databases on the server"
    )
    databases.add_argument(
        "--prefix",
        default=None,
        help="Name prefix to match (defaults to the tenant database prefix)",
    )

    deactivate = commands.add_parser(
        "deactivate-tenant", help="Deactivate a tenant and drop its cached logins"
    )
    deactivate.add_argument("tenant_id", help="Tenant to deactivate")

    return parser.parse_args(argv)


def render_summary(title: str, summary: BatchSummary) -> None:
    """Print a batch summary and its per-tenant failures."""
    table = Table(title=title, show_header=False, box=box.SIMPLE, padding=(0, 1))
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")
    table.add_row("Processed", f"{summary.processed:,}")
    table.add_row("Succeeded", f"[green]{summary.succeeded:,}[/]")
    table.add_row("Failed", f"[red]{summary.failed:,}[/]" if summary.failed else "0")
    if isinstance(summary, BackfillSummary):
        table.add_row("Mappings written", f"{summary.mappings_written:,}")
        table.add_row("Users written", f"{summary.users_written:,}")
        table.add_row("Skipped", f"{summary.skipped:,}")
    console.print(table)

    if summary.errors:
        errors = Table(show_header=True, box=box.SIMPLE, padding=(0, 1))
        errors.add_column("Tenant", style="bold")
        errors.add_column("Error", style="red")
        for tenant_id, error in sorted(summary.errors.items()):
            errors.add_row(tenant_id, error)
        console.print(errors)


async def pool_replenish(services: TenancyServices, count: int | None) -> int:
    if count is None:
        created = await services.pool.replenish()
    else:
        created = await services.pool.provision(count)
    available = await services.pool.count_available()
    console.print(
        f"[green]✓[/] Provisioned [bold]{created}[/] database(s); "
        f"[bold]{available}[/] free in pool"
    )
    return EXIT_OK


async def migrate(services: TenancyServices, tenant_id: str | None) -> int:
    summary = await services.lifecycle.apply_migrations_to_all(
        TenantId.from_string(tenant_id) if tenant_id else None
    )
    render_summary("Tenant migrations", summary)
    return EXIT_OK


async def backfill_lookups(
    services: TenancyServices, tenant_id: str | None, force: bool
) -> int:
    summary = await services.lookup_index.bulk_repopulate(
        TenantId.from_string(tenant_id) if tenant_id else None, force=force
    )
    render_summary("Lookup backfill", summary)
    return EXIT_OK


async def deactivate_tenant(services: TenancyServices, tenant_id: str) -> int:
    tenant = await services.provisioning.deactivate_tenant(
        TenantId.from_string(tenant_id)
    )
    console.print(
        f"[green]✓[/] Deactivated tenant [bold]{tenant.id}[/] ({tenant.name})"
    )
    return EXIT_OK


async def list_databases(prefix: str | None) -> int:
    prefix = prefix if prefix is not None else get_tenancy_settings().database_prefix
    names = await get_database_server().list_databases(prefix=prefix)

    table = Table(show_header=True, box=box.SIMPLE, padding=(0, 1))
    table.add_column("Database")
    for name in names:
        table.add_row(name)
    console.print(table)
    console.print(f"[dim]{len(names)} database(s) matching '{prefix}'[/]")
    return EXIT_OK


async def run(args: argparse.Namespace) -> int:
    """Run one command under its job lock."""
    if args.command == "list-databases":
        return await list_databases(args.prefix)

    async with get_job_lock().hold(args.command):
        async with get_central_sessionmaker()() as session:
            services = build_tenancy_services(session=session, cache=get_cache_store())
            if args.command == "pool-replenish":
                return await pool_replenish(services, args.count)
            if args.command == "migrate":
                return await migrate(services, args.tenant_id)
            if args.command == "deactivate-tenant":
                return await deactivate_tenant(services, args.tenant_id)
            return await backfill_lookups(services, args.tenant_id, args.force)


async def _main(args: argparse.Namespace) -> int:
    try:
        return await run(args)
    finally:
        await close_database_connections()


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.log_level, stream=sys.stderr)

    try:
        return asyncio.run(_main(args))
    except JobAlreadyRunningError as e:
        console.print(f"[yellow]{e}[/]")
        return EXIT_ALREADY_RUNNING
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user[/]")
        return EXIT_FAILURE
    except Exception as e:
        console.print(f"\n[bold red]Error:[/] {e}")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
