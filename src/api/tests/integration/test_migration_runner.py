"""Integration tests for per-group transactions of the migration runner."""

from unittest.mock import Mock

import pytest
from sqlalchemy import select

from infrastructure.database.exceptions import MigrationError
from tenancy.application.services.migration_paths import MigrationPathResolver
from tenancy.infrastructure.migration_runner import MigrationRunner
from tenancy.infrastructure.models import SchemaMigrationModel
from tenancy.infrastructure.observability import MigrationRunnerProbe

pytestmark = pytest.mark.integration


@pytest.fixture
def write_script(tmp_path):
    def _write(relative: str, sql: str) -> None:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(sql)

    return _write


@pytest.fixture
def scripts_root(tmp_path, write_script):
    write_script("users/0001_create.sql", "CREATE TABLE users (id text PRIMARY KEY);")
    write_script(
        "companies/0001_create.sql",
        "CREATE TABLE companies (id text PRIMARY KEY);\n"
        "CREATE TABLE company_notes (id text PRIMARY KEY);",
    )
    write_script("companies/0002_seed.sql", "INSERT INTO no_such_table VALUES (1);")
    return tmp_path


async def _ledger(engine) -> list[str]:
    async with engine.connect() as conn:
        result = await conn.execute(
            select(SchemaMigrationModel.script).order_by(SchemaMigrationModel.script)
        )
        return list(result.scalars().all())


class TestFailedGroup:
    """A failing script rolls back its whole group; a re-run resumes."""

    @pytest.mark.asyncio
    async def test_failed_group_rolls_back_and_rerun_applies_only_pending(
        self, server, engines, scratch_database, scripts_root, write_script
    ):
        await server.create_database(scratch_database)
        engine = engines.get_engine(scratch_database)
        probe = Mock(spec=MigrationRunnerProbe)
        runner = MigrationRunner(probe=probe)
        resolver = MigrationPathResolver()

        with pytest.raises(MigrationError) as exc_info:
            await runner.apply(engine, scratch_database, resolver.plan(scripts_root))

        assert exc_info.value.script == "companies/0002_seed.sql"
        assert exc_info.value.database_name == scratch_database
        tables = await server.list_tables(scratch_database)
        assert "users" in tables
        assert "companies" not in tables
        assert "company_notes" not in tables
        assert await _ledger(engine) == ["users/0001_create.sql"]
        probe.group_failed.assert_called_once()

        write_script(
            "companies/0002_seed.sql", "INSERT INTO companies VALUES ('acme');"
        )
        report = await runner.apply(
            engine, scratch_database, resolver.plan(scripts_root)
        )

        assert report.applied == [
            "companies/0001_create.sql",
            "companies/0002_seed.sql",
        ]
        assert report.skipped == 1
        assert await _ledger(engine) == [
            "companies/0001_create.sql",
            "companies/0002_seed.sql",
            "users/0001_create.sql",
        ]

    @pytest.mark.asyncio
    async def test_third_run_has_nothing_to_migrate(
        self, server, engines, scratch_database, scripts_root, write_script
    ):
        write_script(
            "companies/0002_seed.sql", "INSERT INTO companies VALUES ('acme');"
        )
        await server.create_database(scratch_database)
        engine = engines.get_engine(scratch_database)
        runner = MigrationRunner(probe=Mock(spec=MigrationRunnerProbe))
        plan = MigrationPathResolver().plan(scripts_root)

        await runner.apply(engine, scratch_database, plan)
        report = await runner.apply(engine, scratch_database, plan)

        assert report.nothing_to_migrate
        assert report.skipped == 3
