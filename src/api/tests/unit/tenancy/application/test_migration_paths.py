"""Unit tests for MigrationPathResolver."""

from pathlib import Path

import pytest

from tenancy.application.services.migration_paths import (
    DEFAULT_PRIORITY,
    MigrationPathResolver,
    scripts_in,
)


def _script(root: Path, relative: str, sql: str = "SELECT 1;") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(sql)
    return path


class TestResolvePaths:
    """Tests for MigrationPathResolver.resolve_paths()."""

    def test_orders_by_priority_then_lexically(self, tmp_path):
        """Known groups come first by priority; unknown ones follow lexically."""
        _script(tmp_path, "permissions/0001.sql")
        _script(tmp_path, "processos/0001.sql")
        _script(tmp_path, "usuarios/0001.sql")
        resolver = MigrationPathResolver(priorities={"permissions": 1, "usuarios": 2})

        paths = resolver.resolve_paths(tmp_path)

        assert [p.relative_to(tmp_path).as_posix() for p in paths] == [
            "permissions",
            "usuarios",
            "processos",
        ]

    def test_unknown_groups_get_default_priority(self, tmp_path):
        resolver = MigrationPathResolver(priorities={})
        group = _script(tmp_path, "zeta/0001.sql").parent

        assert resolver.priority_of(tmp_path, group) == DEFAULT_PRIORITY

    def test_nested_groups_inherit_top_level_priority(self, tmp_path):
        _script(tmp_path, "processes/0001.sql")
        _script(tmp_path, "processes/attachments/0001.sql")
        _script(tmp_path, "users/0001.sql")

        paths = MigrationPathResolver().resolve_paths(tmp_path)

        assert [p.relative_to(tmp_path).as_posix() for p in paths] == [
            "users",
            "processes",
            "processes/attachments",
        ]

    def test_directories_without_scripts_are_ignored(self, tmp_path):
        (tmp_path / "empty").mkdir()
        _script(tmp_path, "notes/readme.txt")
        _script(tmp_path, "users/0001.sql")

        paths = MigrationPathResolver().resolve_paths(tmp_path)

        assert [p.name for p in paths] == ["users"]

    def test_is_deterministic(self, tmp_path):
        for name in ["b", "a", "companies", "users", "c"]:
            _script(tmp_path, f"{name}/0001.sql")
        resolver = MigrationPathResolver()

        assert resolver.resolve_paths(tmp_path) == resolver.resolve_paths(tmp_path)

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            MigrationPathResolver().resolve_paths(tmp_path / "missing")


class TestPlan:
    """Tests for MigrationPathResolver.plan()."""

    def test_lists_scripts_lexically_per_group(self, tmp_path):
        _script(tmp_path, "users/0002_add_index.sql")
        _script(tmp_path, "users/0001_create.sql")
        _script(tmp_path, "permissions/0001_create.sql")

        plan = MigrationPathResolver().plan(tmp_path)

        assert [group.name for group in plan] == ["permissions", "users"]
        assert [s.name for s in plan[1].scripts] == [
            "0001_create.sql",
            "0002_add_index.sql",
        ]
        assert plan[1].script_key(plan[1].scripts[0]) == "users/0001_create.sql"

    def test_scripts_in_skips_other_files(self, tmp_path):
        _script(tmp_path, "users/0001.sql")
        _script(tmp_path, "users/README.md")

        assert [p.name for p in scripts_in(tmp_path / "users")] == ["0001.sql"]

    def test_bundled_tenant_scripts_follow_foreign_keys(self):
        """The shipped groups create referenced tables first."""
        from infrastructure.settings import DEFAULT_MIGRATIONS_PATH

        plan = MigrationPathResolver().plan(DEFAULT_MIGRATIONS_PATH)

        assert [group.name for group in plan] == [
            "permissions",
            "users",
            "companies",
            "processes",
        ]
