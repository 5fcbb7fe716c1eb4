"""Discovery and ordering of tenant SQL script groups.

A group is any directory under the scripts root holding at least one
``.sql`` file. Groups run in order of a static priority keyed by their
top-level directory (lower first, unknown last), then lexically by their
path relative to the root.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from tenancy.domain.value_objects import ScriptGroup

SCRIPT_SUFFIX = ".sql"
DEFAULT_PRIORITY = 999

# Tables reference the ones created before them, so order follows FKs.
DEFAULT_PRIORITIES: Mapping[str, int] = {
    "permissions": 1,
    "users": 2,
    "companies": 3,
    "suppliers": 4,
    "agencies": 5,
    "documents": 6,
    "processes": 7,
    "contracts": 8,
    "supply_authorizations": 9,
    "commitments": 10,
    "budgets": 11,
    "invoices": 12,
    "subscriptions": 13,
}


class MigrationPathResolver:
    """Pure ordering of script groups over a filesystem snapshot."""

    def __init__(
        self,
        priorities: Mapping[str, int] | None = None,
        default_priority: int = DEFAULT_PRIORITY,
    ) -> None:
        self._priorities = dict(DEFAULT_PRIORITIES if priorities is None else priorities)
        self._default_priority = default_priority

    def resolve_paths(self, root: Path) -> list[Path]:
        """Return every script directory under ``root`` in execution order.

        Raises:
            FileNotFoundError: If ``root`` is not a directory
        """
        root = Path(root)
        if not root.is_dir():
            raise FileNotFoundError(f"Migration root {root} is not a directory")

        groups = {
            script.parent
            for script in root.rglob(f"*{SCRIPT_SUFFIX}")
            if script.is_file()
        }
        return sorted(groups, key=lambda group: self._sort_key(root, group))

    def priority_of(self, root: Path, group: Path) -> int:
        parts = group.relative_to(root).parts
        if not parts:
            return self._default_priority
        return self._priorities.get(parts[0], self._default_priority)

    def plan(self, root: Path) -> list[ScriptGroup]:
        """Resolve groups and list their scripts, ready for the runner."""
        root = Path(root)
        return [
            ScriptGroup(
                name=group.relative_to(root).as_posix(),
                scripts=tuple(scripts_in(group)),
                root=root,
            )
            for group in self.resolve_paths(root)
        ]

    def _sort_key(self, root: Path, group: Path) -> tuple[int, str]:
        return (self.priority_of(root, group), group.relative_to(root).as_posix())


def scripts_in(group: Path) -> list[Path]:
    """List the scripts directly inside a group, lexically ordered."""
    return sorted(
        (
            path
            for path in Path(group).iterdir()
            if path.is_file() and path.suffix == SCRIPT_SUFFIX
        ),
        key=lambda path: path.name,
    )
