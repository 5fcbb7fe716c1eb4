"""Version of the running Tessera build."""

import tomllib
from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION = "tessera-api"


@lru_cache
def get_version() -> str:
    """Installed distribution version, or the checkout's pyproject version."""
    try:
        return version(DISTRIBUTION)
    except PackageNotFoundError:
        pass

    # src/api/infrastructure/version.py -> repository root
    pyproject_path = Path(__file__).resolve().parents[3] / "pyproject.toml"
    with pyproject_path.open("rb") as f:
        return tomllib.load(f)["project"]["version"]


__version__ = get_version()
