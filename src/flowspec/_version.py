"""Version lookup for flowspec."""

import tomllib
from importlib import metadata
from pathlib import Path

_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"

UNKNOWN_VERSION = "0+unknown"


def get_version() -> str:
    """
    Installed distribution version, else the one in a source checkout's
    pyproject.toml, else ``0+unknown``.
    """
    try:
        return metadata.version("flowspec")
    except metadata.PackageNotFoundError:
        pass
    if _PYPROJECT.is_file():
        with _PYPROJECT.open("rb") as f:
            project = tomllib.load(f).get("project", {})
        if project.get("name") == "flowspec" and "version" in project:
            return str(project["version"])
    return UNKNOWN_VERSION
