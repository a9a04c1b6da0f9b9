import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError

MANIFEST_NAME = "flowspec.toml"

DEFAULT_PATTERN = r"[._](?:flow|integration)\.py$"


@dataclass
class DiscoveryConfig:
    """Which files are build entries."""

    pattern: str = DEFAULT_PATTERN
    ignore_dirs: list[str] = field(default_factory=list)  # added to the built-in ignore list


@dataclass
class GenerateConfig:
    """Model -> source generation options."""

    flow_import: str = "flowspec"
    integration_import: str | None = None  # None -> per-integration sources
    format: bool = True


@dataclass
class ProjectManifest:
    name: str
    root: Path
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    generate: GenerateConfig = field(default_factory=GenerateConfig)
    import_map: dict[str, str] = field(default_factory=dict)  # specifier -> host module name


def load_manifest(path: Path) -> ProjectManifest:
    """
    Load a flowspec.toml project file.

    Relative roots are resolved against the file's directory.

    Raises:
        ConfigError: If the file is not valid TOML or the pattern is not a valid regex
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid {path.name}: {e}") from e

    project = data.get("project", {})
    discovery = data.get("discovery", {})
    generate = data.get("generate", {})

    pattern = discovery.get("pattern", DEFAULT_PATTERN)
    try:
        re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid discovery pattern {pattern!r}: {e}") from e

    root = Path(project.get("root", "."))
    if not root.is_absolute():
        root = (path.parent / root).resolve()

    return ProjectManifest(
        name=project.get("name", path.parent.resolve().name),
        root=root,
        discovery=DiscoveryConfig(
            pattern=pattern,
            ignore_dirs=list(discovery.get("ignore_dirs", [])),
        ),
        generate=GenerateConfig(
            flow_import=generate.get("flow_import", "flowspec"),
            integration_import=generate.get("integration_import") or None,
            format=generate.get("format", True),
        ),
        import_map=dict(data.get("import_map", {})),
    )


def find_manifest(project_dir: Path) -> Path | None:
    """Return ``project_dir/flowspec.toml`` if it exists."""
    candidate = project_dir / MANIFEST_NAME
    return candidate if candidate.is_file() else None
