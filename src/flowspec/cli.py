"""
flowspec command-line interface.

Commands:
- model: discover and run flow files, print the Model JSON
- generate: turn a Model JSON file into flow source
- validate: check every example reference resolves
- schema: print the Model JSON Schema
- list: show the flows and slices of a project
"""

from __future__ import annotations

import asyncio
import importlib
import json
import logging
import os
from pathlib import Path
from types import ModuleType

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ._version import get_version
from .core.errors import FlowSpecError
from .core.manifest import DEFAULT_PATTERN, GenerateConfig, ProjectManifest, find_manifest, load_manifest
from .core.model import Model, app_json_schema
from .core.validator import validate_references
from .core.vfs import LocalFileStore
from .get_flows import FlowsResult, get_flows
from .transformers import model_to_flow

__version__ = get_version()

app = typer.Typer(
    help="flowspec: compile flow DSL modules to a Model and back",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

LOG_LEVEL_ENV = "FLOWSPEC_LOG_LEVEL"


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"flowspec {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """flowspec CLI main callback for global options."""
    level = "DEBUG" if verbose else os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING), format="%(levelname)s %(name)s: %(message)s")


# =============================================================================
# Helpers
# =============================================================================


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]{escape(message)}[/red]")
    return typer.Exit(code=1)


def _load_project(project_dir: Path) -> ProjectManifest | None:
    manifest_path = find_manifest(project_dir)
    if manifest_path is None:
        return None
    try:
        return load_manifest(manifest_path)
    except FlowSpecError as e:
        raise _fail(f"Error loading manifest: {e}") from e


def _host_import_map(manifest: ProjectManifest | None) -> dict[str, ModuleType]:
    mapped: dict[str, ModuleType] = {}
    for spec, module_name in (manifest.import_map if manifest else {}).items():
        try:
            mapped[spec] = importlib.import_module(module_name)
        except ImportError as e:
            raise _fail(f"import_map entry {spec!r} -> {module_name!r} could not be imported: {e}") from e
    return mapped


def _build(project_dir: Path, root: Path | None = None, pattern: str | None = None) -> FlowsResult:
    project_dir = project_dir.resolve()
    manifest = _load_project(project_dir)
    discovery_root = (root or (manifest.root if manifest else project_dir)).resolve()
    discovery_pattern = pattern or (manifest.discovery.pattern if manifest else DEFAULT_PATTERN)
    ignore_dirs = manifest.discovery.ignore_dirs if manifest else []
    try:
        return asyncio.run(
            get_flows(
                LocalFileStore(),
                discovery_root.as_posix(),
                pattern=discovery_pattern,
                import_map=_host_import_map(manifest) or None,
                ignore_dirs=ignore_dirs,
            )
        )
    except FlowSpecError as e:
        raise _fail(str(e)) from e


def _write(content: str, output: Path | None, what: str) -> None:
    if output:
        output.write_text(content, encoding="utf-8")
        console.print(f"[green]{what} written to {output}[/green]")
    else:
        typer.echo(content)


ProjectOption = typer.Option(Path("."), "--project", "-p", help="Project directory (default: current directory)")
OutputOption = typer.Option(None, "--output", "-o", help="Output file (default: stdout)")


# =============================================================================
# Commands
# =============================================================================


@app.command()
def model(
    project_dir: Path = ProjectOption,
    output: Path | None = OutputOption,
    root: Path | None = typer.Option(None, "--root", help="Discovery root (default: manifest root)"),
    pattern: str | None = typer.Option(None, "--pattern", help="Entry file regular expression"),
) -> None:
    """Build the Model from the project's flow files and print it as JSON."""
    result = _build(project_dir, root, pattern)
    _write(json.dumps(result.to_model().to_dict(), indent=2), output, "Model")


@app.command()
def generate(
    model_json: Path = typer.Argument(..., help="Model JSON file"),
    output: Path | None = OutputOption,
    project_dir: Path = ProjectOption,
    flow_import: str | None = typer.Option(
        None, "--flow-import", help="Module the DSL is imported from (default: manifest or flowspec)"
    ),
    integration_import: str | None = typer.Option(
        None, "--integration-import", help="Import every integration from this module"
    ),
    no_format: bool = typer.Option(False, "--no-format", help="Skip ruff formatting"),
) -> None:
    """Generate flow source from a Model JSON file."""
    manifest = _load_project(project_dir.resolve())
    settings = manifest.generate if manifest else GenerateConfig()
    try:
        data = json.loads(model_json.read_text(encoding="utf-8"))
        parsed = Model.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise _fail(f"Could not read model {model_json}: {e}") from e
    source = model_to_flow(
        parsed,
        flow_import=flow_import or settings.flow_import,
        integration_import=integration_import or settings.integration_import,
        format=settings.format and not no_format,
    )
    _write(source, output, "Flow source")


@app.command()
def validate(project_dir: Path = ProjectOption) -> None:
    """Check that every example reference resolves to a declared message."""
    errors = validate_references(_build(project_dir).to_model())
    if errors:
        for error in errors:
            err_console.print(f"[red]✗[/red] {escape(error)}")
        raise typer.Exit(code=1)
    console.print("[green]✓ All references resolve[/green]")


@app.command()
def schema(output: Path | None = OutputOption) -> None:
    """Print the Model JSON Schema."""
    _write(json.dumps(app_json_schema(), indent=2), output, "Schema")


@app.command(name="list")
def list_flows(project_dir: Path = ProjectOption) -> None:
    """Show the flows and slices of a project."""
    result = _build(project_dir)
    table = Table(title="Flows")
    table.add_column("Flow", style="cyan")
    table.add_column("Slice")
    table.add_column("Type", style="magenta")
    table.add_column("Source", style="dim")
    for flow in result.flows:
        for slice_ in flow.slices or [None]:
            table.add_row(
                flow.name,
                slice_.name if slice_ else "",
                slice_.type if slice_ else "",
                flow.source_file or "",
            )
    console.print(table)


def main(argv: list[str] | None = None) -> None:
    app(args=argv, standalone_mode=True)
