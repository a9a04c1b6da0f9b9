"""
Sandbox executor.

Each graph module runs in a fresh ``types.ModuleType`` whose builtins carry a
graph-aware ``__import__``. Imports are answered from the module's
pre-resolved specifier table:

- vfs targets load the target module from the graph (once per run)
- mapped targets return the mapped value (dicts are exposed as modules)
- namespace targets return an empty package module
- external targets fall back to the host's ``importlib``

Modules are memoized before their body runs, so a true import cycle sees a
partially initialized module instead of recursing.
"""

from __future__ import annotations

import builtins
import importlib
import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from types import ModuleType
from typing import Any

from ..core import paths
from ..core.errors import GraphError, make_graph_error
from ..dsl.integrations import Integration
from ..dsl.registry import Registry
from .graph import Graph, ModuleNode

logger = logging.getLogger(__name__)

SANDBOX_PREFIX = "_flowspec_sandbox_"

NOT_IN_GRAPH_HINT = "Make sure execute_graph() included this file."


def _dotted_prefixes(name: str) -> list[str]:
    parts = name.split(".")
    return [".".join(parts[: i + 1]) for i in range(len(parts))]


def _as_module(spec: str, value: Any) -> Any:
    if isinstance(value, Mapping) and not isinstance(value, ModuleType):
        module = ModuleType(spec)
        module.__dict__.update(value)
        return module
    return value


class GraphRuntime:
    """Runs graph modules against a registry."""

    def __init__(self, graph: Graph, registry: Registry, root_dir: str):
        self.graph = graph
        self.registry = registry
        self.name_root = paths.dirname(paths.normalize(root_dir))
        self.modules: dict[str, ModuleType] = {}
        self._namespaces: dict[str, ModuleType] = {}
        self._mapped: dict[str, Any] = {}
        self._installed: list[str] = []

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self, path: str) -> ModuleType:
        path = paths.normalize(path)
        cached = self.modules.get(path)
        if cached is not None:
            return cached

        node = self.graph.get(path)
        if node is None:
            raise GraphError(f'Module "{path}" not in graph. {NOT_IN_GRAPH_HINT}')

        module = self._new_module(node)
        self.modules[path] = module

        logger.debug("Executing %s", path)
        with self.registry.executing(path):
            exec(node.code, module.__dict__)

        self._register_integrations(module)
        return module

    def _module_name(self, path: str) -> str:
        return f"{SANDBOX_PREFIX}.{paths.module_name_for(path, self.name_root)}"

    def _new_module(self, node: ModuleNode) -> ModuleType:
        name = self._module_name(node.path)
        module = ModuleType(name)
        module.__file__ = node.path
        is_package = paths.basename(node.path) == paths.INDEX_FILE
        module.__package__ = name if is_package else name.rpartition(".")[0]
        if is_package:
            module.__path__ = [paths.dirname(node.path)]  # type: ignore[attr-defined]

        module_builtins = dict(builtins.__dict__)
        module_builtins["__import__"] = self._make_import(node)
        module.__dict__["__builtins__"] = module_builtins

        # dataclasses and typing look modules up by name
        sys.modules[name] = module
        self._installed.append(name)
        return module

    def _namespace(self, directory: str) -> ModuleType:
        module = self._namespaces.get(directory)
        if module is None:
            name = self._module_name(paths.join(directory, paths.INDEX_FILE))
            module = ModuleType(name)
            module.__path__ = [directory]  # type: ignore[attr-defined]
            module.__package__ = name
            self._namespaces[directory] = module
        return module

    # -------------------------------------------------------------------------
    # Import hooks
    # -------------------------------------------------------------------------

    def require(self, node: ModuleNode, spec: str) -> Any:
        """Return the object a specifier in ``node`` resolves to."""
        target = node.resolved.get(spec)
        if target is None:
            return self._host_import(node, spec)
        if target.kind == "mapped":
            if target.spec not in self._mapped:
                self._mapped[target.spec] = _as_module(target.spec, target.value)
            return self._mapped[target.spec]
        if target.kind == "vfs":
            path = paths.normalize(target.path or "")
            if path not in self.graph and path not in self.modules:
                raise self._import_error(node, spec, f'Module "{path}" not in graph. {NOT_IN_GRAPH_HINT}')
            return self.load(path)
        if target.kind == "namespace":
            return self._namespace(target.path or "")
        return self._host_import(node, target.spec)

    def _host_import(self, node: ModuleNode, spec: str) -> Any:
        if paths.is_relative(spec):
            raise self._import_error(node, spec, f'Module "{spec}" not in graph. {NOT_IN_GRAPH_HINT}')
        try:
            return importlib.import_module(spec)
        except ImportError as e:
            package = spec.split(".")[0]
            raise self._import_error(
                node,
                spec,
                f'External "{spec}" could not be resolved. '
                f"Install it (pip install {package}) or map it via import_map. ({e})",
            ) from e

    @staticmethod
    def _import_error(node: ModuleNode, spec: str, message: str) -> GraphError:
        line, column = node.locations.get(spec, (1, 1))
        return make_graph_error(message, file=node.path, line=line, column=column)

    def _make_import(self, node: ModuleNode):
        def _import(name, _globals=None, _locals=None, fromlist=(), level=0):
            spec = paths.specifier_for(level, name)

            if not fromlist:
                if level == 0 and "." in name:
                    # ``import a.b.c`` binds ``a`` with ``a.b.c`` loaded underneath
                    chain = [self.require(node, prefix) for prefix in _dotted_prefixes(name)]
                    for parent, child, attr in zip(chain, chain[1:], name.split(".")[1:], strict=False):
                        if not hasattr(parent, attr):
                            setattr(parent, attr, child)
                    return chain[0]
                return self._special(self.require(node, spec), spec)

            module = self._special(self.require(node, spec), spec)
            for item in fromlist:
                if item == "*":
                    continue
                if hasattr(module, item):
                    value = getattr(module, item)
                    if isinstance(value, Integration):
                        self.registry.record_integration_source(value, spec)
                    continue
                sub_spec = paths.submodule_specifier(spec, item)
                if sub_spec in node.resolved:
                    setattr(module, item, self.require(node, sub_spec))
            return module

        return _import

    def _special(self, module: Any, spec: str) -> Any:
        if spec == "importlib" and module is importlib:
            return self._importlib_shim()
        return module

    def _importlib_shim(self) -> ModuleType:
        shim = self._mapped.get("<importlib-shim>")
        if shim is None:
            shim = ModuleType("importlib")
            shim.__dict__.update({k: v for k, v in importlib.__dict__.items() if not k.startswith("__")})

            def import_module(name: str, package: str | None = None) -> Any:
                frame_node = self._current_node()
                if frame_node is None:
                    return importlib.import_module(name, package)
                return self.require(frame_node, name)

            shim.import_module = import_module  # type: ignore[attr-defined]
            self._mapped["<importlib-shim>"] = shim
        return shim

    def _current_node(self) -> ModuleNode | None:
        path = self.registry.current_module
        return self.graph.get(path) if path else None

    # -------------------------------------------------------------------------
    # Integrations
    # -------------------------------------------------------------------------

    def _register_integrations(self, module: ModuleType) -> None:
        for export_name, value in list(module.__dict__.items()):
            if isinstance(value, Integration):
                self.registry.register_integration(value, export_name)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @contextmanager
    def installed(self) -> Iterator[GraphRuntime]:
        """Keep sandbox modules visible in ``sys.modules`` while running."""
        try:
            yield self
        finally:
            for name in self._installed:
                sys.modules.pop(name, None)
            self._installed.clear()


def run_graph(entry_files: list[str], graph: Graph, registry: Registry, root_dir: str) -> dict[str, ModuleType]:
    """
    Execute the entry files.

    Exceptions raised by module code propagate unchanged.

    Returns:
        Graph path -> executed module
    """
    runtime = GraphRuntime(graph, registry, root_dir)
    with registry.activate(), runtime.installed():
        for entry in entry_files:
            runtime.load(entry)
    logger.debug(
        "run_graph: flows=%d integrations=%d",
        len(registry.flows),
        len(registry.integrations),
    )
    return runtime.modules
