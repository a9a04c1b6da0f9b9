"""
Import map seeding.

Flow files import the DSL from ``flowspec``. Those specifiers are mapped to
the already-loaded package so the sandbox shares the host's DSL functions
(and therefore the active registry) instead of loading a second copy.
"""

from __future__ import annotations

import importlib
from collections.abc import Mapping
from typing import Any

DSL_MODULES = (
    "flowspec",
    "flowspec.dsl",
    "flowspec.dsl.builders",
    "flowspec.dsl.data_flow",
    "flowspec.dsl.flow",
    "flowspec.dsl.graphql",
    "flowspec.dsl.integrations",
    "flowspec.dsl.messages",
)


def create_enhanced_import_map(import_map: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """
    Seed the DSL modules under their import names.

    Caller entries win over the seeded ones.
    """
    enhanced: dict[str, Any] = {name: importlib.import_module(name) for name in DSL_MODULES}
    enhanced.update(import_map or {})
    return enhanced
