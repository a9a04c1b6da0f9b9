"""
Model -> flow source generation.

The generated file re-creates the Model when loaded through
``execute_graph`` and ``flows_to_model``. Formatting and declaration order
may differ from hand-written sources.
"""

from __future__ import annotations

import logging

from ...core.model import Model
from .compose import generate_source
from .formatting import format_source
from .types import type_to_annotation
from .usage import analyze_code_usage

logger = logging.getLogger(__name__)


def model_to_flow(
    model: Model,
    flow_import: str = "flowspec",
    integration_import: str | None = None,
    format: bool = True,
) -> str:
    """
    Generate flow source for ``model``.

    Args:
        model: Model to render
        flow_import: Module the DSL names are imported from
        integration_import: Import every integration from this module instead
            of each integration's own source
        format: Run ruff over the output

    Returns:
        Python source text
    """
    source = generate_source(model, flow_import, integration_import)
    logger.debug("Generated %d lines for %d flows", source.count("\n"), len(model.flows))
    return format_source(source) if format else source


__all__ = ["analyze_code_usage", "format_source", "generate_source", "model_to_flow", "type_to_annotation"]
