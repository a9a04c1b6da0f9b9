"""
Reference validation for a transformed Model.

Every message reference in every example must name a message of the same
classification, and no reference may still be the placeholder.
"""

from __future__ import annotations

from collections.abc import Iterator

from .errors import ModelValidationError
from .model import Example, Model, SliceKind
from .type_extractor import INFERRED_TYPE


def _iter_examples(model: Model) -> Iterator[tuple[str, str, Example]]:
    for flow in model.flows:
        for slice_ in flow.slices:
            for rule in slice_.server.specs.rules:
                for example in rule.examples:
                    yield flow.name, slice_.name, example


def validate_references(model: Model) -> list[str]:
    """
    Check that every example reference resolves.

    Returns:
        List of error messages (empty when the Model is consistent)
    """
    errors: list[str] = []
    kinds = {m.name: m.kind for m in model.messages}

    for flow_name, slice_name, example in _iter_examples(model):
        where = f"{flow_name} / {slice_name} / '{example.description}'"
        for ref in example.refs():
            if ref.name == INFERRED_TYPE:
                errors.append(f"{where}: unresolved {INFERRED_TYPE} reference")
                continue
            kind = kinds.get(ref.name)
            if kind is None:
                errors.append(f"{where}: '{ref.name}' has no message definition")
            elif kind != ref.kind:
                errors.append(f"{where}: '{ref.name}' is referenced as {ref.kind} but declared as {kind}")

    integration_names = {i.name for i in model.integrations or []}
    for flow in model.flows:
        for slice_ in flow.slices:
            for name in slice_.via or []:
                if name not in integration_names:
                    errors.append(f"{flow.name} / {slice_.name}: integration '{name}' is not declared")
            if slice_.kind == SliceKind.QUERY and any(
                hasattr(item, "destination") for item in slice_.server.data or []
            ):
                errors.append(f"{flow.name} / {slice_.name}: query slices cannot have data sinks")

    return errors


def ensure_valid(model: Model) -> Model:
    """
    Raise if the Model has dangling references.

    Raises:
        ModelValidationError: With every problem found
    """
    errors = validate_references(model)
    if errors:
        raise ModelValidationError(errors)
    return model
