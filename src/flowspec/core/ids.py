"""
Stable identifiers for flows, slices and rules.

Ids let two builds of the same project be diffed entity by entity. Anything
declared without one gets an ``AUTO-`` id; ids already present are kept.
"""

from __future__ import annotations

import secrets
import string

from .model import Model

AUTO_ID_PREFIX = "AUTO-"
AUTO_ID_LENGTH = 9

_ALPHABET = string.ascii_letters + string.digits + "_"


def generate_auto_id() -> str:
    """Return a random id like ``AUTO-a1B2c3_D4``."""
    return AUTO_ID_PREFIX + "".join(secrets.choice(_ALPHABET) for _ in range(AUTO_ID_LENGTH))


def add_auto_ids(model: Model) -> Model:
    """
    Return a copy of ``model`` where every flow, slice and rule has an id.

    The input model is not modified.
    """
    result = model.model_copy(deep=True)
    for flow in result.flows:
        flow.id = flow.id or generate_auto_id()
        for slice_ in flow.slices:
            slice_.id = slice_.id or generate_auto_id()
            for rule in slice_.server.specs.rules:
                rule.id = rule.id or generate_auto_id()
    return result


def has_all_ids(model: Model) -> bool:
    """Whether every flow, slice and rule carries a non-empty id."""
    for flow in model.flows:
        if not flow.id:
            return False
        for slice_ in flow.slices:
            if not slice_.id:
                return False
            if any(not rule.id for rule in slice_.server.specs.rules):
                return False
    return True
