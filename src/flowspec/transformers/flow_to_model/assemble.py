"""
Final Model assembly.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ...core.model import Flow, Integration, Model


def assemble_model(
    flows: list[Flow],
    messages: Mapping[str, Any],
    integrations: list[Integration],
) -> Model:
    return Model(
        flows=flows,
        messages=list(messages.values()),
        integrations=integrations or None,
    )
