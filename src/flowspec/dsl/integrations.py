"""
External systems a slice may depend on.

Integrations are ordinary module-level values::

    ProductCatalog = create_integration("product-catalog", "ProductCatalog")

After a module runs, every Integration in its namespace is registered under
the variable name it is bound to.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .messages import MessageType


@dataclass(frozen=True)
class Integration:
    """
    A named external system.

    Attributes:
        type: Integration kind (e.g. "product-catalog")
        name: Name used by ``via`` and data items
        messages: Message types the integration contributes to the Model
    """

    type: str
    name: str
    messages: tuple[MessageType, ...] = field(default=(), compare=False)


def create_integration(type: str, name: str, messages: tuple[MessageType, ...] | list[MessageType] = ()) -> Integration:
    return Integration(type=type, name=name, messages=tuple(messages))


def integration_name(value: Integration | str) -> str:
    return value.name if isinstance(value, Integration) else value
