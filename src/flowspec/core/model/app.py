"""
Aggregate roots: Flow, Model and the progressive planning variants.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter

from .base import ModelBase
from .messages import Message
from .slices import Slice, SliceKind


class Integration(ModelBase):
    name: str = Field(description="Integration name (e.g. MailChimp, Twilio)")
    description: str | None = None
    source: str = Field(description="Integration module source (e.g. mailchimp_integration)")


class Flow(ModelBase):
    """Business flow containing related slices."""

    name: str
    id: str | None = Field(default=None, description="Optional unique identifier for the flow")
    description: str | None = None
    slices: list[Slice] = Field(default_factory=list)
    source_file: str | None = Field(default=None, exclude=True)


class Model(ModelBase):
    """
    Full specification: flows, the messages they reference and the
    integrations they depend on.
    """

    variant: Literal["specs"] = Field(default="specs", description="Full specification with all details")
    flows: list[Flow] = Field(default_factory=list)
    messages: list[Message] = Field(default_factory=list)
    integrations: list[Integration] | None = None

    def message(self, name: str) -> Any:
        """Return the message named ``name`` or None."""
        return next((m for m in self.messages if m.name == name), None)


# =============================================================================
# Planning variants
# =============================================================================


class FlowName(ModelBase):
    name: str
    id: str | None = None
    description: str | None = None


class SliceName(ModelBase):
    name: str
    id: str | None = None
    description: str | None = None
    type: SliceKind


class FlowWithSliceNames(FlowName):
    slices: list[SliceName] = Field(default_factory=list)


class DescriptionBlock(ModelBase):
    description: str


class ClientServerNamesSlice(SliceName):
    client: DescriptionBlock | None = None
    server: DescriptionBlock | None = None


class FlowWithClientServerNames(FlowName):
    slices: list[ClientServerNamesSlice] = Field(default_factory=list)


class FlowNamesModel(ModelBase):
    variant: Literal["flow-names"] = Field(default="flow-names", description="Just flow names for initial ideation")
    flows: list[FlowName] = Field(default_factory=list)


class SliceNamesModel(ModelBase):
    variant: Literal["slice-names"] = Field(
        default="slice-names", description="Flows with slice names for structure planning"
    )
    flows: list[FlowWithSliceNames] = Field(default_factory=list)


class ClientServerNamesModel(ModelBase):
    variant: Literal["client-server-names"] = Field(
        default="client-server-names", description="Flows with client/server descriptions"
    )
    flows: list[FlowWithClientServerNames] = Field(default_factory=list)


AppSchema = Annotated[
    Union[FlowNamesModel, SliceNamesModel, ClientServerNamesModel, Model],
    Field(discriminator="variant"),
]

_app_adapter: TypeAdapter[Any] = TypeAdapter(AppSchema)


def parse_app(data: dict[str, Any]) -> FlowNamesModel | SliceNamesModel | ClientServerNamesModel | Model:
    """
    Validate any variant of the app schema.

    Raises:
        pydantic.ValidationError: If the data matches no variant
    """
    return _app_adapter.validate_python(data)


def app_json_schema() -> dict[str, Any]:
    """JSON Schema covering every variant."""
    return _app_adapter.json_schema(by_alias=True)
