"""
Slice types: command, query and react units of a flow.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal, Union

from pydantic import Field

from .base import ModelBase
from .data_flow import DataSink, DataSource
from .examples import Spec


class SliceKind(StrEnum):
    COMMAND = "command"
    QUERY = "query"
    REACT = "react"


class ClientSpecs(ModelBase):
    """UI-facing ``should`` statements, grouped under a spec name."""

    name: str = ""
    rules: list[str] = Field(default_factory=list)


class ClientBlock(ModelBase):
    description: str = ""
    specs: ClientSpecs | None = None


class CommandServer(ModelBase):
    description: str = ""
    data: list[DataSink] | None = Field(default=None, description="Data sinks for command slices")
    specs: Spec = Field(default_factory=Spec)


class QueryServer(ModelBase):
    description: str = ""
    data: list[DataSource] | None = Field(default=None, description="Data sources for query slices")
    specs: Spec = Field(default_factory=Spec)


class ReactServer(ModelBase):
    description: str | None = None
    data: list[DataSink | DataSource] | None = Field(
        default=None, description="Data items for react slices (mix of sinks and sources)"
    )
    specs: Spec = Field(default_factory=Spec)


class _SliceBase(ModelBase):
    name: str
    id: str | None = Field(default=None, description="Optional unique identifier for the slice")
    description: str | None = None
    stream: str | None = Field(default=None, description="Event stream pattern for this slice")
    via: list[str] | None = Field(default=None, description="Integration names used by this slice")
    additional_instructions: str | None = None

    @property
    def kind(self) -> SliceKind:
        return SliceKind(self.type)  # type: ignore[attr-defined]


class CommandSlice(_SliceBase):
    """Command slice handling user actions and business logic."""

    type: Literal["command"] = "command"
    client: ClientBlock = Field(default_factory=ClientBlock)
    request: str | None = Field(default=None, description="Command request (GraphQL or other query format)")
    server: CommandServer = Field(default_factory=CommandServer)


class QuerySlice(_SliceBase):
    """Query slice for reading data and maintaining projections."""

    type: Literal["query"] = "query"
    client: ClientBlock = Field(default_factory=ClientBlock)
    request: str | None = Field(default=None, description="Query request (GraphQL or other query format)")
    server: QueryServer = Field(default_factory=QueryServer)


class ReactSlice(_SliceBase):
    """React slice for automated responses to events."""

    type: Literal["react"] = "react"
    server: ReactServer = Field(default_factory=ReactServer)


Slice = Annotated[
    Union[CommandSlice, QuerySlice, ReactSlice],
    Field(discriminator="type"),
]

SLICE_CLASSES: dict[SliceKind, type[_SliceBase]] = {
    SliceKind.COMMAND: CommandSlice,
    SliceKind.QUERY: QuerySlice,
    SliceKind.REACT: ReactSlice,
}
