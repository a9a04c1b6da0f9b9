"""
Data-flow types: sinks (outbound) and sources (inbound) declared on slices.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import Field

from .base import ModelBase


class TargetType(StrEnum):
    EVENT = "Event"
    COMMAND = "Command"
    STATE = "State"


class MessageTarget(ModelBase):
    """Target message with optional field selection."""

    type: TargetType
    name: str
    fields: dict[str, Any] | None = None


# =============================================================================
# Destinations
# =============================================================================


class StreamDestination(ModelBase):
    type: Literal["stream"] = "stream"
    pattern: str = Field(description="Stream pattern with interpolation (e.g. listing-${propertyId})")


class IntegrationMessage(ModelBase):
    name: str
    type: Literal["command", "query", "reaction"]


class IntegrationDestination(ModelBase):
    type: Literal["integration"] = "integration"
    systems: list[str]
    message: IntegrationMessage | None = None


class DatabaseDestination(ModelBase):
    type: Literal["database"] = "database"
    collection: str


class TopicDestination(ModelBase):
    type: Literal["topic"] = "topic"
    name: str


Destination = Annotated[
    Union[StreamDestination, IntegrationDestination, DatabaseDestination, TopicDestination],
    Field(discriminator="type"),
]


# =============================================================================
# Origins
# =============================================================================


class ProjectionOrigin(ModelBase):
    type: Literal["projection"] = "projection"
    name: str
    id_field: str = Field(description="Field from event used as the projection's unique identifier")


class ReadModelOrigin(ModelBase):
    type: Literal["readModel"] = "readModel"
    name: str


class DatabaseOrigin(ModelBase):
    type: Literal["database"] = "database"
    collection: str
    query: Any = None


class ApiOrigin(ModelBase):
    type: Literal["api"] = "api"
    endpoint: str
    method: str | None = None


class IntegrationOrigin(ModelBase):
    type: Literal["integration"] = "integration"
    systems: list[str]


Origin = Annotated[
    Union[ProjectionOrigin, ReadModelOrigin, DatabaseOrigin, ApiOrigin, IntegrationOrigin],
    Field(discriminator="type"),
]


# =============================================================================
# Sinks and sources
# =============================================================================


class DataSource(ModelBase):
    """Inbound data flow."""

    target: MessageTarget
    origin: Origin
    transform: str | None = None
    additional_instructions: str | None = Field(default=None, alias="_additionalInstructions")


class DataSink(ModelBase):
    """Outbound data flow."""

    target: MessageTarget
    destination: Destination
    transform: str | None = None
    additional_instructions: str | None = Field(default=None, alias="_additionalInstructions")
    with_state: DataSource | None = Field(default=None, alias="_withState")


DataItem = Union[DataSink, DataSource]
