"""
Model types: the normalized, serializable form of flows.

Types are organized into submodules; everything is re-exported here.
"""

# App
from .app import (
    AppSchema,
    ClientServerNamesModel,
    Flow,
    FlowNamesModel,
    Integration,
    Model,
    SliceNamesModel,
    app_json_schema,
    parse_app,
)
from .base import ModelBase

# Data flow
from .data_flow import (
    ApiOrigin,
    DatabaseDestination,
    DatabaseOrigin,
    DataItem,
    DataSink,
    DataSource,
    Destination,
    IntegrationDestination,
    IntegrationMessage,
    IntegrationOrigin,
    MessageTarget,
    Origin,
    ProjectionOrigin,
    ReadModelOrigin,
    StreamDestination,
    TargetType,
    TopicDestination,
)

# Examples
from .examples import (
    REF_KEYS,
    ErrorOutcome,
    ErrorType,
    Example,
    MessageRef,
    Outcome,
    Rule,
    Spec,
)

# Messages
from .messages import (
    CommandMessage,
    EventMessage,
    EventSource,
    Message,
    MessageField,
    MessageKind,
    MessageMetadata,
    StateMessage,
    make_message,
)

# Slices
from .slices import (
    ClientBlock,
    ClientSpecs,
    CommandServer,
    CommandSlice,
    QueryServer,
    QuerySlice,
    ReactServer,
    ReactSlice,
    Slice,
    SliceKind,
)

__all__ = [
    # App
    "AppSchema",
    "ClientServerNamesModel",
    "Flow",
    "FlowNamesModel",
    "Integration",
    "Model",
    "SliceNamesModel",
    "app_json_schema",
    "parse_app",
    "ModelBase",
    # Data flow
    "ApiOrigin",
    "DatabaseDestination",
    "DatabaseOrigin",
    "DataItem",
    "DataSink",
    "DataSource",
    "Destination",
    "IntegrationDestination",
    "IntegrationMessage",
    "IntegrationOrigin",
    "MessageTarget",
    "Origin",
    "ProjectionOrigin",
    "ReadModelOrigin",
    "StreamDestination",
    "TargetType",
    "TopicDestination",
    # Examples
    "REF_KEYS",
    "ErrorOutcome",
    "ErrorType",
    "Example",
    "MessageRef",
    "Outcome",
    "Rule",
    "Spec",
    # Messages
    "CommandMessage",
    "EventMessage",
    "EventSource",
    "Message",
    "MessageField",
    "MessageKind",
    "MessageMetadata",
    "StateMessage",
    "make_message",
    # Slices
    "ClientBlock",
    "ClientSpecs",
    "CommandServer",
    "CommandSlice",
    "QueryServer",
    "QuerySlice",
    "ReactServer",
    "ReactSlice",
    "Slice",
    "SliceKind",
]
