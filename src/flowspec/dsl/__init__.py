"""
The flow authoring DSL.

Flow files import these names from ``flowspec``; calling them records flows
on the active registry.
"""

from .builders import ExampleBuilder, SliceBuilder
from .data_flow import DataItemBuilder, DataSinkItem, DataSourceItem, sink, source
from .flow import client, command, data, example, flow, query, react, rule, server, should, specs
from .graphql import gql
from .integrations import Integration, create_integration
from .messages import Command, Event, MessageType, State, message_kind, message_name
from .registry import Registry, current_registry

__all__ = [
    "Command",
    "DataItemBuilder",
    "DataSinkItem",
    "DataSourceItem",
    "Event",
    "ExampleBuilder",
    "Integration",
    "MessageType",
    "Registry",
    "SliceBuilder",
    "State",
    "client",
    "command",
    "create_integration",
    "current_registry",
    "data",
    "example",
    "flow",
    "gql",
    "message_kind",
    "message_name",
    "query",
    "react",
    "rule",
    "server",
    "should",
    "sink",
    "source",
    "specs",
]
