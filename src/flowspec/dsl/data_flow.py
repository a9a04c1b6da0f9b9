"""
Data-flow builders: where a slice writes to (sinks) and reads from (sources).

::

    data([
        sink().event("ItemCreated").to_stream("item-${id}"),
        sink().command("Notify").to_integration(Mailer, "Notify", "command").with_state(
            source().state("Recipient").from_read_model("Recipients")
        ),
        source().state("Items").from_projection("ItemsProjection", "itemId"),
    ])
"""

from __future__ import annotations

from typing import Any

from ..core.model import (
    ApiOrigin,
    DatabaseDestination,
    DatabaseOrigin,
    DataSink,
    DataSource,
    IntegrationDestination,
    IntegrationMessage,
    IntegrationOrigin,
    MessageTarget,
    ProjectionOrigin,
    ReadModelOrigin,
    StreamDestination,
    TargetType,
    TopicDestination,
)
from .integrations import Integration, integration_name


class DataItemBuilder:
    """A finished sink or source; chain optional settings, then pass to ``data()``."""

    def __init__(self, item: DataSink | DataSource):
        self._item = item

    def additional_instructions(self, text: str) -> DataItemBuilder:
        self._item.additional_instructions = text
        return self

    def transform(self, name: str) -> DataItemBuilder:
        self._item.transform = name
        return self

    def build(self) -> DataSink | DataSource:
        return self._item


class DataSinkItem(DataItemBuilder):
    _item: DataSink

    def with_state(self, state: DataSourceItem | DataSource) -> DataSinkItem:
        self._item.with_state = state.build() if isinstance(state, DataSourceItem) else state
        return self

    def hints(self, text: str) -> DataSinkItem:
        self._item.additional_instructions = text
        return self


class DataSourceItem(DataItemBuilder):
    _item: DataSource


# =============================================================================
# Sinks
# =============================================================================


class _SinkTarget:
    def __init__(self, target_type: TargetType, name: str, fields: dict[str, Any] | None = None):
        self.target = MessageTarget(type=target_type, name=name, fields=fields)

    def _finish(self, destination: Any) -> DataSinkItem:
        return DataSinkItem(DataSink(target=self.target, destination=destination))

    def to_stream(self, pattern: str) -> DataSinkItem:
        return self._finish(StreamDestination(pattern=pattern))

    def to_database(self, collection: str) -> DataSinkItem:
        return self._finish(DatabaseDestination(collection=collection))

    def to_topic(self, name: str) -> DataSinkItem:
        return self._finish(TopicDestination(name=name))


class EventSinkBuilder(_SinkTarget):
    def to_integration(self, *systems: Integration | str) -> DataSinkItem:
        return self._finish(IntegrationDestination(systems=[integration_name(s) for s in systems]))


class CommandSinkBuilder(_SinkTarget):
    def to_integration(
        self,
        system: Integration | str,
        message_name: str | None = None,
        message_type: str | None = None,
    ) -> DataSinkItem:
        message = None
        if message_name is not None:
            message = IntegrationMessage(name=message_name, type=message_type or "command")
        return self._finish(IntegrationDestination(systems=[integration_name(system)], message=message))


class StateSinkBuilder(_SinkTarget):
    pass


class SinkBuilder:
    def event(self, name: str) -> EventSinkBuilder:
        return EventSinkBuilder(TargetType.EVENT, name)

    def command(self, name: str, fields: dict[str, Any] | None = None) -> CommandSinkBuilder:
        return CommandSinkBuilder(TargetType.COMMAND, name, fields)

    def state(self, name: str) -> StateSinkBuilder:
        return StateSinkBuilder(TargetType.STATE, name)


def sink() -> SinkBuilder:
    return SinkBuilder()


# =============================================================================
# Sources
# =============================================================================


class StateSourceBuilder:
    def __init__(self, name: str):
        self.target = MessageTarget(type=TargetType.STATE, name=name)

    def _finish(self, origin: Any) -> DataSourceItem:
        return DataSourceItem(DataSource(target=self.target, origin=origin))

    def from_projection(self, name: str, id_field: str) -> DataSourceItem:
        return self._finish(ProjectionOrigin(name=name, id_field=id_field))

    def from_read_model(self, name: str) -> DataSourceItem:
        return self._finish(ReadModelOrigin(name=name))

    def from_database(self, collection: str, query: Any = None) -> DataSourceItem:
        return self._finish(DatabaseOrigin(collection=collection, query=query))

    def from_api(self, endpoint: str, method: str | None = None) -> DataSourceItem:
        return self._finish(ApiOrigin(endpoint=endpoint, method=method))

    def from_integration(self, *systems: Integration | str) -> DataSourceItem:
        return self._finish(IntegrationOrigin(systems=[integration_name(s) for s in systems]))


class SourceBuilder:
    def state(self, name: str) -> StateSourceBuilder:
        return StateSourceBuilder(name)


def source() -> SourceBuilder:
    return SourceBuilder()
