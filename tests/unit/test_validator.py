"""Tests for Model reference validation."""

import pytest

from flowspec.core.errors import ModelValidationError
from flowspec.core.model import (
    CommandServer,
    CommandSlice,
    DataSink,
    Example,
    Flow,
    Integration,
    MessageRef,
    Model,
    QuerySlice,
    Rule,
    Spec,
    make_message,
)
from flowspec.core.validator import ensure_valid, validate_references


def model_with(*refs: MessageRef, messages=(), via=None, integrations=None) -> Model:
    example = Example(description="e", given=list(refs))
    slice_ = CommandSlice(
        name="s",
        via=via,
        server=CommandServer(specs=Spec(rules=[Rule(description="r", examples=[example])])),
    )
    return Model(flows=[Flow(name="f", slices=[slice_])], messages=list(messages), integrations=integrations)


class TestValidateReferences:
    def test_consistent_model(self):
        model = model_with(MessageRef(event_ref="A"), messages=[make_message("event", "A")])
        assert validate_references(model) == []

    def test_placeholder(self):
        model = model_with(MessageRef(event_ref="InferredType"))
        assert validate_references(model) == ["f / s / 'e': unresolved InferredType reference"]

    def test_missing_message(self):
        model = model_with(MessageRef(event_ref="Ghost"))
        assert validate_references(model) == ["f / s / 'e': 'Ghost' has no message definition"]

    def test_kind_mismatch(self):
        model = model_with(MessageRef(event_ref="A"), messages=[make_message("command", "A")])
        assert validate_references(model) == [
            "f / s / 'e': 'A' is referenced as event but declared as command"
        ]

    def test_undeclared_integration(self):
        model = model_with(via=["Mailer"], integrations=[Integration(name="Sms", source="sms_integration")])
        assert validate_references(model) == ["f / s: integration 'Mailer' is not declared"]

    def test_query_sinks(self):
        sink = DataSink.model_validate(
            {"target": {"type": "Event", "name": "X"}, "destination": {"type": "stream", "pattern": "x"}}
        )
        query = QuerySlice(name="q")
        query.server.data = [sink]
        model = Model(flows=[Flow(name="f", slices=[query])])
        assert validate_references(model) == ["f / q: query slices cannot have data sinks"]


class TestEnsureValid:
    def test_returns_valid_model(self):
        model = model_with(MessageRef(state_ref="A"), messages=[make_message("state", "A")])
        assert ensure_valid(model) is model

    def test_raises_with_every_error(self):
        model = model_with(MessageRef(event_ref="Ghost"), MessageRef(event_ref="InferredType"))
        with pytest.raises(ModelValidationError) as exc_info:
            ensure_valid(model)
        assert len(exc_info.value.errors) == 2
        assert "Model validation failed" in str(exc_info.value)
