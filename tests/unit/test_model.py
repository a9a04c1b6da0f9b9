"""Tests for the pydantic Model types and their wire form."""

import pytest
from pydantic import ValidationError

from flowspec.core.model import (
    CommandSlice,
    EventMessage,
    Example,
    Flow,
    MessageKind,
    MessageRef,
    Model,
    QuerySlice,
    app_json_schema,
    make_message,
    parse_app,
)


class TestMessageRef:
    def test_exactly_one_ref_key(self):
        with pytest.raises(ValidationError):
            MessageRef(event_ref="A", command_ref="B")
        with pytest.raises(ValidationError):
            MessageRef(example_data={"x": 1})

    def test_kind_and_name(self):
        ref = MessageRef(state_ref="ItemList")
        assert ref.kind == MessageKind.STATE
        assert ref.name == "ItemList"

    def test_retarget_moves_the_key(self):
        ref = MessageRef(event_ref="PlaceOrder", example_data={"id": "o1"})
        ref.retarget(MessageKind.COMMAND)
        assert ref.event_ref is None
        assert ref.command_ref == "PlaceOrder"
        assert ref.to_dict() == {"commandRef": "PlaceOrder", "exampleData": {"id": "o1"}}

    def test_retarget_can_rename(self):
        ref = MessageRef(event_ref="InferredType")
        ref.retarget("event", "ItemCreated")
        assert ref.event_ref == "ItemCreated"


class TestWireForm:
    def test_camel_case_and_omitted_optionals(self):
        slice_ = CommandSlice(name="Create item", stream="item-${id}")
        data = slice_.to_dict()
        assert data["type"] == "command"
        assert data["stream"] == "item-${id}"
        assert "id" not in data
        assert "via" not in data
        assert "additionalInstructions" not in data

    def test_none_inside_example_data_is_kept(self):
        ref = MessageRef(event_ref="X", example_data={"note": None})
        assert ref.to_dict()["exampleData"] == {"note": None}

    def test_source_file_is_not_serialized(self):
        flow = Flow(name="items", source_file="/proj/items.flow.py")
        assert "sourceFile" not in flow.to_dict()

    def test_accepts_camel_case_input(self):
        slice_ = QuerySlice.model_validate({"name": "List", "additionalInstructions": "cache"})
        assert slice_.additional_instructions == "cache"

    def test_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            Flow.model_validate({"name": "items", "owner": "me"})


class TestMessages:
    def test_make_message_picks_the_class(self):
        message = make_message("event", "ItemCreated")
        assert isinstance(message, EventMessage)
        assert message.kind == MessageKind.EVENT
        assert message.to_dict()["source"] == "internal"

    def test_discriminated_union_on_input(self):
        model = Model.model_validate(
            {"messages": [{"type": "state", "name": "ItemList", "fields": [{"name": "items", "type": "Array<string>"}]}]}
        )
        assert model.message("ItemList").kind == MessageKind.STATE
        assert model.message("Missing") is None


class TestExample:
    def test_refs_in_order(self):
        example = Example(
            description="d",
            given=[MessageRef(event_ref="A")],
            when=[MessageRef(event_ref="B"), MessageRef(event_ref="C")],
            then=[MessageRef(state_ref="D"), {"errorType": "NotFoundError"}],
        )
        assert [r.name for r in example.refs()] == ["A", "B", "C", "D"]


class TestAppSchema:
    def test_variants(self):
        assert parse_app({"variant": "flow-names", "flows": [{"name": "items"}]}).variant == "flow-names"
        assert isinstance(parse_app({"variant": "specs"}), Model)

    def test_unknown_variant_fails(self):
        with pytest.raises(ValidationError):
            parse_app({"variant": "nope"})

    def test_json_schema_uses_aliases(self):
        schema = app_json_schema()
        rendered = str(schema)
        assert "exampleData" in rendered
        assert "flow-names" in rendered
