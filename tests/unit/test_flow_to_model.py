"""Tests for the flow -> Model transformer."""

from __future__ import annotations

import logging

import pytest

from flowspec.core.model import (
    CommandServer,
    CommandSlice,
    Example,
    Flow,
    MessageField,
    MessageKind,
    MessageRef,
    Model,
    Rule,
    Spec,
    make_message,
)
from flowspec.core.type_extractor import INFERRED_TYPE, Classification, DataField, TypeInfo
from flowspec.core.validator import validate_references
from flowspec.core.vfs import InMemoryFileStore
from flowspec.dsl import Event, Registry, command, create_integration, data, flow, sink, source, server
from flowspec.get_flows import get_flows
from flowspec.transformers import flows_to_model, resolve_inferred_type
from flowspec.transformers.flow_to_model.example_shapes import (
    apply_example_shape_hints,
    collect_example_hints,
    should_apply_example_shape,
    type_from_example,
)
from flowspec.transformers.flow_to_model.inlining import inline_type_string

ORDERS_FLOW = '''\
from flowspec import Command, Event, example, flow, react, rule, server, specs

PlaceOrder = Command["PlaceOrder", {"orderId": str}]
OrderPlaced = Event["OrderPlaced", {"orderId": str}]

with flow("orders"):
    with react("Auto place"):
        with server():
            with specs("Automation"):
                with rule("Carts become orders"):
                    example("cart checked out").when[PlaceOrder]({"orderId": "o1"}).then[OrderPlaced](
                        {"orderId": "o1"}
                    )
'''

LISTING_FLOW = '''\
from typing import Literal, TypedDict

from flowspec import example, flow, query, rule, server, specs


class ItemsListedData(TypedDict):
    items: list[str]


class ItemsListed(TypedDict):
    type: Literal["ItemsListed"]
    data: ItemsListedData


with flow("listing"):
    with query("List items"):
        with server():
            with specs("Listing"):
                with rule("Items are listed"):
                    example("one item").then[ItemsListed]({"items": ["a"]})
'''


async def model_for(files: dict[str, str]) -> Model:
    result = await get_flows(InMemoryFileStore(files), "/proj")
    return result.to_model()


def first_example(model: Model, slice_index: int = 0) -> Example:
    return model.flows[0].slices[slice_index].server.specs.rules[0].examples[0]


def info(name: str, classification: Classification, *fields: str, explicit: bool = True) -> TypeInfo:
    return TypeInfo(name, classification, [DataField(f, "string") for f in fields], explicit, name)


# =============================================================================
# End to end
# =============================================================================


class TestItemsFlow:
    @pytest.mark.asyncio
    async def test_messages_and_refs(self, items_source: str):
        model = await model_for({"/proj/items.flow.py": items_source})
        wire = model.to_dict()

        assert [m["name"] for m in wire["messages"]] == ["CreateItem", "ItemCreated"]
        create, created = wire["messages"]
        assert create["type"] == "command"
        assert create["fields"] == [
            {"name": "itemId", "type": "string", "required": True},
            {"name": "description", "type": "string", "required": True},
        ]
        assert create["metadata"] == {"version": 1}
        assert created["type"] == "event"
        assert created["source"] == "internal"
        assert [f["type"] for f in created["fields"]] == ["string", "string", "Date"]

        example = first_example(model)
        assert example.when.command_ref == "CreateItem"
        assert example.then[0].event_ref == "ItemCreated"
        assert "integrations" not in wire
        assert validate_references(model) == []

    @pytest.mark.asyncio
    async def test_slice_shape(self, items_source: str):
        model = await model_for({"/proj/items.flow.py": items_source})
        slice_ = model.to_dict()["flows"][0]["slices"][0]
        assert slice_["type"] == "command"
        assert slice_["stream"] == "item-${id}"
        assert slice_["client"]["specs"] == {
            "name": "A form that allows users to add items",
            "rules": ["have fields for id and description"],
        }
        assert slice_["server"]["specs"]["name"] == "Create item"

    @pytest.mark.asyncio
    async def test_transformation_is_deterministic(self, items_source: str):
        result = await get_flows(InMemoryFileStore({"/proj/items.flow.py": items_source}), "/proj")
        assert result.to_model().to_dict() == result.to_model().to_dict()


class TestInferredTypes:
    @pytest.mark.asyncio
    async def test_untyped_then_resolves_to_state(self, products_source: str):
        model = await model_for({"/proj/catalog.flow.py": products_source})
        example = first_example(model)
        assert example.given[0].event_ref == "ProductsImported"
        assert example.then[0].state_ref == "AvailableProducts"
        assert validate_references(model) == []

    @pytest.mark.asyncio
    async def test_named_shapes_are_inlined(self, products_source: str):
        model = await model_for({"/proj/catalog.flow.py": products_source})
        expected = "Array<{ productId: string; name: string; price: number }>"
        assert model.message("ProductsImported").fields[0].type == expected
        assert model.message("AvailableProducts").fields[0].type == expected
        assert model.message("Product") is None

    @pytest.mark.asyncio
    async def test_input_flows_are_not_mutated(self, products_source: str):
        result = await get_flows(InMemoryFileStore({"/proj/catalog.flow.py": products_source}), "/proj")
        result.to_model()
        untouched = result.flows[0].slices[0].server.specs.rules[0].examples[0]
        assert untouched.then[0].state_ref == INFERRED_TYPE

    @pytest.mark.asyncio
    async def test_unresolvable_placeholder_is_kept(self):
        source = (
            "from flowspec import command, example, flow, rule, server, specs\n"
            'with flow("empty"):\n'
            '    with command("Do"):\n'
            "        with server():\n"
            '            with specs("s"):\n'
            '                with rule("r"):\n'
            '                    example("e").when({"x": 1})\n'
        )
        model = await model_for({"/proj/empty.flow.py": source})
        assert first_example(model).when.command_ref == INFERRED_TYPE
        assert model.messages == []
        assert validate_references(model) == ["empty / Do / 'e': unresolved InferredType reference"]


class TestClassification:
    @pytest.mark.asyncio
    async def test_explicit_type_moves_the_ref(self):
        model = await model_for({"/proj/orders.flow.py": ORDERS_FLOW})
        example = first_example(model)
        assert example.when[0].command_ref == "PlaceOrder"
        assert example.when[0].event_ref is None
        assert example.then[0].event_ref == "OrderPlaced"
        assert model.message("PlaceOrder").kind == MessageKind.COMMAND
        assert model.message("OrderPlaced").kind == MessageKind.EVENT
        assert validate_references(model) == []

    @pytest.mark.asyncio
    async def test_heuristic_type_keeps_position_and_warns(self, caplog: pytest.LogCaptureFixture):
        caplog.set_level(logging.WARNING)
        model = await model_for({"/proj/listing.flow.py": LISTING_FLOW})
        assert first_example(model).then[0].state_ref == "ItemsListed"
        listed = model.message("ItemsListed")
        assert listed.kind == MessageKind.STATE
        assert [f.name for f in listed.fields] == ["items"]
        assert "ItemsListed is named like a event but used as a state" in caplog.text


# =============================================================================
# Type resolution
# =============================================================================


class TestResolveInferredType:
    def test_named_refs_are_unchanged(self):
        assert resolve_inferred_type("ItemCreated", "event", {}, {}) == "ItemCreated"

    def test_single_candidate_of_expected_kind(self):
        types = {
            "CreateItem": info("CreateItem", Classification.COMMAND, "itemId"),
            "ItemCreated": info("ItemCreated", Classification.EVENT, "id"),
        }
        assert resolve_inferred_type(INFERRED_TYPE, "event", {"unrelated": 1}, types) == "ItemCreated"

    def test_exact_match_beats_superset(self):
        types = {
            "Wide": info("Wide", Classification.EVENT, "id", "name", "extra"),
            "Exact": info("Exact", Classification.EVENT, "id", "name"),
        }
        assert resolve_inferred_type(INFERRED_TYPE, "event", {"id": "1", "name": "n"}, types) == "Exact"

    def test_declaration_order_breaks_ties(self):
        types = {
            "First": info("First", Classification.EVENT, "id"),
            "Second": info("Second", Classification.EVENT, "id"),
        }
        assert resolve_inferred_type(INFERRED_TYPE, "event", {"id": "1"}, types) == "First"

    def test_envelope_data_keys_match(self):
        envelope = TypeInfo(
            "ItemList", Classification.STATE, [DataField("data", "{ items: Array<string> }")], True, "ItemList"
        )
        other = info("Other", Classification.STATE, "count")
        types = {"Other": other, "ItemList": envelope}
        assert resolve_inferred_type(INFERRED_TYPE, "state", {"items": []}, types) == "ItemList"

    def test_falls_back_to_any_classification(self):
        types = {
            "A": info("A", Classification.COMMAND, "x"),
            "B": info("B", Classification.COMMAND, "y"),
        }
        assert resolve_inferred_type(INFERRED_TYPE, "event", {"y": 1}, types) == "B"

    def test_placeholder_kept_without_match(self):
        types = {
            "A": info("A", Classification.EVENT, "x"),
            "B": info("B", Classification.EVENT, "y"),
        }
        assert resolve_inferred_type(INFERRED_TYPE, "event", {"z": 1}, types) == INFERRED_TYPE

    def test_empty_data_keeps_placeholder(self):
        types = {
            "ItemCreated": info("ItemCreated", Classification.EVENT, "id"),
            "ItemList": info("ItemList", Classification.STATE, "items"),
        }
        assert resolve_inferred_type(INFERRED_TYPE, Classification.COMMAND, {}, types) == INFERRED_TYPE

    def test_fieldless_types_never_match(self):
        types = {
            "Ping": info("Ping", Classification.EVENT),
            "Pong": info("Pong", Classification.EVENT),
        }
        assert resolve_inferred_type(INFERRED_TYPE, "event", {"id": 1}, types) == INFERRED_TYPE

    def test_flow_file_is_preferred_by_name(self):
        example = Example(
            description="e",
            when=MessageRef(command_ref=INFERRED_TYPE, example_data={"orderId": "o1"}),
        )
        orders = Flow(
            name="Orders",
            slices=[
                CommandSlice(
                    name="Place",
                    server=CommandServer(specs=Spec(rules=[Rule(description="r", examples=[example])])),
                )
            ],
        )
        types_by_file = {
            "/proj/other.flow.py": {"CancelOrder": info("CancelOrder", Classification.COMMAND, "orderId")},
            "/proj/orders_flow.py": {"PlaceOrder": info("PlaceOrder", Classification.COMMAND, "orderId")},
        }
        model = flows_to_model([orders], types_by_file)
        assert first_example(model).when.command_ref == "PlaceOrder"


# =============================================================================
# Example shapes and inlining
# =============================================================================


class TestExampleShapes:
    def test_type_from_example(self):
        assert type_from_example([{"id": "a", "n": 1}]) == "Array<{ id: string; n: number }>"
        assert type_from_example([]) == "Array<unknown>"
        assert type_from_example(True) == "boolean"

    def test_only_structural_replaces_non_structural(self):
        assert should_apply_example_shape("Array<unknown>", "Array<{ id: string }>")
        assert not should_apply_example_shape("Array<{ id: string }>", "Array<unknown>")
        assert not should_apply_example_shape("string | null", "{ a: string }")

    def test_hints_upgrade_weak_fields(self):
        hints: dict[str, dict[str, str]] = {}
        collect_example_hints("Imported", {"rows": []}, hints)
        collect_example_hints("Imported", {"rows": [{"id": "r1"}]}, hints)
        collect_example_hints("Imported", {"rows": []}, hints)
        assert hints["Imported"]["rows"] == "Array<{ id: string }>"

        messages = {"Imported": make_message("event", "Imported", [MessageField(name="rows", type="Array<unknown>")])}
        apply_example_shape_hints(messages, hints)
        assert messages["Imported"].fields[0].type == "Array<{ id: string }>"


class TestInlining:
    lookup = {
        "Product": [DataField("id", "string"), DataField("tags", "Array<Tag>", required=False)],
        "Tag": [DataField("label", "string")],
        "Node": [DataField("next", "Node")],
    }

    def test_nested_shapes(self):
        assert inline_type_string("Array<Product>", self.lookup) == (
            "Array<{ id: string; tags?: Array<{ label: string }> }>"
        )

    def test_unknown_in_union_becomes_null(self):
        assert inline_type_string("Tag | unknown", self.lookup) == "{ label: string } | null"

    def test_untouched_types(self):
        assert inline_type_string("string", self.lookup) is None
        assert inline_type_string("Missing", self.lookup) is None

    def test_cycles_stay_named(self):
        assert inline_type_string("Node", self.lookup) == "{ next: Node }"


# =============================================================================
# Integrations
# =============================================================================


class TestIntegrations:
    def _flows(self, registry: Registry):
        mailer = create_integration("email", "Mailer", [Event["EmailBounced", {"address": str}]])
        with registry.activate():
            with flow("notify"):
                with command("Send welcome").via(mailer):
                    with server():
                        data(
                            [
                                sink()
                                .command("SendEmail")
                                .to_integration(mailer, "SendEmail", "command")
                                .with_state(source().state("Recipient").from_integration("Crm")),
                            ]
                        )
        return mailer

    def test_names_are_normalized_to_export_names(self, registry: Registry):
        mailer = self._flows(registry)
        model = flows_to_model(
            registry.flows,
            integrations=[mailer],
            export_names={"Mailer": "mailer"},
            integration_sources={"Mailer": ".mailer_integration"},
        )
        wire = model.to_dict()
        assert wire["integrations"] == [
            {"name": "mailer", "description": "mailer integration", "source": ".mailer_integration"},
            {"name": "Crm", "description": "Crm integration", "source": "crm_integration"},
        ]
        slice_ = wire["flows"][0]["slices"][0]
        assert slice_["via"] == ["mailer"]
        assert slice_["server"]["data"][0]["destination"]["systems"] == ["mailer"]

    def test_integration_and_destination_messages(self, registry: Registry):
        mailer = self._flows(registry)
        model = flows_to_model(registry.flows, integrations=[mailer])
        bounced = model.message("EmailBounced")
        assert bounced.kind == MessageKind.EVENT
        assert bounced.to_dict()["source"] == "external"
        assert [(f.name, f.type) for f in bounced.fields] == [("address", "string")]
        assert model.message("SendEmail").kind == MessageKind.COMMAND

    def test_registered_but_unused_integrations_are_listed(self):
        model = flows_to_model([], integrations=[create_integration("sms", "Twilio")])
        assert [i.name for i in model.integrations] == ["Twilio"]
        assert model.integrations[0].source == "twilio_integration"
