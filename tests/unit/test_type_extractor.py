"""Tests for message type extraction and the field type language."""

import ast
from datetime import datetime
from typing import Literal, NotRequired

from flowspec.core.type_extractor import (
    Classification,
    classify_by_name,
    parse_shape_definitions,
    parse_type_definitions,
)
from flowspec.core.type_strings import (
    annotation_to_type,
    array_inner,
    is_object_type,
    parse_object_members,
    record_args,
    referenced_names,
    runtime_field_type,
    split_top_level,
)


def ann(text: str) -> str:
    return annotation_to_type(ast.parse(text, mode="eval").body)


# =============================================================================
# Annotation conversion
# =============================================================================


class TestAnnotationToType:
    def test_primitives(self):
        assert ann("str") == "string"
        assert ann("int") == "number"
        assert ann("float") == "number"
        assert ann("bool") == "boolean"
        assert ann("datetime") == "Date"
        assert ann("Any") == "unknown"
        assert ann("None") == "null"

    def test_containers(self):
        assert ann("list[str]") == "Array<string>"
        assert ann("tuple[int, ...]") == "Array<number>"
        assert ann("dict[str, int]") == "Record<string, number>"
        assert ann("list") == "Array<unknown>"

    def test_optional_and_unions(self):
        assert ann("Optional[str]") == "string | null"
        assert ann("str | None") == "string | null"
        assert ann("Union[int, float]") == "number"

    def test_literals(self):
        assert ann('Literal["open", "closed"]') == '"open" | "closed"'

    def test_inline_dict(self):
        assert ann('{"a": str, "b": NotRequired[int]}') == "{ a: string; b?: number }"

    def test_forward_reference_is_parsed(self):
        assert ann('"list[Item]"') == "Array<Item>"

    def test_named_types_stay_named(self):
        assert ann("Product") == "Product"
        assert ann("models.Product") == "Product"


class TestTypeStringHelpers:
    def test_split_respects_nesting(self):
        assert split_top_level("A | Array<B | C> | { x: D | E }", "|") == [
            "A",
            "Array<B | C>",
            "{ x: D | E }",
        ]

    def test_object_detection(self):
        assert is_object_type("{ a: string }")
        assert not is_object_type("{ a: string } | { b: number }")

    def test_array_inner(self):
        assert array_inner("Array<Array<string>>") == "Array<string>"
        assert array_inner("Array<string> | null") is None

    def test_record_args(self):
        assert record_args("Record<string, Array<number>>") == ("string", "Array<number>")

    def test_parse_object_members(self):
        assert parse_object_members("{ id: string; tags?: Array<string> }") == [
            ("id", "string", True),
            ("tags", "Array<string>", False),
        ]

    def test_referenced_names_skip_keys_and_primitives(self):
        assert referenced_names("{ item: Item; count: number; tags: Array<Tag> }") == ["Item", "Tag"]


class TestRuntimeFieldType:
    def test_builtins(self):
        assert runtime_field_type(str) == ("string", True)
        assert runtime_field_type(datetime) == ("Date", True)

    def test_not_required(self):
        assert runtime_field_type(NotRequired[int]) == ("number", False)

    def test_generics(self):
        assert runtime_field_type(list[str]) == ("Array<string>", True)
        assert runtime_field_type(dict[str, float]) == ("Record<string, number>", True)
        assert runtime_field_type(str | None) == ("string | null", True)

    def test_literal(self):
        assert runtime_field_type(Literal["a", "b"]) == ('"a" | "b"', True)

    def test_inline_dict(self):
        assert runtime_field_type({"id": str, "note": NotRequired[str]}) == ("{ id: string; note?: string }", True)

    def test_string_annotation(self):
        assert runtime_field_type("list[Item]") == ("Array<Item>", True)


# =============================================================================
# Declarations
# =============================================================================


class TestParseTypeDefinitions:
    def test_marker_subscripts(self):
        types = parse_type_definitions(
            'CreateItem = Command["CreateItem", {"itemId": str, "note": NotRequired[str]}]\n'
            'ItemCreated = Event["ItemCreated", {"id": str}]\n'
            'ItemList = State["ItemList", {"items": list[str]}]\n'
        )
        assert list(types) == ["CreateItem", "ItemCreated", "ItemList"]
        create = types["CreateItem"]
        assert create.classification == Classification.COMMAND
        assert create.explicit
        assert [(f.name, f.type, f.required) for f in create.data_fields] == [
            ("itemId", "string", True),
            ("note", "string", False),
        ]
        assert types["ItemList"].data_fields[0].type == "Array<string>"

    def test_name_like_discriminator_is_kept(self):
        types = parse_type_definitions('CreateItem = Command["CreateItem", {"itemId": str}]')
        assert types["CreateItem"].field_names == ["itemId"]

    def test_quoted_literal_discriminator(self):
        types = parse_type_definitions(
            "class ItemsListedData(TypedDict):\n"
            "    items: list[str]\n"
            "\n"
            "class ItemsListed(TypedDict):\n"
            "    type: 'Literal[\"ItemsListed\"]'\n"
            "    data: ItemsListedData\n"
        )
        assert types["ItemsListed"].field_names == ["items"]

    def test_discriminator_differs_from_variable(self):
        types = parse_type_definitions('Create = Command["CreateItem", {"id": str}]')
        assert types["CreateItem"].declared_name == "Create"

    def test_marker_with_named_data(self):
        types = parse_type_definitions(
            "class CreateItemData(TypedDict):\n"
            "    itemId: str\n"
            "\n"
            'CreateItem = Command["CreateItem", CreateItemData]\n'
        )
        assert types["CreateItem"].field_names == ["itemId"]

    def test_annotated_alias(self):
        types = parse_type_definitions('CreateItem: TypeAlias = Command["CreateItem", {"id": str}]')
        assert types["CreateItem"].classification == Classification.COMMAND

    def test_marker_subclass(self):
        types = parse_type_definitions("class ItemCreated(Event):\n    id: str\n    count: int\n")
        info = types["ItemCreated"]
        assert info.classification == Classification.EVENT
        assert info.explicit
        assert info.field_names == ["id", "count"]

    def test_envelope_class_is_classified_by_name(self):
        types = parse_type_definitions(
            "class ItemsListedData(TypedDict):\n"
            "    items: list[str]\n"
            "\n"
            "class ItemsListed(TypedDict):\n"
            '    type: Literal["ItemsListed"]\n'
            "    data: ItemsListedData\n"
        )
        info = types["ItemsListed"]
        assert info.classification == Classification.EVENT
        assert not info.explicit
        assert info.field_names == ["items"]

    def test_non_total_class_fields_are_optional(self):
        types = parse_type_definitions(
            "class Data(TypedDict, total=False):\n"
            "    note: str\n"
            "\n"
            'X = Event["X", Data]\n'
        )
        assert types["X"].data_fields[0].required is False

    def test_plain_classes_are_not_messages(self):
        assert parse_type_definitions("class Product(TypedDict):\n    id: str\n") == {}


class TestParseShapeDefinitions:
    def test_typed_dicts_and_dict_aliases(self):
        shapes = parse_shape_definitions(
            "class Product(TypedDict):\n"
            "    productId: str\n"
            "    price: float\n"
            "\n"
            'Address = {"street": str, "zip": NotRequired[str]}\n'
            'ProductsImported = Event["ProductsImported", {"products": list[Product]}]\n'
        )
        assert set(shapes) == {"Product", "Address"}
        assert [(f.name, f.type) for f in shapes["Product"]] == [("productId", "string"), ("price", "number")]
        assert shapes["Address"][1].required is False

    def test_message_classes_are_excluded(self):
        shapes = parse_shape_definitions("class ItemCreated(Event):\n    id: str\n")
        assert shapes == {}


class TestClassifyByName:
    def test_past_tense_is_event(self):
        assert classify_by_name("ItemsListed") == Classification.EVENT

    def test_imperative_is_command(self):
        assert classify_by_name("PlaceOrder") == Classification.COMMAND

    def test_view_suffix_is_state(self):
        assert classify_by_name("OrderSummary") == Classification.STATE

    def test_default_is_event(self):
        assert classify_by_name("Heartbeat") == Classification.EVENT
