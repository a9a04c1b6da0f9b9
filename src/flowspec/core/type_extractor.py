"""
Type extractor: builds ``name -> TypeInfo`` maps from one module's AST.

Recognized declarations:

1. Marker aliases, the Python form of ``Command<'X', {...}>``::

       CreateItem = Command["CreateItem", {"itemId": str, "note": NotRequired[str]}]
       CreateItem: TypeAlias = Command["CreateItem", CreateItemData]
       type CreateItem = Command["CreateItem", {...}]

2. Envelope classes with a literal discriminator and a ``data`` member::

       class ItemCreated(TypedDict):
           type: Literal["ItemCreated"]
           data: ItemCreatedData

   Without a marker base the classification comes from the naming heuristic
   and is advisory only (``explicit=False``).

3. Marker subclasses whose annotations are the fields::

       class CreateItem(Command):
           itemId: str
"""

from __future__ import annotations

import ast
import logging
import re
from dataclasses import dataclass, field
from enum import StrEnum

from .type_strings import annotation_to_type, unwrap_field_annotation

logger = logging.getLogger(__name__)

MARKER_NAMES = {"Command": "command", "Event": "event", "State": "state"}

INFERRED_TYPE = "InferredType"


class Classification(StrEnum):
    """Message classification of a declared type."""

    COMMAND = "command"
    EVENT = "event"
    STATE = "state"


@dataclass
class DataField:
    """One flattened field of a declared message type."""

    name: str
    type: str
    required: bool = True


@dataclass
class TypeInfo:
    """
    Extracted metadata about a declared message type.

    Attributes:
        string_literal: The discriminator (``"CreateItem"``)
        classification: command, event or state
        data_fields: Flattened, ordered field list
        explicit: False when the classification came from the naming heuristic
        declared_name: Python name the type is bound to in its module
    """

    string_literal: str
    classification: Classification
    data_fields: list[DataField] = field(default_factory=list)
    explicit: bool = True
    declared_name: str | None = None

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.data_fields]


# =============================================================================
# Naming heuristic
# =============================================================================

IMPERATIVE_PREFIXES = (
    "Add", "Approve", "Archive", "Assign", "Book", "Cancel", "Change", "Close", "Confirm",
    "Create", "Delete", "Disable", "Enable", "Enroll", "Mark", "Open", "Pay", "Place",
    "Publish", "Register", "Reject", "Remove", "Rename", "Request", "Reserve", "Reset",
    "Schedule", "Send", "Set", "Start", "Stop", "Submit", "Suggest", "Update", "Upload",
)

STATE_SUFFIXES = (
    "List", "Summary", "View", "Details", "Detail", "Overview", "State", "Status",
    "Catalog", "Collection", "Page", "Dashboard", "Projection", "Report",
)

_CAMEL_WORD = re.compile(r"[A-Z][a-z0-9]*")


def classify_by_name(name: str) -> Classification:
    """
    Best-effort classification from naming conventions.

    ``-ed`` suffix => event, imperative verb prefix => command, noun suffixes
    such as ``List``/``Summary`` => state. Anything else defaults to event.
    """
    words = _CAMEL_WORD.findall(name)
    first = words[0] if words else name
    last = words[-1] if words else name
    if last.endswith("ed"):
        return Classification.EVENT
    if first in IMPERATIVE_PREFIXES:
        return Classification.COMMAND
    if last in STATE_SUFFIXES or name.endswith(STATE_SUFFIXES):
        return Classification.STATE
    return Classification.EVENT


# =============================================================================
# AST helpers
# =============================================================================


def _leaf(node: ast.expr) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def _literal_discriminator(node: ast.expr | None) -> str | None:
    """Extract ``"X"`` from ``Literal["X"]`` (or a bare string constant)."""
    if node is None:
        return None
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        # only a quoted ``'Literal["X"]'`` annotation is re-parsed
        try:
            parsed = ast.parse(node.value.strip(), mode="eval").body
        except SyntaxError:
            return node.value
        if not (isinstance(parsed, ast.Subscript) and _leaf(parsed.value) == "Literal"):
            return node.value
        node = parsed
    if isinstance(node, ast.Subscript) and _leaf(node.value) == "Literal":
        sl = node.slice
        if isinstance(sl, ast.Constant) and isinstance(sl.value, str):
            return sl.value
    return None


def _class_annotations(cls: ast.ClassDef) -> list[tuple[str, ast.expr]]:
    out = []
    for stmt in cls.body:
        if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            out.append((stmt.target.id, stmt.annotation))
    return out


def _class_total(cls: ast.ClassDef) -> bool:
    for kw in cls.keywords:
        if kw.arg == "total" and isinstance(kw.value, ast.Constant):
            return bool(kw.value.value)
    return True


class _ModuleTypes:
    """Per-module lookup of class declarations used to flatten ``data`` members."""

    def __init__(self, tree: ast.Module):
        self.classes: dict[str, ast.ClassDef] = {}
        self.aliases: dict[str, ast.expr] = {}
        for stmt in tree.body:
            if isinstance(stmt, ast.ClassDef):
                self.classes[stmt.name] = stmt
            elif isinstance(stmt, ast.Assign) and len(stmt.targets) == 1 and isinstance(stmt.targets[0], ast.Name):
                self.aliases[stmt.targets[0].id] = stmt.value

    def fields_of(self, node: ast.expr, seen: frozenset[str] = frozenset()) -> list[DataField]:
        """Flatten a ``data`` annotation into fields."""
        if isinstance(node, ast.Dict):
            return _dict_fields(node)
        name = _leaf(node)
        if name is None or name in seen:
            return []
        cls = self.classes.get(name)
        if cls is not None:
            total = _class_total(cls)
            fields = []
            for base in cls.bases:
                fields.extend(self.fields_of(base, seen | {name}))
            for fname, ann in _class_annotations(cls):
                inner, required = unwrap_field_annotation(ann)
                fields.append(DataField(fname, annotation_to_type(inner), required and total))
            return fields
        alias = self.aliases.get(name)
        if isinstance(alias, ast.Dict):
            return _dict_fields(alias)
        return []


def _dict_fields(node: ast.Dict) -> list[DataField]:
    fields = []
    for key, value in zip(node.keys, node.values, strict=True):
        if isinstance(key, ast.Constant) and isinstance(key.value, str):
            inner, required = unwrap_field_annotation(value)
            fields.append(DataField(key.value, annotation_to_type(inner), required))
    return fields


# =============================================================================
# Extraction
# =============================================================================


def _from_marker_subscript(
    name: str, value: ast.expr, module: _ModuleTypes
) -> TypeInfo | None:
    if not isinstance(value, ast.Subscript):
        return None
    marker = _leaf(value.value)
    if marker not in MARKER_NAMES:
        return None
    sl = value.slice
    args = list(sl.elts) if isinstance(sl, ast.Tuple) else [sl]
    if not args:
        return None
    discriminator = _literal_discriminator(args[0])
    if discriminator is None:
        return None
    fields = module.fields_of(args[1]) if len(args) > 1 else []
    return TypeInfo(
        string_literal=discriminator,
        classification=Classification(MARKER_NAMES[marker]),
        data_fields=fields,
        explicit=True,
        declared_name=name,
    )


def _from_class(cls: ast.ClassDef, module: _ModuleTypes) -> TypeInfo | None:
    marker = next((MARKER_NAMES[b] for b in map(_leaf, cls.bases) if b in MARKER_NAMES), None)
    annotations = dict(_class_annotations(cls))
    discriminator = _literal_discriminator(annotations.get("type"))

    if "data" in annotations and discriminator is not None:
        fields = module.fields_of(annotations["data"])
    elif marker is not None:
        fields = []
        for fname, ann in _class_annotations(cls):
            if fname == "type":
                continue
            inner, required = unwrap_field_annotation(ann)
            fields.append(DataField(fname, annotation_to_type(inner), required))
    else:
        return None

    string_literal = discriminator or cls.name
    if marker is not None:
        return TypeInfo(string_literal, Classification(marker), fields, True, cls.name)

    guessed = classify_by_name(string_literal)
    logger.debug("Classified %s as %s from its name", string_literal, guessed)
    return TypeInfo(string_literal, guessed, fields, False, cls.name)


def parse_type_definitions(source: str | ast.Module, filename: str = "<flow>") -> dict[str, TypeInfo]:
    """
    Build the ``discriminator -> TypeInfo`` map for one module.

    Declaration order is preserved; it is the tie-breaker for ambiguous
    type resolution.

    Raises:
        SyntaxError: If the source cannot be parsed
    """
    tree = ast.parse(source, filename=filename) if isinstance(source, str) else source
    module = _ModuleTypes(tree)
    types: dict[str, TypeInfo] = {}

    type_alias_node = getattr(ast, "TypeAlias", None)

    for stmt in tree.body:
        info: TypeInfo | None = None
        if isinstance(stmt, ast.Assign) and len(stmt.targets) == 1 and isinstance(stmt.targets[0], ast.Name):
            info = _from_marker_subscript(stmt.targets[0].id, stmt.value, module)
        elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name) and stmt.value is not None:
            info = _from_marker_subscript(stmt.target.id, stmt.value, module)
        elif type_alias_node is not None and isinstance(stmt, type_alias_node):
            info = _from_marker_subscript(stmt.name.id, stmt.value, module)
        elif isinstance(stmt, ast.ClassDef):
            info = _from_class(stmt, module)

        if info is not None:
            types[info.string_literal] = info

    return types


def parse_shape_definitions(source: str | ast.Module, filename: str = "<flow>") -> dict[str, list[DataField]]:
    """
    Collect plain structural declarations (``TypedDict`` classes, annotated
    classes and dict aliases) that are not message types.

    The transformer inlines these when a message field refers to them by name.
    """
    tree = ast.parse(source, filename=filename) if isinstance(source, str) else source
    module = _ModuleTypes(tree)
    messages = parse_type_definitions(tree, filename)
    declared = {info.declared_name for info in messages.values()}
    shapes: dict[str, list[DataField]] = {}
    for name, cls in module.classes.items():
        if name in declared or not _class_annotations(cls):
            continue
        if any(_leaf(b) in MARKER_NAMES for b in cls.bases):
            continue
        shapes[name] = module.fields_of(ast.Name(id=name))
    for name, value in module.aliases.items():
        if name not in declared and isinstance(value, ast.Dict):
            shapes[name] = _dict_fields(value)
    return shapes
