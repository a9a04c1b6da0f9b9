"""Shared pytest fixtures for flowspec tests."""

from __future__ import annotations

import pytest

from flowspec.core.vfs import InMemoryFileStore
from flowspec.dsl.registry import Registry
from flowspec.get_flows import clear_get_flows_cache

ITEMS_FLOW = '''\
from datetime import datetime

from flowspec import Command, Event, client, command, example, flow, rule, server, should, specs

CreateItem = Command["CreateItem", {"itemId": str, "description": str}]
ItemCreated = Event["ItemCreated", {"id": str, "description": str, "addedAt": datetime}]

with flow("items"):
    with command("Create item").stream("item-${id}"):
        with client():
            with specs("A form that allows users to add items"):
                should("have fields for id and description")
        with server():
            with specs("Create item"):
                with rule("Valid items should be created successfully"):
                    example("User creates a new item").when[CreateItem](
                        {"itemId": "item_123", "description": "A new item"}
                    ).then[ItemCreated](
                        {"id": "item_123", "description": "A new item", "addedAt": datetime(2024, 1, 15, 10, 0)}
                    )
'''

PRODUCTS_FLOW = '''\
from typing import TypedDict

from flowspec import Event, State, example, flow, query, rule, server, source, specs, data


class Product(TypedDict):
    productId: str
    name: str
    price: float


ProductsImported = Event["ProductsImported", {"products": list[Product]}]
AvailableProducts = State["AvailableProducts", {"products": list[Product]}]

with flow("catalog"):
    with query("View available products"):
        with server():
            data([source().state("AvailableProducts").from_projection("ProductsProjection", "productId")])
            with specs("Product catalog"):
                with rule("Imported products are listed"):
                    example("One product imported").given[ProductsImported]({"products": []}).then(
                        {"products": [{"productId": "p1", "name": "Shoe", "price": 49.5}]}
                    )
'''


@pytest.fixture
def items_source() -> str:
    return ITEMS_FLOW


@pytest.fixture
def products_source() -> str:
    return PRODUCTS_FLOW


@pytest.fixture
def store() -> InMemoryFileStore:
    """Empty in-memory file store."""
    return InMemoryFileStore()


@pytest.fixture
def registry() -> Registry:
    return Registry()


@pytest.fixture(autouse=True)
def _clean_flow_cache():
    clear_get_flows_cache()
    yield
    clear_get_flows_cache()
