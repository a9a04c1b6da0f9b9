from datetime import datetime

from flowspec import (
    client,
    command,
    data,
    example,
    flow,
    query,
    rule,
    server,
    should,
    sink,
    source,
    specs,
)

from .shared import AvailableItems, CreateItem, ItemCreated, Mailer

with flow("items"):
    with command("Create item").stream("item-${id}").via(Mailer):
        with client():
            with specs("A form that allows users to add items"):
                should("have fields for id and description")
        with server():
            data([sink().event("ItemCreated").to_stream("item-${id}")])
            with specs("Create item"):
                with rule("Valid items should be created successfully"):
                    example("User creates a new item").when[CreateItem](
                        {"itemId": "item_123", "description": "A new item"}
                    ).then[ItemCreated](
                        {"id": "item_123", "description": "A new item", "addedAt": datetime(2024, 1, 15, 10, 0)}
                    )

    with query("View items"):
        with client():
            with specs("Item list"):
                should("show every item with its description")
        with server():
            data([source().state("AvailableItems").from_projection("ItemsProjection", "id")])
            with specs("Items projection"):
                with rule("Created items are listed"):
                    example("One item created").given[ItemCreated](
                        {"id": "item_123", "description": "A new item", "addedAt": datetime(2024, 1, 15, 10, 0)}
                    ).then[AvailableItems]({"items": [{"id": "item_123", "description": "A new item"}]})
