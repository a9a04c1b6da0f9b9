from datetime import datetime
from typing import TypedDict

from flowspec import Command, Event, State, create_integration


class Item(TypedDict):
    id: str
    description: str


CreateItem = Command["CreateItem", {"itemId": str, "description": str}]
ItemCreated = Event["ItemCreated", {"id": str, "description": str, "addedAt": datetime}]
AvailableItems = State["AvailableItems", {"items": list[Item]}]

Mailer = create_integration("email", "Mailer")
