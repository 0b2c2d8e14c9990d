# pocketpet/models/inventory.py
from enum import Enum
from typing import Dict, Iterable, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pocketpet.models.pet import ActionOutcome, Pet

log = structlog.get_logger(__name__)


class ItemKind(str, Enum):
    FOOD = "food"  # effect raises fullness
    GIFT = "gift"  # effect raises happiness


class InventoryItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    quantity: int = Field(default=1, ge=0)
    kind: ItemKind
    effect: int = Field(default=0, ge=0, alias="effectMagnitude")

    @classmethod
    def food(cls, name: str, quantity: int, fullness: int) -> "InventoryItem":
        return cls(name=name, quantity=quantity, kind=ItemKind.FOOD, effect=fullness)

    @classmethod
    def gift(cls, name: str, quantity: int, happiness: int) -> "InventoryItem":
        return cls(name=name, quantity=quantity, kind=ItemKind.GIFT, effect=happiness)

    @property
    def effect_description(self) -> str:
        attribute = "fullness" if self.kind == ItemKind.FOOD else "happiness"
        return f"+{self.effect} {attribute}"

    def apply_to(self, pet: Pet) -> ActionOutcome:
        if self.kind == ItemKind.FOOD:
            return pet.feed(self)
        elif self.kind == ItemKind.GIFT:
            return pet.give_gift(self)
        raise ValueError(f"Unknown item kind: {self.kind}")


# One of each is handed out on every decay tick of a running game.
STARTER_ITEMS: List[InventoryItem] = [
    InventoryItem.food("apple", 1, 10),
    InventoryItem.food("banana", 1, 20),
    InventoryItem.food("orange", 1, 30),
    InventoryItem.gift("ball", 1, 10),
    InventoryItem.gift("car", 1, 20),
    InventoryItem.gift("jellycat", 1, 30),
]


class Inventory:
    """Stackable items keyed by name; an item's quantity never rests at zero."""

    def __init__(self, items: Optional[Iterable[InventoryItem]] = None):
        self._items: Dict[str, InventoryItem] = {}
        for item in items or []:
            self.add_item(item)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: str) -> bool:
        return name in self._items

    def add_item(self, item: InventoryItem):
        existing = self._items.get(item.name)
        if existing is not None:
            existing.quantity += item.quantity
        elif item.quantity > 0:
            # The inventory keeps its own copy of the item.
            self._items[item.name] = item.model_copy()

    def remove_item_by_name(self, name: str, count: int = 1):
        existing = self._items.get(name)
        if existing is None:
            return
        if existing.quantity > count:
            existing.quantity -= count
        else:
            del self._items[name]

    def get_item_by_name(self, name: str) -> Optional[InventoryItem]:
        return self._items.get(name)

    def get_item_count(self, name: str) -> int:
        item = self._items.get(name)
        return item.quantity if item is not None else 0

    def items(self, kind: Optional[ItemKind] = None) -> List[InventoryItem]:
        """Returns the items, optionally only those of one kind."""
        return [i for i in self._items.values() if kind is None or i.kind == kind]

    def use(self, name: str, pet: Pet) -> ActionOutcome:
        item = self._items.get(name)
        if item is None:
            log.info("inventory_item_missing", item=name)
            return ActionOutcome.UNAVAILABLE
        outcome = item.apply_to(pet)
        if item.quantity <= 0:
            del self._items[name]
        log.debug("inventory_item_used", item=name, outcome=outcome.value, remaining=self.get_item_count(name))
        return outcome

    def replenish(self, items: Iterable[InventoryItem] = STARTER_ITEMS):
        for item in items:
            self.add_item(item)

    def contents_summary(self) -> Optional[str]:
        if not self._items:
            return None
        lines = ["Inventory Contents:"]
        lines.extend(f"- {item.name} (x{item.quantity})" for item in self._items.values())
        return "\n".join(lines) + "\n"

    def snapshot(self) -> List[InventoryItem]:
        return [item.model_copy() for item in self._items.values()]
