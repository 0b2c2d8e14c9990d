import pytest

from pocketpet.models.inventory import STARTER_ITEMS, Inventory, InventoryItem, ItemKind
from pocketpet.models.pet import ActionOutcome, Pet, PetStatus, PetType


@pytest.fixture()
def inventory() -> Inventory:
    inv = Inventory()
    inv.add_item(InventoryItem.food("bread", 8, 10))
    inv.add_item(InventoryItem.gift("ball", 1, 25))
    return inv


def test_add_merges_items_with_same_name(inventory):
    inventory.add_item(InventoryItem.food("bread", 2, 10))
    assert inventory.get_item_count("bread") == 10
    assert len(inventory) == 2


def test_add_does_not_alias_the_caller_item():
    template = InventoryItem.food("apple", 1, 10)
    inv = Inventory()
    inv.add_item(template)
    inv.add_item(template)
    assert inv.get_item_count("apple") == 2
    assert template.quantity == 1


def test_remove_decrements_or_drops_entry(inventory):
    inventory.remove_item_by_name("bread", 3)
    assert inventory.get_item_count("bread") == 5
    inventory.remove_item_by_name("bread", 5)
    assert inventory.get_item_by_name("bread") is None
    assert "bread" not in inventory


def test_remove_unknown_item_is_a_no_op(inventory):
    inventory.remove_item_by_name("cheese", 1)
    assert len(inventory) == 2


def test_lookup_of_missing_item(inventory):
    assert inventory.get_item_by_name("cheese") is None
    assert inventory.get_item_count("cheese") == 0


def test_items_filtered_by_kind(inventory):
    assert [i.name for i in inventory.items(ItemKind.FOOD)] == ["bread"]
    assert [i.name for i in inventory.items(ItemKind.GIFT)] == ["ball"]
    assert len(inventory.items()) == 2


def test_effect_description():
    assert InventoryItem.food("cheese", 1, 15).effect_description == "+15 fullness"
    assert InventoryItem.gift("lego", 1, 20).effect_description == "+20 happiness"


def test_use_dispatches_on_kind(inventory):
    pet = Pet("Rex", PetType.DOG)
    pet.state.fullness = 50
    pet.state.happiness = 50

    assert inventory.use("bread", pet) == ActionOutcome.APPLIED
    assert pet.state.fullness == 60
    assert pet.state.happiness == 50
    assert inventory.get_item_count("bread") == 7

    assert inventory.use("ball", pet) == ActionOutcome.APPLIED
    assert pet.state.happiness == 75
    # The last ball was used, so the entry is gone rather than left at zero.
    assert inventory.get_item_by_name("ball") is None


def test_use_missing_item(inventory):
    pet = Pet("Rex", PetType.DOG)
    assert inventory.use("cheese", pet) == ActionOutcome.UNAVAILABLE
    assert pet.state.score == 0


def test_refused_use_keeps_the_item(inventory):
    pet = Pet("Rex", PetType.DOG)
    pet.go_sleep()
    assert pet.status == PetStatus.SLEEPING
    assert inventory.use("ball", pet) == ActionOutcome.UNAVAILABLE
    assert inventory.get_item_count("ball") == 1


def test_replenish_adds_one_of_each_starter_item():
    inv = Inventory()
    inv.replenish()
    inv.replenish()
    assert len(inv) == len(STARTER_ITEMS)
    assert all(inv.get_item_count(item.name) == 2 for item in STARTER_ITEMS)
    assert all(item.quantity == 1 for item in STARTER_ITEMS)


def test_contents_summary(inventory):
    assert Inventory().contents_summary() is None
    assert inventory.contents_summary() == "Inventory Contents:\n- bread (x8)\n- ball (x1)\n"


def test_item_serializes_kind_and_effect_tag():
    dumped = InventoryItem.gift("car", 2, 20).model_dump(mode="json", by_alias=True)
    assert dumped == {"name": "car", "quantity": 2, "kind": "gift", "effectMagnitude": 20}
    restored = InventoryItem.model_validate(dumped)
    assert restored.kind == ItemKind.GIFT
    assert restored.effect == 20
