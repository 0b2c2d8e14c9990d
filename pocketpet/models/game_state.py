# pocketpet/models/game_state.py
import time
from datetime import datetime
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pocketpet.models.inventory import Inventory, InventoryItem
from pocketpet.models.pet import Pet, PetType


class GameState(BaseModel):
    """Snapshot of one save slot: the pet, its inventory and the slot timestamps."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    pet_name: str
    pet_type: PetType
    health: int = Field(ge=0)
    sleep: int = Field(ge=0)
    fullness: int = Field(ge=0)
    happiness: int = Field(ge=0)
    score: int = 0
    inventory: List[InventoryItem] = Field(default_factory=list)
    creation_time: Optional[datetime] = None  # Stamped by the first save only
    last_saved_time: Optional[datetime] = None

    @classmethod
    def from_pet(cls, pet: Pet, inventory: Inventory) -> "GameState":
        state = cls(pet_name=pet.name, pet_type=pet.pet_type, health=0, sleep=0, fullness=0, happiness=0)
        state.update_from(pet, inventory)
        return state

    def update_from(self, pet: Pet, inventory: Inventory):
        """Copies the live pet and inventory into this snapshot, keeping the timestamps."""
        self.pet_name = pet.name
        self.pet_type = pet.pet_type
        self.health = pet.state.health
        self.sleep = pet.state.sleep
        self.fullness = pet.state.fullness
        self.happiness = pet.state.happiness
        self.score = pet.state.score
        self.inventory = inventory.snapshot()

    def to_pet(self, clock: Callable[[], float] = time.monotonic) -> Pet:
        pet = Pet(name=self.pet_name, pet_type=self.pet_type, clock=clock)
        pet.restore(health=self.health, sleep=self.sleep, fullness=self.fullness,
                    happiness=self.happiness, score=self.score)
        return pet

    def to_inventory(self) -> Inventory:
        return Inventory(item.model_copy() for item in self.inventory)
