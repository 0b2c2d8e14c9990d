# pocketpet/services/pet_service.py
import asyncio
import time
from typing import Callable, Optional

import structlog

from pocketpet.models.game_state import GameState
from pocketpet.models.inventory import Inventory, ItemKind
from pocketpet.models.pet import ActionOutcome, Pet, PetType
from pocketpet.services.save_manager import SaveLoadManager

log = structlog.get_logger(__name__)

DEFAULT_PLAY_AMOUNT = 20
DEFAULT_EXERCISE_BOOST = 20


class GameSession:
    """One live pet bound to a save slot, plus the tick driver that ages it.

    The tick driver advances sleep recovery every step and runs the decay tick
    (with item replenishment and an autosave) every `decay_interval_seconds`.
    Player actions and ticks share one lock, so they never interleave.
    """

    def __init__(self, game_state: GameState, slot: int, save_manager: SaveLoadManager,
                 clock: Callable[[], float] = time.monotonic,
                 decay_interval_seconds: float = 2.0, step_interval_seconds: float = 1.0):
        self.game_state = game_state
        self.slot = slot
        self.save_manager = save_manager
        self.pet: Pet = game_state.to_pet(clock)
        self.inventory: Inventory = game_state.to_inventory()
        self.decay_interval_seconds = decay_interval_seconds
        self.step_interval_seconds = step_interval_seconds

        self._lock = asyncio.Lock()
        self._tick_task: Optional[asyncio.Task] = None
        self._elapsed_since_decay = 0.0

    @property
    def is_running(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    async def start(self):
        if self.is_running:
            return
        self._tick_task = asyncio.create_task(self._run())
        log.info("game_session_started", slot=self.slot, pet=self.pet.name)

    async def stop(self):
        """Cancels the tick driver and writes a final save."""
        if self._tick_task is not None:
            self._tick_task.cancel()
            try:
                await self._tick_task
            except asyncio.CancelledError:
                pass
            self._tick_task = None
        async with self._lock:
            self._save()
        log.info("game_session_stopped", slot=self.slot, score=self.pet.state.score)

    async def _run(self):
        log.debug("Tick driver started.", slot=self.slot, step_seconds=self.step_interval_seconds,
                  decay_seconds=self.decay_interval_seconds)
        while True:
            await asyncio.sleep(self.step_interval_seconds)
            try:
                await self.tick()
            except Exception as e:
                # A failed tick is logged; the driver keeps running.
                log.error("Tick driver: error during pet tick.", slot=self.slot, error=str(e), exc_info=True)

    async def tick(self):
        """One step of the driver: a sleep-recovery step, then decay if it is due."""
        async with self._lock:
            self.pet.advance_sleep()
            self._elapsed_since_decay += self.step_interval_seconds
            if self._elapsed_since_decay >= self.decay_interval_seconds:
                self._elapsed_since_decay = 0.0
                self._decay_and_save()

    def _decay_and_save(self):
        self.pet.decrease_stats_over_time()
        self.inventory.replenish()
        self._save()
        warnings = self.pet.low_attributes()
        log.debug("pet_decay_tick", slot=self.slot, status=self.pet.status.value,
                  health=self.pet.state.health, sleep=self.pet.state.sleep,
                  fullness=self.pet.state.fullness, happiness=self.pet.state.happiness,
                  low=warnings or None)

    def _save(self):
        self.game_state.update_from(self.pet, self.inventory)
        self.save_manager.save_game(self.game_state, self.slot)

    async def _perform_pet_action(self, action_func_name: str, **kwargs) -> ActionOutcome:
        async with self._lock:
            action_method = getattr(self.pet, action_func_name)
            outcome = action_method(**kwargs)
            self.game_state.update_from(self.pet, self.inventory)
        log.info(f"pet_action_{action_func_name}", slot=self.slot, outcome=outcome.value, **kwargs)
        return outcome

    async def use_item(self, item_name: str, kind: Optional[ItemKind] = None) -> ActionOutcome:
        async with self._lock:
            item = self.inventory.get_item_by_name(item_name)
            if item is not None and kind is not None and item.kind != kind:
                log.info("pet_item_wrong_kind", item=item_name, expected=kind.value, actual=item.kind.value)
                return ActionOutcome.UNAVAILABLE
            outcome = self.inventory.use(item_name, self.pet)
            self.game_state.update_from(self.pet, self.inventory)
        log.info("pet_action_use_item", slot=self.slot, item=item_name, outcome=outcome.value)
        return outcome

    async def feed(self, item_name: str) -> ActionOutcome:
        return await self.use_item(item_name, ItemKind.FOOD)

    async def give_gift(self, item_name: str) -> ActionOutcome:
        return await self.use_item(item_name, ItemKind.GIFT)

    async def play(self, amount: int = DEFAULT_PLAY_AMOUNT) -> ActionOutcome:
        return await self._perform_pet_action("play", amount=amount)

    async def exercise(self, health_boost: int = DEFAULT_EXERCISE_BOOST) -> ActionOutcome:
        return await self._perform_pet_action("exercise", health_boost=health_boost)

    async def take_to_vet(self) -> ActionOutcome:
        return await self._perform_pet_action("take_to_vet")

    async def go_sleep(self) -> ActionOutcome:
        return await self._perform_pet_action("go_sleep")


def create_new_game(save_manager: SaveLoadManager, name: str, pet_type: PetType, **session_kwargs) -> GameSession:
    """Creates a fresh pet with an empty inventory and writes it to an allocated slot."""
    slot = save_manager.allocate_slot()
    pet = Pet(name=name, pet_type=pet_type)
    game_state = GameState.from_pet(pet, Inventory())
    save_manager.save_game(game_state, slot)
    log.info("pet_created_and_saved", slot=slot, name=name, pet_type=pet_type.value)
    return GameSession(game_state, slot, save_manager, **session_kwargs)


def open_saved_game(save_manager: SaveLoadManager, slot: int, **session_kwargs) -> Optional[GameSession]:
    """Loads a slot into a live session, or returns None for an empty slot."""
    game_state = save_manager.load_game(slot)
    if game_state is None:
        log.warning("open_saved_game_empty_slot", slot=slot)
        return None
    session = GameSession(game_state, slot, save_manager, **session_kwargs)
    log.info("pet_loaded", slot=slot, name=session.pet.name, status=session.pet.status.value)
    return session
