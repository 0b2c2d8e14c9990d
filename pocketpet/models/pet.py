# pocketpet/models/pet.py
import time
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from pocketpet.models.inventory import InventoryItem

log = structlog.get_logger(__name__)


class PetType(str, Enum):
    DUCK = "DUCK"
    SHEEP = "SHEEP"
    DOG = "DOG"


class PetTypeProfile(BaseModel):
    max_health: int = 100
    max_sleep: int = 100
    max_fullness: int = 100
    max_happiness: int = 100
    hunger_decay_rate: int = Field(default=1, ge=0)
    happiness_decay_rate: int = Field(default=1, ge=0)
    sleep_decay_rate: int = Field(default=1, ge=0)


PET_TYPE_PROFILES: Dict[PetType, PetTypeProfile] = {
    PetType.DUCK: PetTypeProfile(hunger_decay_rate=1, happiness_decay_rate=1, sleep_decay_rate=2),
    PetType.SHEEP: PetTypeProfile(hunger_decay_rate=2, happiness_decay_rate=1, sleep_decay_rate=1),
    PetType.DOG: PetTypeProfile(hunger_decay_rate=1, happiness_decay_rate=2, sleep_decay_rate=1),
}


class PetStatus(str, Enum):
    NORMAL = "NORMAL"
    HUNGRY = "HUNGRY"
    SLEEPING = "SLEEPING"
    ANGRY = "ANGRY"
    DEAD = "DEAD"


class ActionOutcome(str, Enum):
    APPLIED = "applied"
    UNAVAILABLE = "unavailable"  # Pet state or item forbids the action
    ON_COOLDOWN = "on_cooldown"


class PetState(BaseModel):
    name: str
    pet_type: PetType
    health: int = Field(default=100, ge=0)
    sleep: int = Field(default=100, ge=0)
    fullness: int = Field(default=100, ge=0)
    happiness: int = Field(default=100, ge=0)
    score: int = 0  # May go negative after vet visits
    status: PetStatus = PetStatus.NORMAL
    is_sleeping: bool = False
    still_angry: bool = False


class Pet:
    """Attribute/state machine for a single pet.

    Every action and every decay tick ends by re-evaluating `update_state()`.
    Time-gated actions read `clock` (seconds); sleep recovery is advanced in
    discrete steps by whoever drives the pet (see `advance_sleep`).
    """

    PLAY_COOLDOWN = 10
    VET_COOLDOWN = 10
    SLEEP_DURATION = 10  # Maximum number of recovery steps per sleep episode
    EXERCISE_COST = 10
    ACTION_SCORE = 100
    LOW_ATTRIBUTE_THRESHOLD = 12.5

    def __init__(self, name: str, pet_type: PetType, clock: Callable[[], float] = time.monotonic):
        self.profile = PET_TYPE_PROFILES[pet_type]
        self.state = PetState(
            name=name,
            pet_type=pet_type,
            health=self.profile.max_health,
            sleep=self.profile.max_sleep,
            fullness=self.profile.max_fullness,
            happiness=self.profile.max_happiness,
        )
        self._clock = clock
        self._last_play_time: Optional[float] = None
        self._last_vet_time: Optional[float] = None
        self._sleep_steps_remaining = 0
        self.on_cooldown = False

    @property
    def name(self) -> str:
        return self.state.name

    @name.setter
    def name(self, value: str):
        self.state.name = value

    @property
    def pet_type(self) -> PetType:
        return self.state.pet_type

    @property
    def status(self) -> PetStatus:
        return self.state.status

    @property
    def is_dead(self) -> bool:
        return self.state.status == PetStatus.DEAD

    def restore(self, health: int, sleep: int, fullness: int, happiness: int, score: int = 0):
        """Overwrites attributes from stored data, clamped to this species' maxima."""
        p = self.profile
        self.state.health = max(0, min(health, p.max_health))
        self.state.sleep = max(0, min(sleep, p.max_sleep))
        self.state.fullness = max(0, min(fullness, p.max_fullness))
        self.state.happiness = max(0, min(happiness, p.max_happiness))
        self.state.score = score
        self.update_state()

    def low_attributes(self) -> List[str]:
        """Names of attributes that have dropped into the warning zone."""
        values = {
            "health": self.state.health,
            "sleep": self.state.sleep,
            "fullness": self.state.fullness,
            "happiness": self.state.happiness,
        }
        return [name for name, value in values.items() if value < self.LOW_ATTRIBUTE_THRESHOLD]

    # --- Player actions ---

    def feed(self, food: Optional["InventoryItem"]) -> ActionOutcome:
        if self.state.status in (PetStatus.ANGRY, PetStatus.SLEEPING, PetStatus.DEAD):
            log.info("pet_feed_refused", pet=self.name, status=self.state.status.value)
            return ActionOutcome.UNAVAILABLE
        if food is None or food.quantity <= 0:
            log.info("pet_feed_no_food", pet=self.name)
            return ActionOutcome.UNAVAILABLE

        self.state.fullness = min(self.state.fullness + food.effect, self.profile.max_fullness)
        food.quantity -= 1
        self.state.score += self.ACTION_SCORE
        log.info("pet_fed", pet=self.name, item=food.name, fullness=self.state.fullness)
        self.update_state()
        return ActionOutcome.APPLIED

    def give_gift(self, gift: Optional["InventoryItem"]) -> ActionOutcome:
        # Angry pets accept gifts; that is how they are calmed down.
        if self.state.status in (PetStatus.SLEEPING, PetStatus.DEAD):
            log.info("pet_gift_refused", pet=self.name, status=self.state.status.value)
            return ActionOutcome.UNAVAILABLE
        if gift is None or gift.quantity <= 0:
            log.info("pet_gift_no_gift", pet=self.name)
            return ActionOutcome.UNAVAILABLE

        self.state.happiness = min(self.state.happiness + gift.effect, self.profile.max_happiness)
        gift.quantity -= 1
        self.state.score += self.ACTION_SCORE
        log.info("pet_gifted", pet=self.name, item=gift.name, happiness=self.state.happiness)
        self.update_state()
        return ActionOutcome.APPLIED

    def play(self, amount: int) -> ActionOutcome:
        if self.state.status == PetStatus.SLEEPING:
            log.info("pet_play_refused", pet=self.name, status=self.state.status.value)
            return ActionOutcome.UNAVAILABLE

        now = self._clock()
        if self._last_play_time is not None and now - self._last_play_time < self.PLAY_COOLDOWN:
            self.on_cooldown = True
            log.info("pet_play_on_cooldown", pet=self.name)
            return ActionOutcome.ON_COOLDOWN

        # TODO: decide whether angry/dead pets should be blocked here like feed() and exercise().
        if self.state.status in (PetStatus.ANGRY, PetStatus.DEAD):
            log.warning("pet_play_in_bad_state", pet=self.name, status=self.state.status.value)

        self.on_cooldown = False
        self.state.happiness = min(self.state.happiness + amount, self.profile.max_happiness)
        self._last_play_time = now
        self.state.score += self.ACTION_SCORE
        log.info("pet_played", pet=self.name, happiness=self.state.happiness)
        self.update_state()
        return ActionOutcome.APPLIED

    def exercise(self, health_boost: int) -> ActionOutcome:
        if self.state.status in (PetStatus.DEAD, PetStatus.SLEEPING, PetStatus.ANGRY):
            log.info("pet_exercise_refused", pet=self.name, status=self.state.status.value)
            return ActionOutcome.UNAVAILABLE

        self.state.health = min(self.state.health + health_boost, self.profile.max_health)
        self.state.sleep = max(self.state.sleep - self.EXERCISE_COST, 0)
        self.state.fullness = max(self.state.fullness - self.EXERCISE_COST, 0)
        log.info("pet_exercised", pet=self.name, health=self.state.health)
        self.update_state()
        return ActionOutcome.APPLIED

    def take_to_vet(self) -> ActionOutcome:
        now = self._clock()
        if self._last_vet_time is not None and now - self._last_vet_time < self.VET_COOLDOWN:
            self.on_cooldown = True
            log.info("pet_vet_on_cooldown", pet=self.name)
            return ActionOutcome.ON_COOLDOWN

        if self.state.status == PetStatus.DEAD:
            # Only revive_pet() on a stored snapshot brings a pet back.
            log.info("pet_vet_refused", pet=self.name, status=self.state.status.value)
            return ActionOutcome.UNAVAILABLE

        self.on_cooldown = False
        self.state.health = self.profile.max_health
        self._last_vet_time = now
        self.state.score -= self.ACTION_SCORE
        log.info("pet_took_to_vet", pet=self.name, score=self.state.score)
        self.update_state()
        return ActionOutcome.APPLIED

    def go_sleep(self) -> ActionOutcome:
        if self.state.is_sleeping:
            log.info("pet_sleep_refused_already_sleeping", pet=self.name)
            return ActionOutcome.UNAVAILABLE
        if self.state.status == PetStatus.DEAD:
            log.info("pet_sleep_refused_dead", pet=self.name)
            return ActionOutcome.UNAVAILABLE

        self.state.is_sleeping = True
        self.state.status = PetStatus.SLEEPING
        self._sleep_steps_remaining = self.SLEEP_DURATION
        log.info("pet_fell_asleep", pet=self.name, sleep=self.state.sleep)
        return ActionOutcome.APPLIED

    # --- Time-driven updates ---

    def advance_sleep(self) -> bool:
        """Runs one recovery step of the current sleep episode.

        Returns False when the pet is not sleeping. The episode ends once sleep
        is full or the step budget is spent, whichever comes first.
        """
        if not self.state.is_sleeping:
            return False

        increment = self.profile.max_sleep // self.SLEEP_DURATION
        self.state.sleep = min(self.state.sleep + increment, self.profile.max_sleep)
        self._sleep_steps_remaining -= 1
        if self.state.sleep == self.profile.max_sleep or self._sleep_steps_remaining <= 0:
            self._wake_up()
        return True

    def decrease_stats_over_time(self):
        """The periodic decay tick."""
        s = self.state
        if s.status == PetStatus.HUNGRY and s.health > 0:
            s.health = max(s.health - 10, 0)

        if s.status == PetStatus.HUNGRY:
            s.happiness = max(s.happiness - 2 * self.profile.happiness_decay_rate, 0)
        else:
            s.happiness = max(s.happiness - self.profile.happiness_decay_rate, 0)

        if not s.is_sleeping and s.sleep > 0:
            s.sleep = max(s.sleep - self.profile.sleep_decay_rate, 0)

        if s.fullness > 0:
            s.fullness = max(s.fullness - self.profile.hunger_decay_rate, 0)

        self.update_state()

    def update_state(self):
        """Re-evaluates the discrete status; the first matching rule wins."""
        s = self.state
        if s.health == 0:
            self._handle_death()
        elif s.sleep == 0 and s.status != PetStatus.DEAD:
            self._handle_exhaustion()
        elif s.happiness == 0 and s.status != PetStatus.DEAD and not s.is_sleeping:
            s.status = PetStatus.ANGRY
            s.still_angry = True
        elif s.fullness == 0 and s.status != PetStatus.DEAD:
            if not s.is_sleeping and not s.still_angry:
                s.status = PetStatus.HUNGRY
        else:
            self._check_and_set_normal()

    def _handle_death(self):
        s = self.state
        if s.status != PetStatus.DEAD:
            log.warning("pet_died", pet=self.name, score=s.score)
        s.status = PetStatus.DEAD
        s.is_sleeping = False
        self._sleep_steps_remaining = 0
        s.sleep = 0
        s.happiness = 0
        s.fullness = 0

    def _handle_exhaustion(self):
        s = self.state
        s.health = max(0, s.health - 5)
        if s.health == 0:
            self._handle_death()
            return
        self.go_sleep()

    def _check_and_set_normal(self):
        s = self.state
        if s.happiness > self.profile.max_happiness / 2:
            s.still_angry = False

        if (s.health > 0 and s.sleep > 0 and s.fullness > 0 and s.happiness > 0
                and s.status != PetStatus.NORMAL and not s.is_sleeping and not s.still_angry):
            s.status = PetStatus.NORMAL
            log.info("pet_back_to_normal", pet=self.name)

    def _wake_up(self):
        self.state.is_sleeping = False
        self._sleep_steps_remaining = 0
        self.update_state()
        if self.state.status == PetStatus.SLEEPING and self.state.still_angry:
            # Woke up still holding a grudge.
            self.state.status = PetStatus.ANGRY
        log.info("pet_woke_up", pet=self.name, status=self.state.status.value, sleep=self.state.sleep)
