# pocketpet/services/save_manager.py
import json
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

import structlog
from pydantic import ValidationError

from pocketpet.core.storage import ensure_directory, read_text_if_exists, write_text_atomic
from pocketpet.models.game_state import GameState

log = structlog.get_logger(__name__)


class CorruptSaveError(ValueError):
    """Raised when a slot file exists but cannot be parsed into a GameState."""

    def __init__(self, slot: int, path: Path, reason: str):
        super().__init__(f"Save slot {slot} at {path} is corrupt: {reason}")
        self.slot = slot
        self.path = path


class SaveLoadManager:
    """Fixed set of numbered save slots, one JSON file per slot."""

    def __init__(self, save_dir: Union[str, Path] = "saves", slot_count: int = 3,
                 now: Callable[[], datetime] = datetime.now):
        self.save_dir = ensure_directory(Path(save_dir))
        self.slot_count = slot_count
        self._now = now

    @property
    def slots(self) -> List[int]:
        return list(range(1, self.slot_count + 1))

    def slot_path(self, slot: int) -> Path:
        if slot not in self.slots:
            raise ValueError(f"Slot must be between 1 and {self.slot_count}, got {slot}")
        return self.save_dir / f"slot{slot}.json"

    def has_save(self, slot: int) -> bool:
        return self.slot_path(slot).exists()

    def save_game(self, state: GameState, slot: int):
        path = self.slot_path(slot)
        now = self._now()
        if state.creation_time is None:
            state.creation_time = now
        state.last_saved_time = now

        write_text_atomic(path, state.model_dump_json(by_alias=True, indent=2))
        log.debug("slot_saved", slot=slot, pet=state.pet_name, last_saved_time=now.isoformat())

    def load_game(self, slot: int) -> Optional[GameState]:
        path = self.slot_path(slot)
        try:
            raw = read_text_if_exists(path)
            if raw is None:
                return None
            return GameState.model_validate_json(raw)
        except (ValidationError, json.JSONDecodeError, UnicodeDecodeError) as e:
            log.error("slot_load_failed", slot=slot, path=str(path), error=str(e))
            raise CorruptSaveError(slot, path, str(e)) from e

    def get_save_file_counts(self) -> int:
        return sum(1 for slot in self.slots if self.has_save(slot))

    def first_free_slot(self) -> Optional[int]:
        for slot in self.slots:
            if not self.has_save(slot):
                return slot
        return None

    def find_oldest_slot(self) -> Optional[int]:
        """Slot whose save was created first, or None when every slot is empty.

        Corrupt slots are skipped so that one bad file cannot block eviction.
        """
        oldest_slot = None
        oldest_time = None
        for slot in self.slots:
            try:
                state = self.load_game(slot)
            except CorruptSaveError:
                log.warning("oldest_slot_scan_skipped_corrupt", slot=slot)
                continue
            if state is None or state.creation_time is None:
                continue
            if oldest_time is None or state.creation_time < oldest_time:
                oldest_time = state.creation_time
                oldest_slot = slot
        return oldest_slot

    def allocate_slot(self) -> int:
        """First free slot, otherwise the oldest one (its save gets evicted)."""
        slot = self.first_free_slot()
        if slot is not None:
            log.info("slot_allocated_free", slot=slot)
            return slot
        slot = self.find_oldest_slot()
        if slot is None:
            # Every slot is occupied but none is readable; overwrite the first.
            slot = self.slots[0]
        log.info("slot_allocated_evicting_oldest", slot=slot)
        return slot
