# pocketpet/services/access_control.py
import asyncio
import json
from datetime import datetime, time
from pathlib import Path
from typing import Callable, Optional, Protocol, Tuple, Union

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from pocketpet.core.storage import read_text_if_exists, write_text_atomic
from pocketpet.models.pet import PET_TYPE_PROFILES
from pocketpet.services.save_manager import SaveLoadManager

log = structlog.get_logger(__name__)


class AccessSettings(BaseModel):
    """Process-wide parental settings and play statistics, shared by every player."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    password_initialized: bool = False
    password: str = "0000"
    total_play_hours: float = 0.0
    session_count: int = 0
    controls_enabled: bool = False
    window_start: time = time(18, 0)
    window_end: time = time(20, 0)

    @property
    def play_time_limit(self) -> str:
        return f"{self.window_start:%H:%M} - {self.window_end:%H:%M}"


class CorruptSettingsError(ValueError):
    pass


class SettingsStore:
    """Single JSON file holding AccessSettings; the file is the source of truth."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> AccessSettings:
        try:
            raw = read_text_if_exists(self.path)
            if raw is None:
                return AccessSettings()
            return AccessSettings.model_validate_json(raw)
        except (ValidationError, json.JSONDecodeError, UnicodeDecodeError) as e:
            log.error("settings_load_failed", path=str(self.path), error=str(e))
            raise CorruptSettingsError(f"Settings file {self.path} is corrupt: {e}") from e

    def save(self, access_settings: AccessSettings):
        write_text_atomic(self.path, access_settings.model_dump_json(by_alias=True, indent=2))
        log.debug("settings_saved", path=str(self.path))


class SessionObserver(Protocol):
    def on_time_restriction_violation(self, allowed_range: str) -> None:
        ...

    def on_periodic_check(self, is_allowed: bool) -> None:
        ...


def parse_time_window(window: str) -> Tuple[time, time]:
    """Parses "HH:MM - HH:MM" into (start, end); raises ValueError if malformed."""
    parts = window.split("-")
    if len(parts) != 2:
        raise ValueError(f"Expected 'HH:MM - HH:MM', got {window!r}")
    endpoints = []
    for part in parts:
        fields = part.strip().split(":")
        if len(fields) != 2:
            raise ValueError(f"Expected HH:MM, got {part.strip()!r}")
        hour, minute = int(fields[0]), int(fields[1])
        endpoints.append(time(hour, minute))  # Rejects out-of-range values too
    return endpoints[0], endpoints[1]


def is_within_window(now: time, start: time, end: time) -> bool:
    """Inclusive at both ends; a start later than the end wraps past midnight."""
    current = now.hour * 60 + now.minute
    start_minutes = start.hour * 60 + start.minute
    end_minutes = end.hour * 60 + end.minute
    if start_minutes <= end_minutes:
        return start_minutes <= current <= end_minutes
    return current >= start_minutes or current <= end_minutes


class AccessController:
    """Gates play sessions by the parental time window and tracks play time.

    Every operation re-reads the settings file first and every mutation is
    written back immediately, so several controllers can share one file.
    """

    def __init__(self, store: SettingsStore, save_manager: Optional[SaveLoadManager] = None,
                 is_parent: bool = False, wall_clock: Callable[[], datetime] = datetime.now,
                 recheck_interval_seconds: float = 60.0):
        self.store = store
        self.save_manager = save_manager
        self.is_parent = is_parent
        self._wall_clock = wall_clock
        self.recheck_interval_seconds = recheck_interval_seconds

        # Per-player statistics; the global ones live in the settings file.
        self.total_play_hours = 0.0
        self.session_count = 0

        self._observer: Optional[SessionObserver] = None
        self._check_task: Optional[asyncio.Task] = None
        self._session_started_at: Optional[datetime] = None
        self._last_allowed = True

    # --- Password & privilege ---

    def set_password(self, password: str) -> bool:
        current = self.store.load()
        if current.password_initialized:
            log.info("password_already_initialized")
            return False
        current.password = password
        current.password_initialized = True
        self.store.save(current)
        log.info("password_initialized")
        return True

    def is_password_initialized(self) -> bool:
        return self.store.load().password_initialized

    def verify_password(self, password: str) -> bool:
        return self.store.load().password == password

    def access_parental_controls(self, password: str) -> bool:
        verified = self.verify_password(password)
        if verified:
            self.is_parent = True
            log.info("parent_mode_entered")
        else:
            log.warning("parent_mode_denied")
        return verified

    def exit_parental_controls(self):
        self.is_parent = False

    # --- Time window ---

    def is_allowed_to_play(self, now: Optional[Union[datetime, time]] = None) -> bool:
        current = self.store.load()
        if not current.controls_enabled:
            return True
        if now is None:
            now = self._wall_clock()
        if isinstance(now, datetime):
            now = now.time()
        return is_within_window(now, current.window_start, current.window_end)

    def set_controls(self, enabled: bool, window: Optional[str] = None) -> bool:
        if not self.is_parent:
            log.warning("set_controls_denied_not_parent")
            return False

        current = self.store.load()
        if window:
            try:
                start, end = parse_time_window(window)
            except ValueError as e:
                log.warning("set_controls_invalid_window", window=window, error=str(e))
                return False
            current.window_start = start
            current.window_end = end
        current.controls_enabled = enabled
        self.store.save(current)
        log.info("parental_controls_updated", enabled=enabled, window=current.play_time_limit)
        return True

    def play_time_limit(self) -> str:
        return self.store.load().play_time_limit

    def is_parental_controls_enabled(self) -> bool:
        return self.store.load().controls_enabled

    # --- Statistics ---

    @property
    def global_total_play_hours(self) -> float:
        return self.store.load().total_play_hours

    @property
    def global_session_count(self) -> int:
        return self.store.load().session_count

    @property
    def average_play_hours(self) -> float:
        current = self.store.load()
        if current.session_count > 0:
            return current.total_play_hours / current.session_count
        return 0.0

    def reset_statistics(self) -> bool:
        if not self.is_parent:
            log.warning("reset_statistics_denied_not_parent")
            return False
        self.total_play_hours = 0.0
        self.session_count = 0
        current = self.store.load()
        current.total_play_hours = 0.0
        current.session_count = 0
        self.store.save(current)
        log.info("statistics_reset")
        return True

    # --- Sessions ---

    @property
    def is_playing(self) -> bool:
        return self._session_started_at is not None

    async def start_session(self, observer: Optional[SessionObserver] = None) -> bool:
        if self.is_playing:
            log.warning("session_already_running")
            return True

        if not self.is_allowed_to_play():
            limit = self.play_time_limit()
            log.info("session_refused", allowed_range=limit)
            if observer is not None:
                observer.on_time_restriction_violation(limit)
            return False

        current = self.store.load()
        current.session_count += 1
        self.store.save(current)

        self._observer = observer
        self._session_started_at = self._wall_clock()
        self._last_allowed = True
        self._check_task = asyncio.create_task(self._periodic_check())
        log.info("session_started", session_count=current.session_count)
        return True

    async def stop_session(self):
        if not self.is_playing:
            return

        if self._check_task is not None:
            self._check_task.cancel()
            try:
                await self._check_task
            except asyncio.CancelledError:
                pass
            self._check_task = None

        elapsed = self._wall_clock() - self._session_started_at
        hours = elapsed.total_seconds() / 3600
        self._session_started_at = None
        self._observer = None

        self.total_play_hours += hours
        self.session_count += 1
        current = self.store.load()
        current.total_play_hours += hours
        self.store.save(current)
        log.info("session_stopped", session_hours=round(hours, 4),
                 total_play_hours=round(current.total_play_hours, 4))

    def check_now(self) -> bool:
        """Runs one re-check and notifies the observer; used by the periodic loop."""
        allowed = self.is_allowed_to_play()
        left_window = self._last_allowed and not allowed
        self._last_allowed = allowed
        if left_window:
            log.warning("session_left_allowed_window")

        observer = self._observer
        if observer is not None:
            observer.on_periodic_check(allowed)
            if left_window:
                observer.on_time_restriction_violation(self.play_time_limit())
        return allowed

    async def _periodic_check(self):
        log.debug("Access re-check task started.", interval_seconds=self.recheck_interval_seconds)
        while True:
            try:
                self.check_now()
            except Exception as e:
                log.error("Access re-check failed.", error=str(e), exc_info=True)
            await asyncio.sleep(self.recheck_interval_seconds)

    # --- Parent-only maintenance ---

    def revive_pet(self, slot: int) -> bool:
        """Restores every attribute of a stored pet to its maximum, dead or not."""
        if not self.is_parent:
            log.warning("revive_denied_not_parent", slot=slot)
            return False
        if self.save_manager is None:
            raise RuntimeError("AccessController was created without a SaveLoadManager")

        game_state = self.save_manager.load_game(slot)
        if game_state is None:
            log.info("revive_slot_empty", slot=slot)
            return False

        profile = PET_TYPE_PROFILES[game_state.pet_type]
        game_state.health = profile.max_health
        game_state.sleep = profile.max_sleep
        game_state.fullness = profile.max_fullness
        game_state.happiness = profile.max_happiness
        self.save_manager.save_game(game_state, slot)
        log.info("pet_revived", slot=slot, pet=game_state.pet_name)
        return True
