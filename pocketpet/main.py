# pocketpet/main.py
import argparse
import asyncio
from pathlib import Path
from typing import List, Optional

import structlog

from pocketpet.core.logging_config import setup_logging
from pocketpet.core.settings import settings
from pocketpet.models.pet import PetType
from pocketpet.services.access_control import AccessController, SettingsStore
from pocketpet.services.pet_service import GameSession, create_new_game, open_saved_game
from pocketpet.services.save_manager import SaveLoadManager

log = structlog.get_logger(__name__)


class LoggingSessionObserver:
    """Reports access re-checks to the log and asks the session to end on violation."""

    def __init__(self, stop_event: asyncio.Event):
        self._stop_event = stop_event

    def on_time_restriction_violation(self, allowed_range: str) -> None:
        log.warning("Play time is over.", allowed_range=allowed_range)
        self._stop_event.set()

    def on_periodic_check(self, is_allowed: bool) -> None:
        log.debug("Access re-check.", allowed=is_allowed)


def build_save_manager() -> SaveLoadManager:
    return SaveLoadManager(save_dir=settings.SAVE_DIR, slot_count=settings.SAVE_SLOT_COUNT)


def build_access_controller(save_manager: SaveLoadManager) -> AccessController:
    store = SettingsStore(Path(settings.GLOBAL_SETTINGS_FILE))
    return AccessController(store, save_manager=save_manager,
                            recheck_interval_seconds=settings.ACCESS_RECHECK_INTERVAL_SECONDS)


def open_session(save_manager: SaveLoadManager, slot: Optional[int], name: Optional[str],
                 pet_type: PetType) -> Optional[GameSession]:
    session_kwargs = dict(decay_interval_seconds=settings.DECAY_TICK_INTERVAL_SECONDS,
                          step_interval_seconds=settings.SLEEP_STEP_INTERVAL_SECONDS)
    if name:
        return create_new_game(save_manager, name, pet_type, **session_kwargs)
    if slot is None:
        log.error("Nothing to play: pass --slot to load a save or --new to create a pet.")
        return None
    return open_saved_game(save_manager, slot, **session_kwargs)


async def run(slot: Optional[int], name: Optional[str], pet_type: PetType) -> int:
    save_manager = build_save_manager()
    access = build_access_controller(save_manager)

    stop_event = asyncio.Event()
    observer = LoggingSessionObserver(stop_event)
    if not await access.start_session(observer):
        return 1

    session = None
    try:
        session = open_session(save_manager, slot, name, pet_type)
        if session is None:
            return 1
        await session.start()
        await stop_event.wait()
    finally:
        log.info("Shutting down session.")
        if session is not None:
            await session.stop()
        await access.stop_session()
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=f"{settings.PROJECT_NAME} headless session runner")
    parser.add_argument("--slot", type=int, help="Save slot to load")
    parser.add_argument("--new", dest="name", help="Create a new pet with this name")
    parser.add_argument("--type", dest="pet_type", type=PetType, choices=list(PetType), default=PetType.DOG,
                        help="Species for a new pet")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(log_level_str=settings.LOG_LEVEL, env_type=settings.ENV_TYPE)
    log.info(f"{settings.PROJECT_NAME} starting up...")
    try:
        return asyncio.run(run(args.slot, args.name, args.pet_type))
    except KeyboardInterrupt:
        log.info("Interrupted, session closed.")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
