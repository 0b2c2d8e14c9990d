from datetime import datetime, timedelta
from pathlib import Path

import pytest

from pocketpet.services.access_control import AccessController, SettingsStore
from pocketpet.services.save_manager import SaveLoadManager


class FakeClock:
    """Monotonic seconds that only move when a test says so."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeWallClock:
    def __init__(self, start: datetime = datetime(2024, 5, 1, 12, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def wall_clock() -> FakeWallClock:
    return FakeWallClock()


@pytest.fixture()
def save_manager(tmp_path: Path, wall_clock: FakeWallClock) -> SaveLoadManager:
    return SaveLoadManager(save_dir=tmp_path / "saves", slot_count=3, now=wall_clock)


@pytest.fixture()
def settings_store(tmp_path: Path) -> SettingsStore:
    return SettingsStore(tmp_path / "global_settings.json")


@pytest.fixture()
def access(settings_store: SettingsStore, save_manager: SaveLoadManager,
           wall_clock: FakeWallClock) -> AccessController:
    return AccessController(settings_store, save_manager=save_manager, wall_clock=wall_clock,
                            recheck_interval_seconds=0.01)
