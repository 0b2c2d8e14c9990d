import pytest

from pocketpet import main
from pocketpet.models.pet import PetType
from pocketpet.services.save_manager import CorruptSaveError


@pytest.fixture()
def wired(monkeypatch, save_manager, access):
    monkeypatch.setattr(main, "build_save_manager", lambda: save_manager)
    monkeypatch.setattr(main, "build_access_controller", lambda _save_manager: access)
    return access


async def test_corrupt_slot_still_closes_access_session(wired, save_manager):
    save_manager.slot_path(2).write_text("garbage", encoding="utf-8")

    with pytest.raises(CorruptSaveError):
        await main.run(2, None, PetType.DOG)

    assert wired.is_playing is False
    assert wired._check_task is None
    assert wired.global_session_count == 1
    assert wired.global_total_play_hours == 0.0


async def test_out_of_range_slot_still_closes_access_session(wired):
    with pytest.raises(ValueError):
        await main.run(7, None, PetType.DOG)
    assert wired.is_playing is False
    assert wired._check_task is None


async def test_empty_slot_returns_error_code(wired):
    assert await main.run(3, None, PetType.DOG) == 1
    assert wired.is_playing is False
    assert wired.session_count == 1


def test_parse_args_reads_new_pet_options():
    args = main.parse_args(["--new", "Rex", "--type", "SHEEP"])
    assert args.name == "Rex"
    assert args.pet_type == PetType.SHEEP
    assert args.slot is None
