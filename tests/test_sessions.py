import asyncio
import json
import time

from aiogram.fsm.storage.base import StorageKey

from bot.handlers.shifts import ShiftCreation
from services.sessions import JsonFileStorage

KEY = StorageKey(bot_id=1, chat_id=2, user_id=3)
OTHER_KEY = StorageKey(bot_id=1, chat_id=5, user_id=5)


def test_state_and_data_survive_restart(tmp_path) -> None:
    path = tmp_path / "sessions.json"
    storage = JsonFileStorage(path)

    asyncio.run(storage.set_data(KEY, {"user_fio": "Иванов Иван Иванович"}))
    asyncio.run(storage.set_state(KEY, ShiftCreation.date))

    restored = JsonFileStorage(path)
    assert asyncio.run(restored.get_state(KEY)) == "ShiftCreation:date"
    assert asyncio.run(restored.get_data(KEY)) == {"user_fio": "Иванов Иван Иванович"}
    assert "1:2:3" in json.loads(path.read_text(encoding="utf-8"))
    assert not (tmp_path / "sessions.json.tmp").exists()


def test_clearing_state_keeps_data(tmp_path) -> None:
    storage = JsonFileStorage(tmp_path / "sessions.json")
    asyncio.run(storage.set_data(KEY, {"user_fio": "Иванов Иван Иванович"}))
    asyncio.run(storage.set_state(KEY, "AdminAction:add_admin"))

    asyncio.run(storage.set_state(KEY, None))

    assert asyncio.run(storage.get_state(KEY)) is None
    assert asyncio.run(storage.get_data(KEY))["user_fio"] == "Иванов Иван Иванович"


def test_unknown_session_is_empty(tmp_path) -> None:
    storage = JsonFileStorage(tmp_path / "missing" / "sessions.json")

    assert asyncio.run(storage.get_state(KEY)) is None
    assert asyncio.run(storage.get_data(KEY)) == {}


def test_corrupted_file_starts_empty(tmp_path) -> None:
    path = tmp_path / "sessions.json"
    path.write_text("{not json", encoding="utf-8")

    storage = JsonFileStorage(path)

    assert storage.get_stats()["total"] == 0
    asyncio.run(storage.set_data(KEY, {"a": 1}))
    assert json.loads(path.read_text(encoding="utf-8"))["1:2:3"]["data"] == {"a": 1}


def test_cleanup_and_stats(tmp_path) -> None:
    storage = JsonFileStorage(tmp_path / "sessions.json")
    asyncio.run(storage.set_data(KEY, {"user_fio": "Иванов Иван Иванович"}))
    asyncio.run(storage.set_data(OTHER_KEY, {}))

    assert storage.get_stats() == {"total": 2, "authorized": 1, "active_last_24h": 2}
    assert storage.find_by_fio("Иванов Иван Иванович") == ["1:2:3"]

    storage._sessions["1:5:5"]["last_activity"] = time.time() - 100 * 3600

    assert storage.cleanup_old_sessions(max_age_hours=72) == 1
    assert storage.get_stats()["total"] == 1
    assert "1:5:5" not in JsonFileStorage(tmp_path / "sessions.json")._sessions
