"""Хранилище FSM aiogram в локальном JSON-файле.

Сессия на каждого пользователя чата хранит состояние FSM, данные (ФИО,
поля мастера создания смены, ожидаемое действие администратора) и время
последней активности. Файл перезаписывается атомарно через временный файл.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from aiogram.fsm.state import State
from aiogram.fsm.storage.base import BaseStorage, StateType, StorageKey

logger = logging.getLogger(__name__)

SESSION_MAX_AGE_HOURS = 72


def _state_name(state: StateType) -> Optional[str]:
    if isinstance(state, State):
        return state.state
    return state


class JsonFileStorage(BaseStorage):
    """FSM-хранилище с сохранением сессий в файл."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._sessions: Dict[str, Dict[str, Any]] = self._load()

    @staticmethod
    def _key(key: StorageKey) -> str:
        return f"{key.bot_id}:{key.chat_id}:{key.user_id}"

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            logger.info("Файл сессий %s не найден, начинаем с пустого", self.path)
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Не удалось прочитать файл сессий %s", self.path)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Файл сессий %s имеет неверный формат", self.path)
            return {}
        sessions = {key: value for key, value in raw.items() if isinstance(value, dict)}
        logger.info("Сессии загружены: %s записей", len(sessions))
        return sessions

    def _save(self) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        if self.path.parent and not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(
            json.dumps(self._sessions, ensure_ascii=False, indent=2), encoding="utf-8"
        )
        os.replace(tmp_path, self.path)

    def _session(self, key: StorageKey) -> Dict[str, Any]:
        session = self._sessions.setdefault(
            self._key(key), {"state": None, "data": {}, "created_at": time.time()}
        )
        session["last_activity"] = time.time()
        return session

    async def set_state(self, key: StorageKey, state: StateType = None) -> None:
        self._session(key)["state"] = _state_name(state)
        self._save()

    async def get_state(self, key: StorageKey) -> Optional[str]:
        session = self._sessions.get(self._key(key))
        return session.get("state") if session else None

    async def set_data(self, key: StorageKey, data: Mapping[str, Any]) -> None:
        self._session(key)["data"] = dict(data)
        self._save()

    async def get_data(self, key: StorageKey) -> Dict[str, Any]:
        session = self._sessions.get(self._key(key))
        if not session:
            return {}
        return dict(session.get("data") or {})

    async def close(self) -> None:
        self._save()

    # ---------- Обслуживание ----------

    def cleanup_old_sessions(self, max_age_hours: float = SESSION_MAX_AGE_HOURS) -> int:
        """Удаляет сессии без активности дольше ``max_age_hours``."""

        threshold = time.time() - max_age_hours * 3600
        stale = [
            key
            for key, session in self._sessions.items()
            if float(session.get("last_activity") or 0) < threshold
        ]
        for key in stale:
            del self._sessions[key]
        if stale:
            self._save()
            logger.info("Удалено устаревших сессий: %s", len(stale))
        return len(stale)

    def find_by_fio(self, fio: str) -> list[str]:
        """Ключи сессий, в которых сохранено указанное ФИО."""

        return [
            key
            for key, session in self._sessions.items()
            if (session.get("data") or {}).get("user_fio") == fio
        ]

    def get_stats(self) -> Dict[str, int]:
        day_ago = time.time() - 24 * 3600
        total = len(self._sessions)
        authorized = sum(
            1 for session in self._sessions.values() if (session.get("data") or {}).get("user_fio")
        )
        active = sum(
            1
            for session in self._sessions.values()
            if float(session.get("last_activity") or 0) >= day_ago
        )
        return {"total": total, "authorized": authorized, "active_last_24h": active}
