"""Утилиты для работы с переменными окружения."""

from __future__ import annotations

import logging
import os

DEFAULT_SESSIONS_FILE = "sessions.json"


def require_env(name: str) -> str:
    """Возвращает значение переменной окружения или выбрасывает понятную ошибку."""

    value = os.getenv(name, "").strip()
    if not value:
        raise RuntimeError(f"Не задана обязательная переменная окружения {name}")
    return value


def get_spreadsheet_id() -> str:
    """Идентификатор Google-таблицы с данными бота."""

    return require_env("SPREADSHEET_ID")


def get_super_admin_id() -> int | None:
    """Возвращает Telegram ID супер-администратора или ``None`` если не указан."""

    raw_value = os.getenv("SUPER_ADMIN_ID", "").strip()
    if not raw_value:
        return None
    try:
        return int(raw_value)
    except ValueError as exc:  # noqa: PERF203 - ошибка конфигурации должна быть явной
        raise RuntimeError("SUPER_ADMIN_ID должен содержать целое число") from exc


def get_sessions_path() -> str:
    """Путь к JSON-файлу с сессиями пользователей."""

    return os.getenv("SESSIONS_FILE", "").strip() or DEFAULT_SESSIONS_FILE


def get_log_level() -> int:
    """Уровень логирования из ``LOG_LEVEL`` (по умолчанию INFO)."""

    name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO
