"""Клавиатуры панели администратора."""

from __future__ import annotations

import re
from typing import Iterable

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from bot.keyboards.main import ADMIN_PANEL_PAYLOAD, MAIN_MENU_PAYLOAD
from bot.keyboards.shifts import SHIFTS_MENU_PAYLOAD
from bot.utils.formatting import format_date_short, truncate_name
from services.admins import POSITION_KEY_PREFIX, Application

APPLICATIONS_PAYLOAD = "admin:apps"
APPLICATION_DETAIL_PREFIX = "admin:app:"
APPROVE_PREFIX = "admin:approve:"
REJECT_PREFIX = "admin:reject:"
MANAGE_PAYLOAD = "admin:manage"
LIST_PAYLOAD = "admin:list"
ADD_PAYLOAD = "admin:add"
REMOVE_PAYLOAD = "admin:remove"
STATS_PAYLOAD = "admin:stats"

_KEY_RE = re.compile(rf"{POSITION_KEY_PREFIX}?\d+")


def application_payload(prefix: str, shift_id: str, key: int | str) -> str:
    return f"{prefix}{shift_id}:{key}"


def parse_application_payload(data: str, prefix: str) -> tuple[str, str]:
    """Разбирает ``<prefix><shift_id>:<ключ заявки>``; ``ValueError`` при ошибке.

    Ключ это Telegram ID или позиция записи без ID (``n0``, ``n1``...).
    """

    shift_id, _, key = data[len(prefix):].rpartition(":")
    if not shift_id or not _KEY_RE.fullmatch(key):
        raise ValueError("Некорректные данные заявки")
    return shift_id, key


def admin_panel_kb(*, with_back: bool = True) -> InlineKeyboardMarkup:
    rows = [
        [
            InlineKeyboardButton(text="📋 Заявки", callback_data=APPLICATIONS_PAYLOAD),
            InlineKeyboardButton(text="📅 Смены", callback_data=SHIFTS_MENU_PAYLOAD),
        ],
        [
            InlineKeyboardButton(text="👥 Админы", callback_data=MANAGE_PAYLOAD),
            InlineKeyboardButton(text="📊 Статистика", callback_data=STATS_PAYLOAD),
        ],
    ]
    if with_back:
        rows.append([InlineKeyboardButton(text="↩️ Назад", callback_data=MAIN_MENU_PAYLOAD)])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def applications_kb(applications: Iterable[Application]) -> InlineKeyboardMarkup:
    rows = [
        [
            InlineKeyboardButton(
                text=f"👤 {truncate_name(app.user_name)} • {format_date_short(app.date)} {app.time}",
                callback_data=application_payload(APPLICATION_DETAIL_PREFIX, app.shift_id, app.key),
            )
        ]
        for app in applications
    ]
    rows.append([InlineKeyboardButton(text="↩️ Назад", callback_data=ADMIN_PANEL_PAYLOAD)])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def application_actions_kb(shift_id: str, key: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="✅ Подтвердить",
                    callback_data=application_payload(APPROVE_PREFIX, shift_id, key),
                ),
                InlineKeyboardButton(
                    text="❌ Отклонить",
                    callback_data=application_payload(REJECT_PREFIX, shift_id, key),
                ),
            ],
            [InlineKeyboardButton(text="↩️ К списку заявок", callback_data=APPLICATIONS_PAYLOAD)],
        ]
    )


def manage_admins_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="👥 Список админов", callback_data=LIST_PAYLOAD),
                InlineKeyboardButton(text="➕ Добавить админа", callback_data=ADD_PAYLOAD),
            ],
            [InlineKeyboardButton(text="➖ Удалить админа", callback_data=REMOVE_PAYLOAD)],
            [InlineKeyboardButton(text="↩️ Назад в админ-панель", callback_data=ADMIN_PANEL_PAYLOAD)],
        ]
    )


def stats_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🔄 Обновить статистику", callback_data=STATS_PAYLOAD)],
            [InlineKeyboardButton(text="↩️ Назад в админ-панель", callback_data=ADMIN_PANEL_PAYLOAD)],
        ]
    )
