"""Клавиатуры управления сменами (администратор)."""

from __future__ import annotations

from typing import Iterable

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from bot.keyboards.main import ADMIN_PANEL_PAYLOAD
from bot.utils.formatting import format_date_short, format_department
from services.shifts import Shift, ShiftStatus

SHIFTS_MENU_PAYLOAD = "shifts:menu"
ALL_SHIFTS_PAYLOAD = "shifts:all"
ACTIVE_SHIFTS_PAYLOAD = "shifts:active"
CREATE_SHIFT_PAYLOAD = "shifts:create"
SHIFTS_STATS_PAYLOAD = "shifts:stats"
FIND_SHIFTS_PAYLOAD = "shifts:find"
CANCEL_CREATION_PAYLOAD = "shifts:cancel_creation"
DETAIL_PREFIX = "shifts:detail:"
COMPLETE_PREFIX = "shifts:complete:"
DEACTIVATE_PREFIX = "shifts:deactivate:"
ACTIVATE_PREFIX = "shifts:activate:"

_STATUS_ICONS = {
    ShiftStatus.ACTIVE: "✅",
    ShiftStatus.COMPLETED: "🏁",
    ShiftStatus.INACTIVE: "⚫",
}


def shifts_menu_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="📋 Все смены", callback_data=ALL_SHIFTS_PAYLOAD),
                InlineKeyboardButton(text="✅ Активные", callback_data=ACTIVE_SHIFTS_PAYLOAD),
            ],
            [
                InlineKeyboardButton(text="➕ Создать смену", callback_data=CREATE_SHIFT_PAYLOAD),
                InlineKeyboardButton(text="🔍 Поиск", callback_data=FIND_SHIFTS_PAYLOAD),
            ],
            [InlineKeyboardButton(text="📊 Статистика смен", callback_data=SHIFTS_STATS_PAYLOAD)],
            [InlineKeyboardButton(text="↩️ Назад", callback_data=ADMIN_PANEL_PAYLOAD)],
        ]
    )


def admin_shifts_kb(shifts: Iterable[Shift]) -> InlineKeyboardMarkup:
    rows = [
        [
            InlineKeyboardButton(
                text=(
                    f"{_STATUS_ICONS[shift.status]} {format_date_short(shift.date)} "
                    f"{shift.time} {format_department(shift.department)} "
                    f"({len(shift.approved)}/{shift.required_people})"
                ),
                callback_data=f"{DETAIL_PREFIX}{shift.id}",
            )
        ]
        for shift in shifts
    ]
    rows.append([InlineKeyboardButton(text="↩️ Назад", callback_data=SHIFTS_MENU_PAYLOAD)])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def shift_actions_kb(shift: Shift) -> InlineKeyboardMarkup:
    """Действия над сменой зависят от её статуса."""

    if shift.status is ShiftStatus.ACTIVE:
        actions = [
            InlineKeyboardButton(
                text="🏁 Завершить смену", callback_data=f"{COMPLETE_PREFIX}{shift.id}"
            ),
            InlineKeyboardButton(
                text="⚫ Деактивировать", callback_data=f"{DEACTIVATE_PREFIX}{shift.id}"
            ),
        ]
    else:
        actions = [
            InlineKeyboardButton(text="✅ Активировать", callback_data=f"{ACTIVATE_PREFIX}{shift.id}")
        ]
    return InlineKeyboardMarkup(
        inline_keyboard=[
            actions,
            [InlineKeyboardButton(text="↩️ К списку смен", callback_data=SHIFTS_MENU_PAYLOAD)],
        ]
    )


def cancel_creation_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="❌ Отменить создание", callback_data=CANCEL_CREATION_PAYLOAD)]
        ]
    )


def back_to_shifts_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="↩️ К списку смен", callback_data=SHIFTS_MENU_PAYLOAD)]
        ]
    )


def stats_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🔄 Обновить", callback_data=SHIFTS_STATS_PAYLOAD)],
            [InlineKeyboardButton(text="↩️ Назад", callback_data=SHIFTS_MENU_PAYLOAD)],
        ]
    )


def search_again_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🔄 Попробовать снова", callback_data=FIND_SHIFTS_PAYLOAD)],
            [InlineKeyboardButton(text="↩️ Назад", callback_data=SHIFTS_MENU_PAYLOAD)],
        ]
    )
