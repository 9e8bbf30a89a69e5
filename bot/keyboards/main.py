"""Клавиатуры главного меню."""

from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

MAIN_MENU_PAYLOAD = "menu:main"
ERRORS_PAYLOAD = "menu:errors"
TIMESHEET_PAYLOAD = "menu:timesheet"
PRODUCTIVITY_PAYLOAD = "menu:productivity"
WORK_PAYLOAD = "menu:work"
ADMIN_PANEL_PAYLOAD = "menu:admin"
CHANGE_FIO_PAYLOAD = "menu:change_fio"


def main_menu_kb(is_admin: bool = False) -> InlineKeyboardMarkup:
    """Основные разделы; кнопка админ-панели только для администраторов."""

    rows = [
        [
            InlineKeyboardButton(text="📊 Ошибки", callback_data=ERRORS_PAYLOAD),
            InlineKeyboardButton(text="📅 Табель", callback_data=TIMESHEET_PAYLOAD),
        ],
        [
            InlineKeyboardButton(text="🚀 Производительность", callback_data=PRODUCTIVITY_PAYLOAD),
            InlineKeyboardButton(text="💼 Подработка", callback_data=WORK_PAYLOAD),
        ],
    ]
    if is_admin:
        rows.append([InlineKeyboardButton(text="👑 Админ", callback_data=ADMIN_PANEL_PAYLOAD)])
    rows.append([InlineKeyboardButton(text="🔄 Сменить ФИО", callback_data=CHANGE_FIO_PAYLOAD)])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def back_kb(payload: str = MAIN_MENU_PAYLOAD, text: str = "↩️ Назад") -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text=text, callback_data=payload)]]
    )


def cancel_change_fio_kb() -> InlineKeyboardMarkup:
    return back_kb(MAIN_MENU_PAYLOAD, "❌ Отмена")
