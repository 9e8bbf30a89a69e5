"""Клавиатуры раздела подработок для сотрудника."""

from __future__ import annotations

from typing import Iterable

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from bot.keyboards.main import MAIN_MENU_PAYLOAD, WORK_PAYLOAD
from bot.utils.formatting import format_date_short
from services.shifts import Shift

SHIFTS_LIST_PAYLOAD = "work:shifts"
MY_APPLICATIONS_PAYLOAD = "work:mine"
SHIFT_DETAIL_PREFIX = "work:shift:"
SIGN_UP_PREFIX = "work:signup:"
CANCEL_PREFIX = "work:cancel:"


def work_menu_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="📋 Доступные смены", callback_data=SHIFTS_LIST_PAYLOAD),
                InlineKeyboardButton(text="📝 Мои заявки", callback_data=MY_APPLICATIONS_PAYLOAD),
            ],
            [InlineKeyboardButton(text="↩️ Назад", callback_data=MAIN_MENU_PAYLOAD)],
        ]
    )


def shifts_list_kb(shifts: Iterable[Shift], *, with_back: bool = True) -> InlineKeyboardMarkup:
    rows = [
        [
            InlineKeyboardButton(
                text=f"📅 {format_date_short(shift.date)} {shift.time}",
                callback_data=f"{SHIFT_DETAIL_PREFIX}{shift.id}",
            )
        ]
        for shift in shifts
    ]
    if with_back:
        rows.append([InlineKeyboardButton(text="↩️ Назад", callback_data=WORK_PAYLOAD)])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def shift_detail_kb(
    shift_id: str, *, can_sign_up: bool, can_cancel: bool
) -> InlineKeyboardMarkup:
    rows: list[list[InlineKeyboardButton]] = []
    if can_sign_up:
        rows.append(
            [
                InlineKeyboardButton(
                    text="📝 Записаться на смену", callback_data=f"{SIGN_UP_PREFIX}{shift_id}"
                )
            ]
        )
    if can_cancel:
        rows.append(
            [
                InlineKeyboardButton(
                    text="🚫 Отменить запись", callback_data=f"{CANCEL_PREFIX}{shift_id}"
                )
            ]
        )
    rows.append([InlineKeyboardButton(text="↩️ Назад к списку", callback_data=SHIFTS_LIST_PAYLOAD)])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def after_action_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="📋 Мои заявки", callback_data=MY_APPLICATIONS_PAYLOAD)],
            [InlineKeyboardButton(text="↩️ К списку смен", callback_data=SHIFTS_LIST_PAYLOAD)],
        ]
    )


def retry_shift_kb(shift_id: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="🔄 Попробовать снова", callback_data=f"{SHIFT_DETAIL_PREFIX}{shift_id}"
                )
            ],
            [InlineKeyboardButton(text="↩️ Назад", callback_data=SHIFTS_LIST_PAYLOAD)],
        ]
    )


def my_applications_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🔄 Обновить список", callback_data=MY_APPLICATIONS_PAYLOAD)],
            [InlineKeyboardButton(text="📋 Доступные смены", callback_data=SHIFTS_LIST_PAYLOAD)],
            [InlineKeyboardButton(text="↩️ Назад", callback_data=WORK_PAYLOAD)],
        ]
    )
