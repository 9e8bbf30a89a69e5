"""Клавиатуры раздела производительности."""

from __future__ import annotations

from typing import Iterable

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from bot.keyboards.main import MAIN_MENU_PAYLOAD, PRODUCTIVITY_PAYLOAD
from bot.utils.formatting import month_title

MONTH_PREFIX = "prod:month:"
DETAIL_PREFIX = "prod:detail:"


def month_payload(year: int, month: int) -> str:
    return f"{MONTH_PREFIX}{year}:{month}"


def detail_payload(year: int, month: int, page: int) -> str:
    return f"{DETAIL_PREFIX}{year}:{month}:{page}"


def months_kb(months: Iterable[tuple[int, int]]) -> InlineKeyboardMarkup:
    rows = [
        [InlineKeyboardButton(text=f"📅 {month_title(year, month)}", callback_data=month_payload(year, month))]
        for year, month in months
    ]
    rows.append([InlineKeyboardButton(text="↩️ Назад в меню", callback_data=MAIN_MENU_PAYLOAD)])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def summary_kb(year: int, month: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="📋 Детализировать по дням", callback_data=detail_payload(year, month, 1)
                )
            ],
            [InlineKeyboardButton(text="📅 Выбрать другой месяц", callback_data=PRODUCTIVITY_PAYLOAD)],
            [InlineKeyboardButton(text="↩️ Главное меню", callback_data=MAIN_MENU_PAYLOAD)],
        ]
    )


def detail_kb(year: int, month: int, page: int, total_pages: int) -> InlineKeyboardMarkup:
    """Навигация по страницам детализации."""

    rows: list[list[InlineKeyboardButton]] = []
    navigation: list[InlineKeyboardButton] = []
    if page > 1:
        navigation.append(
            InlineKeyboardButton(text="⬅️ Назад", callback_data=detail_payload(year, month, page - 1))
        )
    if page < total_pages:
        navigation.append(
            InlineKeyboardButton(text="Вперед ➡️", callback_data=detail_payload(year, month, page + 1))
        )
    if navigation:
        rows.append(navigation)
    rows.extend(
        [
            [InlineKeyboardButton(text="📊 Назад к статистике", callback_data=month_payload(year, month))],
            [InlineKeyboardButton(text="📅 Выбрать месяц", callback_data=PRODUCTIVITY_PAYLOAD)],
            [InlineKeyboardButton(text="↩️ Главное меню", callback_data=MAIN_MENU_PAYLOAD)],
        ]
    )
    return InlineKeyboardMarkup(inline_keyboard=rows)


def quick_stats_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="📅 Подробная статистика", callback_data=PRODUCTIVITY_PAYLOAD)],
            [InlineKeyboardButton(text="↩️ Главное меню", callback_data=MAIN_MENU_PAYLOAD)],
        ]
    )
