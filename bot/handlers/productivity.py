"""Производительность сотрудника: выбор месяца, сводка, детализация по дням."""

from __future__ import annotations

import asyncio
import logging
from datetime import date

from aiogram import F, Router, types
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext

from bot import dependencies
from bot.handlers.common import get_fio, require_fio
from bot.keyboards.main import PRODUCTIVITY_PAYLOAD, back_kb
from bot.keyboards.productivity import (
    DETAIL_PREFIX,
    MONTH_PREFIX,
    detail_kb,
    months_kb,
    quick_stats_kb,
    summary_kb,
)
from bot.texts import (
    FIO_REQUIRED,
    compare_text,
    productivity_detail_text,
    productivity_menu_text,
    productivity_summary_text,
    quick_productivity_text,
)
from bot.utils.formatting import last_months, paginate
from bot.utils.messaging import safe_answer, safe_edit

router = Router(name="productivity")

logger = logging.getLogger(__name__)

MONTHS_IN_MENU = 6
DAYS_PER_PAGE = 10


def _parse_numbers(payload: str, prefix: str, count: int) -> list[int] | None:
    parts = payload[len(prefix):].split(":")
    if len(parts) != count:
        return None
    try:
        numbers = [int(part) for part in parts]
    except ValueError:
        return None
    if not 1 <= numbers[1] <= 12:
        return None
    return numbers


@router.callback_query(F.data == PRODUCTIVITY_PAYLOAD)
async def handle_productivity_menu(callback: types.CallbackQuery, state: FSMContext) -> None:
    fio = await require_fio(callback, state)
    if fio is None:
        return
    await safe_edit(
        callback,
        productivity_menu_text(fio),
        reply_markup=months_kb(last_months(MONTHS_IN_MENU)),
    )
    await safe_answer(callback)


@router.callback_query(F.data.startswith(MONTH_PREFIX))
async def handle_month(callback: types.CallbackQuery, state: FSMContext) -> None:
    numbers = _parse_numbers(callback.data, MONTH_PREFIX, 2)
    if numbers is None:
        await safe_answer(callback, "❌ Неверные параметры")
        return
    fio = await require_fio(callback, state)
    if fio is None:
        return

    year, month = numbers
    users = dependencies.get_user_service()
    try:
        data = await asyncio.to_thread(users.get_productivity, fio, year, month)
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось получить производительность за %s.%s", month, year)
        await safe_edit(
            callback,
            "❌ Не удалось получить данные производительности. Попробуйте позже.",
            reply_markup=back_kb(PRODUCTIVITY_PAYLOAD),
        )
        await safe_answer(callback)
        return

    await safe_edit(
        callback, productivity_summary_text(fio, data), reply_markup=summary_kb(year, month)
    )
    await safe_answer(callback)


@router.callback_query(F.data.startswith(DETAIL_PREFIX))
async def handle_detail(callback: types.CallbackQuery, state: FSMContext) -> None:
    """Дни с данными по 10 на страницу; данные перечитываются из таблицы."""

    numbers = _parse_numbers(callback.data, DETAIL_PREFIX, 3)
    if numbers is None:
        await safe_answer(callback, "❌ Неверные параметры")
        return
    fio = await require_fio(callback, state)
    if fio is None:
        return

    year, month, page = numbers
    users = dependencies.get_user_service()
    try:
        data = await asyncio.to_thread(users.get_productivity, fio, year, month)
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось загрузить детализацию за %s.%s", month, year)
        await safe_edit(
            callback,
            "❌ Не удалось загрузить детализацию.",
            reply_markup=back_kb(PRODUCTIVITY_PAYLOAD),
        )
        await safe_answer(callback)
        return

    days, page, total_pages = paginate(data.days, page, DAYS_PER_PAGE)
    text = productivity_detail_text(
        fio, data, days, page, total_pages, (page - 1) * DAYS_PER_PAGE
    )
    await safe_edit(callback, text, reply_markup=detail_kb(year, month, page, total_pages))
    await safe_answer(callback)


@router.message(Command("prod"))
async def handle_prod_command(message: types.Message, state: FSMContext) -> None:
    fio = await get_fio(state)
    if fio is None:
        await message.answer(FIO_REQUIRED)
        return

    today = date.today()
    users = dependencies.get_user_service()
    try:
        data = await asyncio.to_thread(users.get_productivity, fio, today.year, today.month)
    except Exception:  # noqa: BLE001
        logger.exception("Ошибка в команде /prod (user_id=%s)", message.from_user.id)
        await message.answer("❌ Ошибка при получении данных производительности")
        return
    await message.answer(quick_productivity_text(fio, data), reply_markup=quick_stats_kb())


@router.message(Command("compare"))
async def handle_compare_command(message: types.Message, state: FSMContext) -> None:
    """Сравнение текущего месяца с предыдущим."""

    fio = await get_fio(state)
    if fio is None:
        await message.answer(FIO_REQUIRED)
        return

    (current_year, current_month), (prev_year, prev_month) = last_months(2)
    users = dependencies.get_user_service()
    try:
        current, previous = await asyncio.gather(
            asyncio.to_thread(users.get_productivity, fio, current_year, current_month),
            asyncio.to_thread(users.get_productivity, fio, prev_year, prev_month),
        )
    except Exception:  # noqa: BLE001
        logger.exception("Ошибка в команде /compare (user_id=%s)", message.from_user.id)
        await message.answer("❌ Ошибка при сравнении производительности")
        return
    await message.answer(compare_text(fio, current, previous), reply_markup=quick_stats_kb())
