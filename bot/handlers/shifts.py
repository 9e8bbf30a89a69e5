"""Управление сменами: мастер создания, список, статусы, статистика и поиск."""

from __future__ import annotations

import asyncio
import logging
from html import escape
from typing import Any, Callable, Dict

from aiogram import F, Router, types
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup

from bot import dependencies
from bot.handlers.common import is_admin, require_admin
from bot.keyboards.shifts import (
    ACTIVATE_PREFIX,
    ACTIVE_SHIFTS_PAYLOAD,
    ALL_SHIFTS_PAYLOAD,
    CANCEL_CREATION_PAYLOAD,
    COMPLETE_PREFIX,
    CREATE_SHIFT_PAYLOAD,
    DEACTIVATE_PREFIX,
    DETAIL_PREFIX,
    FIND_SHIFTS_PAYLOAD,
    SHIFTS_MENU_PAYLOAD,
    SHIFTS_STATS_PAYLOAD,
    admin_shifts_kb,
    back_to_shifts_kb,
    cancel_creation_kb,
    search_again_kb,
    shift_actions_kb,
    shifts_menu_kb,
    stats_kb,
)
from bot.texts import (
    CREATE_SHIFT_INTRO,
    NO_RIGHTS,
    admin_shift_detail_text,
    search_results_text,
    shift_created_text,
    shift_date,
    shift_department,
    shift_time,
    shifts_stats_text,
)
from bot.utils.messaging import safe_answer, safe_edit
from bot.validators.shift import (
    parse_department,
    parse_people,
    parse_shift_date,
    parse_shift_time,
)
from services.shifts import ShiftError, ShiftValidationError

router = Router(name="shifts")

logger = logging.getLogger(__name__)

DRAFT_KEY = "new_shift"
MENU_TEXT = "📅 <b>УПРАВЛЕНИЕ СМЕНАМИ</b>"
SEARCH_PROMPT = (
    "🔍 <b>ПОИСК СМЕН</b>\n\n"
    "Отправьте дату и, при необходимости, отдел:\n"
    "<code>ДД.ММ.ГГГГ [отдел]</code>\n\n"
    "Пример: 15.01.2025 Склад"
)


class ShiftCreation(StatesGroup):
    """Шаги мастера создания смены."""

    date = State()
    time = State()
    department = State()
    people = State()


class ShiftSearch(StatesGroup):
    query = State()


async def _get_draft(state: FSMContext) -> Dict[str, Any]:
    data = await state.get_data()
    draft = data.get(DRAFT_KEY)
    return dict(draft) if isinstance(draft, dict) else {}


async def _save_draft(state: FSMContext, draft: Dict[str, Any]) -> None:
    await state.update_data(**{DRAFT_KEY: draft})


async def _start_creation(state: FSMContext) -> None:
    await _save_draft(state, {})
    await state.set_state(ShiftCreation.date)


# ---------- Создание смены ----------


@router.message(Command("podrabotka"))
async def handle_create_command(message: types.Message, state: FSMContext) -> None:
    if not await is_admin(message.from_user.id):
        await message.answer("❌ Недостаточно прав для выполнения этой команды.")
        return
    await _start_creation(state)
    await message.answer(CREATE_SHIFT_INTRO, reply_markup=cancel_creation_kb())


@router.callback_query(F.data == CREATE_SHIFT_PAYLOAD)
async def handle_create_callback(callback: types.CallbackQuery, state: FSMContext) -> None:
    if not await require_admin(callback):
        return
    await _start_creation(state)
    await safe_edit(callback, CREATE_SHIFT_INTRO, reply_markup=cancel_creation_kb())
    await safe_answer(callback)


@router.callback_query(F.data == CANCEL_CREATION_PAYLOAD)
async def handle_cancel_creation(callback: types.CallbackQuery, state: FSMContext) -> None:
    await state.set_state(None)
    await _save_draft(state, {})
    await safe_edit(
        callback, "❌ Создание смены отменено.", reply_markup=back_to_shifts_kb()
    )
    await safe_answer(callback)


async def _wizard_step(
    message: types.Message,
    state: FSMContext,
    field: str,
    parser: Callable[[str], Any],
    next_state: State,
    next_prompt: str,
) -> None:
    """Проверяет ответ, сохраняет поле черновика и задаёт следующий вопрос."""

    try:
        value = parser(message.text or "")
    except ValueError as exc:
        await message.answer(f"❌ {exc}", reply_markup=cancel_creation_kb())
        return

    draft = await _get_draft(state)
    draft[field] = value
    await _save_draft(state, draft)
    await state.set_state(next_state)
    await message.answer(next_prompt, reply_markup=cancel_creation_kb())


@router.message(ShiftCreation.date, F.text, ~F.text.startswith("/"))
async def handle_date(message: types.Message, state: FSMContext) -> None:
    await _wizard_step(
        message,
        state,
        "date",
        parse_shift_date,
        ShiftCreation.time,
        "⏰ Введите время смены в формате ЧЧ:ММ-ЧЧ:ММ\nПример: 14:00-22:00",
    )


@router.message(ShiftCreation.time, F.text, ~F.text.startswith("/"))
async def handle_time(message: types.Message, state: FSMContext) -> None:
    await _wizard_step(
        message,
        state,
        "time",
        parse_shift_time,
        ShiftCreation.department,
        "🏢 Введите отдел или место работы\nПример: Склад",
    )


@router.message(ShiftCreation.department, F.text, ~F.text.startswith("/"))
async def handle_department(message: types.Message, state: FSMContext) -> None:
    await _wizard_step(
        message,
        state,
        "department",
        parse_department,
        ShiftCreation.people,
        "👥 Сколько человек требуется?\nПример: 3",
    )


@router.message(ShiftCreation.people, F.text, ~F.text.startswith("/"))
async def handle_people(message: types.Message, state: FSMContext) -> None:
    """Последний шаг: проверка прав и запись смены в таблицу."""

    try:
        people = parse_people(message.text or "")
    except ValueError as exc:
        await message.answer(f"❌ {exc}", reply_markup=cancel_creation_kb())
        return

    if not await is_admin(message.from_user.id):
        await state.set_state(None)
        await message.answer(NO_RIGHTS)
        return

    draft = await _get_draft(state)
    service = dependencies.get_shift_service()
    try:
        shift = await asyncio.to_thread(
            service.create_shift,
            draft.get("date", ""),
            draft.get("time", ""),
            draft.get("department", ""),
            people,
        )
    except ShiftValidationError as exc:
        await state.set_state(None)
        await message.answer(
            "❌ <b>Ошибки в данных смены:</b>\n\n" + "\n".join(f"• {item}" for item in exc.errors),
            reply_markup=back_to_shifts_kb(),
        )
        return
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось создать смену (user_id=%s)", message.from_user.id)
        await state.set_state(None)
        await message.answer(
            "❌ Ошибка при создании смены. Попробуйте позже.", reply_markup=back_to_shifts_kb()
        )
        return

    await state.set_state(None)
    await _save_draft(state, {})
    await message.answer(shift_created_text(shift), reply_markup=back_to_shifts_kb())


# ---------- Список и статусы ----------


@router.callback_query(F.data == SHIFTS_MENU_PAYLOAD)
async def handle_shifts_menu(callback: types.CallbackQuery, state: FSMContext) -> None:
    if not await require_admin(callback):
        return
    await state.set_state(None)
    await safe_edit(callback, MENU_TEXT, reply_markup=shifts_menu_kb())
    await safe_answer(callback)


@router.callback_query(F.data.in_({ALL_SHIFTS_PAYLOAD, ACTIVE_SHIFTS_PAYLOAD}))
async def handle_shifts_list(callback: types.CallbackQuery) -> None:
    if not await require_admin(callback):
        return

    service = dependencies.get_shift_service()
    only_active = callback.data == ACTIVE_SHIFTS_PAYLOAD
    loader = service.get_active_shifts if only_active else service.get_all_shifts
    try:
        shifts = await asyncio.to_thread(loader)
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось загрузить список смен")
        await safe_answer(callback, "❌ Ошибка при загрузке смен", show_alert=True)
        return

    if not shifts:
        await safe_edit(callback, "📭 <b>Смен не найдено</b>", reply_markup=back_to_shifts_kb())
    else:
        title = "АКТИВНЫЕ СМЕНЫ" if only_active else "ВСЕ СМЕНЫ"
        await safe_edit(
            callback,
            f"📋 <b>{title}</b>\n\nВсего: {len(shifts)}",
            reply_markup=admin_shifts_kb(shifts),
        )
    await safe_answer(callback)


@router.callback_query(F.data.startswith(DETAIL_PREFIX))
async def handle_shift_detail(callback: types.CallbackQuery) -> None:
    if not await require_admin(callback):
        return

    shift_id = callback.data[len(DETAIL_PREFIX):]
    service = dependencies.get_shift_service()
    try:
        shift = await asyncio.to_thread(service.get_shift_details, shift_id)
    except ShiftError as exc:
        await safe_answer(callback, f"❌ {exc}", show_alert=True)
        return
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось загрузить смену %s", shift_id)
        await safe_answer(callback, "❌ Ошибка при загрузке смены", show_alert=True)
        return

    await safe_edit(callback, admin_shift_detail_text(shift), reply_markup=shift_actions_kb(shift))
    await safe_answer(callback)


_STATUS_ACTIONS = {
    COMPLETE_PREFIX: ("complete_shift", "ЗАВЕРШЕНА"),
    DEACTIVATE_PREFIX: ("deactivate_shift", "ДЕАКТИВИРОВАНА"),
    ACTIVATE_PREFIX: ("activate_shift", "АКТИВИРОВАНА"),
}


@router.callback_query(
    F.data.startswith(COMPLETE_PREFIX)
    | F.data.startswith(DEACTIVATE_PREFIX)
    | F.data.startswith(ACTIVATE_PREFIX)
)
async def handle_status_change(callback: types.CallbackQuery) -> None:
    if not await require_admin(callback):
        return

    prefix = next(item for item in _STATUS_ACTIONS if callback.data.startswith(item))
    method_name, label = _STATUS_ACTIONS[prefix]
    shift_id = callback.data[len(prefix):]
    service = dependencies.get_shift_service()
    try:
        await asyncio.to_thread(getattr(service, method_name), shift_id)
    except ShiftError as exc:
        await safe_answer(callback, f"❌ {exc}", show_alert=True)
        return
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось изменить статус смены %s", shift_id)
        await safe_answer(callback, "❌ Ошибка при изменении статуса", show_alert=True)
        return

    logger.info(
        "Смена %s: %s (user_id=%s)", shift_id, method_name, callback.from_user.id
    )
    await safe_answer(callback, "✅ Статус обновлён")
    await safe_edit(
        callback,
        f"✅ <b>СМЕНА #{escape(shift_id)} {label}</b>",
        reply_markup=back_to_shifts_kb(),
    )


@router.callback_query(F.data == SHIFTS_STATS_PAYLOAD)
async def handle_shifts_stats(callback: types.CallbackQuery) -> None:
    if not await require_admin(callback):
        return
    service = dependencies.get_shift_service()
    try:
        stats = await asyncio.to_thread(service.get_shifts_stats)
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось получить статистику смен")
        await safe_answer(callback, "❌ Ошибка при загрузке статистики", show_alert=True)
        return
    await safe_edit(callback, shifts_stats_text(stats), reply_markup=stats_kb())
    await safe_answer(callback)


# ---------- Поиск ----------


@router.callback_query(F.data == FIND_SHIFTS_PAYLOAD)
async def handle_find_prompt(callback: types.CallbackQuery, state: FSMContext) -> None:
    if not await require_admin(callback):
        return
    await state.set_state(ShiftSearch.query)
    await safe_edit(callback, SEARCH_PROMPT, reply_markup=back_to_shifts_kb())
    await safe_answer(callback)


@router.message(ShiftSearch.query, F.text, ~F.text.startswith("/"))
async def handle_find_query(message: types.Message, state: FSMContext) -> None:
    """Запрос вида «ДД.ММ.ГГГГ [отдел]»."""

    parts = (message.text or "").strip().split(maxsplit=1)
    try:
        date_text = parse_shift_date(parts[0] if parts else "")
    except ValueError as exc:
        await message.answer(f"❌ {exc}", reply_markup=search_again_kb())
        return
    department = parts[1].strip() if len(parts) > 1 else None

    await state.set_state(None)
    service = dependencies.get_shift_service()
    try:
        shifts = await asyncio.to_thread(
            service.find_shifts, date=date_text, department=department
        )
    except Exception:  # noqa: BLE001
        logger.exception("Ошибка поиска смен (%s)", message.text)
        await message.answer("❌ Ошибка при поиске смен", reply_markup=search_again_kb())
        return

    if not shifts:
        await message.answer("📭 <b>Смены не найдены</b>", reply_markup=search_again_kb())
        return
    await message.answer(search_results_text(shifts), reply_markup=admin_shifts_kb(shifts))


@router.message(Command("debug_shifts"))
async def handle_debug_shifts(message: types.Message) -> None:
    """Короткая сводка по листу подработок для администратора."""

    if not await is_admin(message.from_user.id):
        await message.answer("❌ Недостаточно прав для выполнения этой команды.")
        return

    service = dependencies.get_shift_service()
    try:
        shifts = await asyncio.to_thread(service.get_all_shifts)
    except Exception:  # noqa: BLE001
        logger.exception("Ошибка в команде /debug_shifts")
        await message.answer("❌ Не удалось прочитать лист подработок")
        return

    lines = [f"🔧 <b>Лист подработок</b>\n\nСмен в таблице: {len(shifts)}", ""]
    for shift in shifts[:5]:
        lines.append(
            f"#{escape(shift.id)}: {shift_date(shift)} {shift_time(shift)} | "
            f"{shift_department(shift)} | "
            f"{shift.status.value} | {len(shift.approved)}/{shift.required_people}"
        )
    await message.answer("\n".join(lines).rstrip())
