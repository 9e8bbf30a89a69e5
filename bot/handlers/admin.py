"""Панель администратора: заявки, список администраторов, статистика."""

from __future__ import annotations

import asyncio
import logging

from aiogram import F, Router, types
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup

from bot import dependencies
from bot.handlers.common import is_admin, require_admin
from bot.keyboards.admin import (
    ADD_PAYLOAD,
    APPLICATION_DETAIL_PREFIX,
    APPLICATIONS_PAYLOAD,
    APPROVE_PREFIX,
    LIST_PAYLOAD,
    MANAGE_PAYLOAD,
    REJECT_PREFIX,
    REMOVE_PAYLOAD,
    STATS_PAYLOAD,
    admin_panel_kb,
    application_actions_kb,
    applications_kb,
    manage_admins_kb,
    parse_application_payload,
    stats_kb,
)
from bot.keyboards.main import ADMIN_PANEL_PAYLOAD, back_kb
from bot.texts import (
    NO_RIGHTS,
    admin_stats_text,
    admins_list_text,
    application_decision_text,
    application_detail_text,
    employee_decision_text,
)
from bot.utils.locks import acquire_shift_lock, release_lock
from bot.utils.messaging import notify_user, safe_answer, safe_edit
from services.admins import AdminError, find_pending_entry
from services.sheets import extract_user_name
from services.shifts import ShiftError

router = Router(name="admin")

logger = logging.getLogger(__name__)

PANEL_TEXT = "👑 <b>ПАНЕЛЬ АДМИНИСТРАТОРА</b>"
MANAGE_TEXT = "👥 <b>УПРАВЛЕНИЕ АДМИНИСТРАТОРАМИ</b>"


class AdminAction(StatesGroup):
    """Ожидание Telegram ID для добавления или удаления администратора."""

    add_admin = State()
    remove_admin = State()


@router.message(Command("admin"))
async def handle_admin_command(message: types.Message, state: FSMContext) -> None:
    if not await is_admin(message.from_user.id):
        await message.answer("❌ Недостаточно прав для выполнения этой команды.")
        return
    await state.set_state(None)
    await message.answer(PANEL_TEXT, reply_markup=admin_panel_kb())


@router.callback_query(F.data == ADMIN_PANEL_PAYLOAD)
async def handle_admin_panel(callback: types.CallbackQuery, state: FSMContext) -> None:
    if not await require_admin(callback):
        return
    await state.set_state(None)
    await safe_edit(callback, PANEL_TEXT, reply_markup=admin_panel_kb())
    await safe_answer(callback)


# ---------- Заявки ----------


@router.callback_query(F.data == APPLICATIONS_PAYLOAD)
async def handle_applications(callback: types.CallbackQuery) -> None:
    if not await require_admin(callback):
        return

    service = dependencies.get_admin_service()
    try:
        applications = await asyncio.to_thread(service.get_pending_applications)
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось загрузить заявки")
        await safe_answer(callback, "❌ Ошибка при загрузке заявок", show_alert=True)
        return

    if not applications:
        await safe_edit(
            callback,
            "📭 <b>Нет заявок на подработку для рассмотрения</b>",
            reply_markup=back_kb(ADMIN_PANEL_PAYLOAD),
        )
    else:
        await safe_edit(
            callback,
            f"📋 <b>ЗАЯВКИ НА ПОДРАБОТКУ</b>\n\nНа рассмотрении: {len(applications)}",
            reply_markup=applications_kb(applications),
        )
    await safe_answer(callback)


@router.callback_query(F.data.startswith(APPLICATION_DETAIL_PREFIX))
async def handle_application_detail(callback: types.CallbackQuery) -> None:
    if not await require_admin(callback):
        return
    try:
        shift_id, key = parse_application_payload(callback.data, APPLICATION_DETAIL_PREFIX)
    except ValueError:
        await safe_answer(callback, "❌ Заявка не найдена")
        return

    shifts = dependencies.get_shift_service()
    try:
        shift = await asyncio.to_thread(shifts.get_shift_by_id, shift_id)
    except ShiftError as exc:
        await safe_answer(callback, f"❌ {exc}", show_alert=True)
        return

    try:
        entry = find_pending_entry(shift, key)
    except ShiftError:
        await safe_answer(callback, "❌ Заявка не найдена", show_alert=True)
        return

    await safe_edit(
        callback,
        application_detail_text(extract_user_name(entry), shift),
        reply_markup=application_actions_kb(shift.id, key),
    )
    await safe_answer(callback)


async def _decide(callback: types.CallbackQuery, prefix: str, approve: bool) -> None:
    """Подтверждение или отклонение заявки с уведомлением сотрудника."""

    if not await require_admin(callback):
        return
    try:
        shift_id, key = parse_application_payload(callback.data, prefix)
    except ValueError:
        await safe_answer(callback, "❌ Заявка не найдена")
        return

    service = dependencies.get_admin_service()
    action = service.approve_application if approve else service.reject_application
    lock = await acquire_shift_lock(shift_id)
    try:
        decision = await asyncio.to_thread(action, shift_id, key)
    except ShiftError as exc:
        await safe_answer(callback, f"❌ {exc}", show_alert=True)
        return
    except Exception:  # noqa: BLE001
        logger.exception("Ошибка при обработке заявки %s на смену %s", key, shift_id)
        await safe_answer(callback, "❌ Ошибка при обработке заявки", show_alert=True)
        return
    finally:
        release_lock(lock)

    await safe_answer(callback, "✅ Заявка подтверждена!" if approve else "❌ Заявка отклонена!")
    await safe_edit(
        callback,
        application_decision_text(approve, decision.user_name, decision.shift),
        reply_markup=back_kb(APPLICATIONS_PAYLOAD),
    )
    await notify_user(
        callback.bot, decision.user_id, employee_decision_text(approve, decision.shift)
    )


@router.callback_query(F.data.startswith(APPROVE_PREFIX))
async def handle_approve(callback: types.CallbackQuery) -> None:
    await _decide(callback, APPROVE_PREFIX, approve=True)


@router.callback_query(F.data.startswith(REJECT_PREFIX))
async def handle_reject(callback: types.CallbackQuery) -> None:
    await _decide(callback, REJECT_PREFIX, approve=False)


# ---------- Администраторы ----------


@router.callback_query(F.data == MANAGE_PAYLOAD)
async def handle_manage(callback: types.CallbackQuery, state: FSMContext) -> None:
    if not await require_admin(callback):
        return
    await state.set_state(None)
    await safe_edit(callback, MANAGE_TEXT, reply_markup=manage_admins_kb())
    await safe_answer(callback)


@router.callback_query(F.data == LIST_PAYLOAD)
async def handle_admins_list(callback: types.CallbackQuery) -> None:
    if not await require_admin(callback):
        return
    service = dependencies.get_admin_service()
    try:
        admins = await asyncio.to_thread(service.get_admins)
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось получить список администраторов")
        await safe_answer(callback, "❌ Ошибка при загрузке списка", show_alert=True)
        return
    await safe_edit(
        callback,
        admins_list_text(admins, service.super_admin_id),
        reply_markup=back_kb(MANAGE_PAYLOAD),
    )
    await safe_answer(callback)


@router.callback_query(F.data.in_({ADD_PAYLOAD, REMOVE_PAYLOAD}))
async def handle_admin_action_prompt(callback: types.CallbackQuery, state: FSMContext) -> None:
    if not await require_admin(callback):
        return
    adding = callback.data == ADD_PAYLOAD
    await state.set_state(AdminAction.add_admin if adding else AdminAction.remove_admin)
    title = "ДОБАВЛЕНИЕ АДМИНИСТРАТОРА" if adding else "УДАЛЕНИЕ АДМИНИСТРАТОРА"
    await safe_edit(
        callback,
        f"👥 <b>{title}</b>\n\nОтправьте Telegram ID пользователя:",
        reply_markup=back_kb(MANAGE_PAYLOAD, "❌ Отмена"),
    )
    await safe_answer(callback)


@router.message(AdminAction.add_admin, F.text, ~F.text.startswith("/"))
@router.message(AdminAction.remove_admin, F.text, ~F.text.startswith("/"))
async def handle_admin_id_input(message: types.Message, state: FSMContext) -> None:
    if not await is_admin(message.from_user.id):
        await state.set_state(None)
        await message.answer(NO_RIGHTS)
        return

    text = (message.text or "").strip()
    if not text.isdigit():
        await message.answer("❌ Неверный формат ID. Введите числовой ID пользователя.")
        return

    target_id = int(text)
    adding = await state.get_state() == AdminAction.add_admin.state
    service = dependencies.get_admin_service()
    action = service.add_admin if adding else service.remove_admin
    try:
        await asyncio.to_thread(action, target_id)
    except AdminError as exc:
        await state.set_state(None)
        await message.answer(f"❌ {exc}", reply_markup=manage_admins_kb())
        return
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось изменить список администраторов (id=%s)", target_id)
        await state.set_state(None)
        await message.answer("❌ Ошибка при изменении списка администраторов.")
        return

    await state.set_state(None)
    done = "добавлен в администраторы" if adding else "удалён из администраторов"
    await message.answer(f"✅ Пользователь {target_id} {done}.")
    await message.answer(MANAGE_TEXT, reply_markup=manage_admins_kb())


@router.callback_query(F.data == STATS_PAYLOAD)
async def handle_stats(callback: types.CallbackQuery) -> None:
    if not await require_admin(callback):
        return
    service = dependencies.get_admin_service()
    try:
        stats = await asyncio.to_thread(service.get_admin_stats)
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось получить статистику")
        await safe_answer(callback, "❌ Ошибка при загрузке статистики", show_alert=True)
        return

    storage = dependencies.get_storage()
    sessions = storage.get_stats() if storage is not None else None
    await safe_edit(callback, admin_stats_text(stats, sessions), reply_markup=stats_kb())
    await safe_answer(callback)
