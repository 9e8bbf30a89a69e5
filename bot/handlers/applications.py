"""Раздел подработок для сотрудника: смены, запись, отмена и мои заявки."""

from __future__ import annotations

import asyncio
import logging

from aiogram import F, Router, types
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext

from bot import dependencies
from bot.handlers.common import get_fio, require_fio
from bot.keyboards.main import WORK_PAYLOAD, back_kb
from bot.keyboards.work import (
    CANCEL_PREFIX,
    MY_APPLICATIONS_PAYLOAD,
    SHIFT_DETAIL_PREFIX,
    SHIFTS_LIST_PAYLOAD,
    SIGN_UP_PREFIX,
    after_action_kb,
    my_applications_kb,
    retry_shift_kb,
    shift_detail_kb,
    shifts_list_kb,
    work_menu_kb,
)
from bot.texts import (
    FIO_REQUIRED,
    my_applications_text,
    shift_detail_text,
    sign_up_done_text,
    work_menu_text,
)
from bot.utils.locks import acquire_user_lock, release_lock
from bot.utils.messaging import safe_answer, safe_edit
from services.shifts import ShiftError, ShiftNotFoundError, ShiftStatus

router = Router(name="applications")

logger = logging.getLogger(__name__)

NO_SHIFTS_TEXT = "📭 На данный момент нет доступных смен для подработки."


@router.callback_query(F.data == WORK_PAYLOAD)
async def handle_work_menu(callback: types.CallbackQuery, state: FSMContext) -> None:
    fio = await require_fio(callback, state)
    if fio is None:
        return
    await safe_edit(callback, work_menu_text(fio), reply_markup=work_menu_kb())
    await safe_answer(callback)


@router.callback_query(F.data == SHIFTS_LIST_PAYLOAD)
async def handle_shifts_list(callback: types.CallbackQuery, state: FSMContext) -> None:
    if await require_fio(callback, state) is None:
        return

    service = dependencies.get_shift_service()
    try:
        shifts = await asyncio.to_thread(service.get_available_shifts)
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось загрузить смены (user_id=%s)", callback.from_user.id)
        await safe_answer(callback, "❌ Ошибка при загрузке смен", show_alert=True)
        return

    if not shifts:
        await safe_edit(callback, NO_SHIFTS_TEXT, reply_markup=back_kb(WORK_PAYLOAD))
    else:
        await safe_edit(
            callback,
            f"📋 <b>ДОСТУПНЫЕ СМЕНЫ</b>\n\nНайдено активных смен: {len(shifts)}",
            reply_markup=shifts_list_kb(shifts),
        )
    await safe_answer(callback)


@router.callback_query(F.data.startswith(SHIFT_DETAIL_PREFIX))
async def handle_shift_detail(callback: types.CallbackQuery, state: FSMContext) -> None:
    fio = await require_fio(callback, state)
    if fio is None:
        return

    shift_id = callback.data[len(SHIFT_DETAIL_PREFIX):]
    service = dependencies.get_shift_service()
    try:
        shift = await asyncio.to_thread(service.get_shift_by_id, shift_id)
    except ShiftNotFoundError:
        await safe_answer(callback, "❌ Смена не найдена")
        await safe_edit(callback, "❌ <b>Смена не найдена</b>", reply_markup=back_kb(SHIFTS_LIST_PAYLOAD))
        return
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось загрузить смену %s", shift_id)
        await safe_answer(callback, "❌ Ошибка при загрузке деталей смены", show_alert=True)
        return

    user_status = shift.user_status(fio)
    can_sign_up = (
        shift.status is ShiftStatus.ACTIVE and user_status is None and shift.available_slots > 0
    )
    await safe_edit(
        callback,
        shift_detail_text(shift, fio),
        reply_markup=shift_detail_kb(
            shift.id, can_sign_up=can_sign_up, can_cancel=user_status is not None
        ),
    )
    await safe_answer(callback)


@router.callback_query(F.data.startswith(SIGN_UP_PREFIX))
async def handle_sign_up(callback: types.CallbackQuery, state: FSMContext) -> None:
    """Подача заявки; повторные нажатия во время записи отклоняются."""

    fio = await require_fio(callback, state)
    if fio is None:
        return

    user_id = callback.from_user.id
    lock = await acquire_user_lock(user_id)
    if lock is None:
        await safe_answer(callback, "⏳ Заявка уже отправляется, подождите.")
        return

    shift_id = callback.data[len(SIGN_UP_PREFIX):]
    service = dependencies.get_shift_service()
    try:
        shift = await asyncio.to_thread(service.sign_up, user_id, fio, shift_id)
    except ShiftError as exc:
        await safe_answer(callback, f"❌ {exc}", show_alert=True)
        await safe_edit(
            callback, f"❌ <b>Ошибка записи:</b>\n\n{exc}", reply_markup=retry_shift_kb(shift_id)
        )
        return
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось записать пользователя %s на смену %s", user_id, shift_id)
        await safe_answer(callback, "❌ Не удалось подать заявку, попробуйте позже", show_alert=True)
        return
    finally:
        release_lock(lock)

    await safe_answer(callback, "✅ Заявка подана! Ожидайте подтверждения руководителя.")
    await safe_edit(callback, sign_up_done_text(shift), reply_markup=after_action_kb())


@router.callback_query(F.data.startswith(CANCEL_PREFIX))
async def handle_cancel(callback: types.CallbackQuery, state: FSMContext) -> None:
    fio = await require_fio(callback, state)
    if fio is None:
        return

    shift_id = callback.data[len(CANCEL_PREFIX):]
    service = dependencies.get_shift_service()
    try:
        await asyncio.to_thread(service.cancel_sign_up, fio, shift_id)
    except ShiftError as exc:
        await safe_answer(callback, f"❌ {exc}", show_alert=True)
        return
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось отменить запись на смену %s", shift_id)
        await safe_answer(callback, "❌ Не удалось отменить запись", show_alert=True)
        return

    await safe_answer(callback, "✅ Запись отменена!")
    await safe_edit(
        callback,
        "✅ <b>ЗАПИСЬ ОТМЕНЕНА!</b>\n\nВы больше не записаны на эту смену.",
        reply_markup=after_action_kb(),
    )


@router.callback_query(F.data == MY_APPLICATIONS_PAYLOAD)
async def handle_my_applications(callback: types.CallbackQuery, state: FSMContext) -> None:
    fio = await require_fio(callback, state)
    if fio is None:
        return

    users = dependencies.get_user_service()
    try:
        applications = await asyncio.to_thread(users.get_user_applications, fio)
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось загрузить заявки (user_id=%s)", callback.from_user.id)
        await safe_answer(callback, "❌ Ошибка при загрузке заявок", show_alert=True)
        return

    if not applications:
        await safe_edit(
            callback,
            "📭 <b>У вас нет активных заявок на подработку.</b>",
            reply_markup=back_kb(WORK_PAYLOAD),
        )
    else:
        await safe_edit(
            callback, my_applications_text(applications), reply_markup=my_applications_kb()
        )
    await safe_answer(callback)


@router.message(Command("pod"))
async def handle_pod_command(message: types.Message, state: FSMContext) -> None:
    """Быстрый список смен для записи."""

    if await get_fio(state) is None:
        await message.answer(FIO_REQUIRED)
        return

    service = dependencies.get_shift_service()
    try:
        shifts = await asyncio.to_thread(service.get_available_shifts)
    except Exception:  # noqa: BLE001
        logger.exception("Ошибка в команде /pod (user_id=%s)", message.from_user.id)
        await message.answer("❌ Ошибка при загрузке смен")
        return

    if not shifts:
        await message.answer(NO_SHIFTS_TEXT)
        return
    await message.answer(
        "💼 <b>БЫСТРАЯ ЗАПИСЬ НА ПОДРАБОТКУ</b>\n\nВыберите смену:",
        reply_markup=shifts_list_kb(shifts, with_back=False),
    )
