"""Вход по ФИО, главное меню, ошибки и табель."""

from __future__ import annotations

import asyncio
import logging

from aiogram import F, Router, types
from aiogram.filters import Command, CommandStart, StateFilter
from aiogram.fsm.context import FSMContext

from bot import dependencies
from bot.handlers.common import FIO_KEY, get_fio, is_admin, require_fio
from bot.keyboards.main import (
    CHANGE_FIO_PAYLOAD,
    ERRORS_PAYLOAD,
    MAIN_MENU_PAYLOAD,
    TIMESHEET_PAYLOAD,
    back_kb,
    cancel_change_fio_kb,
    main_menu_kb,
)
from bot.texts import (
    FIO_PROMPT,
    GENERIC_ERROR,
    HELP_TEXT,
    INFO_TEXT,
    INVALID_FIO,
    UNKNOWN_COMMAND,
    employee_not_found_text,
    errors_text,
    main_menu_text,
    timesheet_text,
    welcome_text,
)
from bot.utils.messaging import safe_answer, safe_edit
from bot.validators.fio import parse_fio
from services.users import TimesheetNotFoundError

router = Router(name="main")

logger = logging.getLogger(__name__)


@router.message(CommandStart())
async def handle_start(message: types.Message, state: FSMContext) -> None:
    """Приветствие и запрос ФИО; незавершённые сценарии сбрасываются."""

    await state.set_state(None)
    try:
        admin = await is_admin(message.from_user.id)
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось проверить права (user_id=%s)", message.from_user.id)
        admin = False
    await message.answer(welcome_text(admin))


@router.message(Command("help"))
async def handle_help(message: types.Message) -> None:
    await message.answer(HELP_TEXT)


@router.message(Command("info"))
async def handle_info(message: types.Message) -> None:
    await message.answer(INFO_TEXT)


@router.callback_query(F.data == MAIN_MENU_PAYLOAD)
async def handle_main_menu(callback: types.CallbackQuery, state: FSMContext) -> None:
    await state.set_state(None)
    fio = await get_fio(state)
    if fio is None:
        await safe_edit(callback, FIO_PROMPT)
        await safe_answer(callback)
        return

    admin = await is_admin(callback.from_user.id)
    await safe_edit(callback, main_menu_text(fio, admin), reply_markup=main_menu_kb(admin))
    await safe_answer(callback)


@router.callback_query(F.data == CHANGE_FIO_PAYLOAD)
async def handle_change_fio(callback: types.CallbackQuery, state: FSMContext) -> None:
    """Новое ФИО принимается следующим сообщением; старое действует до ввода."""

    await state.set_state(None)
    await safe_edit(
        callback,
        "📝 <b>СМЕНА ФИО</b>\n\nОтправьте ваше ФИО заново:\n(Фамилия Имя Отчество)",
        reply_markup=cancel_change_fio_kb(),
    )
    await safe_answer(callback)


@router.message(StateFilter(None), F.text, ~F.text.startswith("/"))
async def handle_fio_input(message: types.Message, state: FSMContext) -> None:
    try:
        fio = parse_fio(message.text or "")
    except ValueError:
        await message.answer(INVALID_FIO)
        return

    users = dependencies.get_user_service()
    user_id = message.from_user.id
    try:
        exists = await asyncio.to_thread(users.check_employee_exists, fio)
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось проверить сотрудника (user_id=%s)", user_id)
        await message.answer(GENERIC_ERROR)
        return

    if not exists:
        await message.answer(employee_not_found_text(fio))
        return

    await state.update_data(**{FIO_KEY: fio})
    try:
        await asyncio.to_thread(users.save_user, fio, user_id)
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось сохранить пользователя (user_id=%s)", user_id)

    admin = await is_admin(user_id)
    await message.answer(main_menu_text(fio, admin), reply_markup=main_menu_kb(admin))


@router.callback_query(F.data == ERRORS_PAYLOAD)
async def handle_errors(callback: types.CallbackQuery, state: FSMContext) -> None:
    fio = await require_fio(callback, state)
    if fio is None:
        return

    users = dependencies.get_user_service()
    try:
        count = await asyncio.to_thread(users.get_error_count, fio)
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось получить ошибки (user_id=%s)", callback.from_user.id)
        await safe_edit(callback, "❌ Не удалось получить данные об ошибках.", reply_markup=back_kb())
        await safe_answer(callback)
        return

    await safe_edit(callback, errors_text(fio, count), reply_markup=back_kb())
    await safe_answer(callback)


@router.callback_query(F.data == TIMESHEET_PAYLOAD)
async def handle_timesheet(callback: types.CallbackQuery, state: FSMContext) -> None:
    fio = await require_fio(callback, state)
    if fio is None:
        return

    users = dependencies.get_user_service()
    try:
        timesheet = await asyncio.to_thread(users.get_timesheet, fio)
    except TimesheetNotFoundError:
        await safe_edit(callback, "❌ Сотрудник не найден в табеле.", reply_markup=back_kb())
        await safe_answer(callback)
        return
    except Exception:  # noqa: BLE001
        logger.exception("Не удалось получить табель (user_id=%s)", callback.from_user.id)
        await safe_edit(callback, "❌ Не удалось получить данные табеля.", reply_markup=back_kb())
        await safe_answer(callback)
        return

    await safe_edit(callback, timesheet_text(fio, timesheet), reply_markup=back_kb())
    await safe_answer(callback)


@router.message(F.text.startswith("/"))
async def handle_unknown_command(message: types.Message) -> None:
    await message.answer(UNKNOWN_COMMAND)
