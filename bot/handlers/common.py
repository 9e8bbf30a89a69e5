"""Общие проверки для обработчиков: ФИО из сессии и права администратора."""

from __future__ import annotations

import asyncio

from aiogram import types
from aiogram.fsm.context import FSMContext

from bot import dependencies
from bot.texts import FIO_NOT_FOUND_ALERT, NO_RIGHTS
from bot.utils.messaging import safe_answer

FIO_KEY = "user_fio"


async def get_fio(state: FSMContext) -> str | None:
    data = await state.get_data()
    fio = data.get(FIO_KEY)
    return fio if isinstance(fio, str) and fio else None


async def require_fio(callback: types.CallbackQuery, state: FSMContext) -> str | None:
    """ФИО из сессии; без него отвечает всплывающим сообщением."""

    fio = await get_fio(state)
    if fio is None:
        await safe_answer(callback, FIO_NOT_FOUND_ALERT, show_alert=True)
    return fio


async def is_admin(user_id: int) -> bool:
    service = dependencies.get_admin_service()
    return await asyncio.to_thread(service.is_admin, user_id)


async def require_admin(callback: types.CallbackQuery) -> bool:
    if await is_admin(callback.from_user.id):
        return True
    await safe_answer(callback, NO_RIGHTS, show_alert=True)
    return False
