"""Вспомогательные функции для отправки и редактирования сообщений."""

from __future__ import annotations

import logging
from typing import Any

from aiogram import Bot, types
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest

__all__ = ["notify_user", "safe_answer", "safe_edit"]

logger = logging.getLogger(__name__)


async def safe_edit(
    callback: types.CallbackQuery, text: str, *, reply_markup: Any | None = None
) -> None:
    """Редактирует сообщение callback; при невозможности отправляет новое."""

    message = callback.message
    if message is None:
        return
    try:
        await message.edit_text(text, reply_markup=reply_markup)
    except TelegramBadRequest as exc:
        if "message is not modified" in str(exc):
            logger.debug("Сообщение не изменилось, редактирование пропущено.")
            return
        logger.debug("Не удалось отредактировать сообщение: %s", exc)
        await message.answer(text, reply_markup=reply_markup)


async def safe_answer(
    callback: types.CallbackQuery, text: str | None = None, *, show_alert: bool = False
) -> None:
    """Отвечает на callback, игнорируя устаревшие запросы."""

    try:
        await callback.answer(text, show_alert=show_alert)
    except TelegramBadRequest:
        logger.debug("Callback устарел, ответ не отправлен.", exc_info=False)


async def notify_user(bot: Bot, user_id: int | None, text: str) -> bool:
    """Отправляет уведомление сотруднику; ошибки Telegram только логируются."""

    if not user_id:
        return False
    try:
        await bot.send_message(user_id, text)
    except TelegramAPIError as exc:
        logger.warning("Не удалось уведомить пользователя %s: %s", user_id, exc)
        return False
    return True
