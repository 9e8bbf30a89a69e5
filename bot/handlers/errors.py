"""Перехват необработанных ошибок обработчиков."""

from __future__ import annotations

import logging

from aiogram import Router
from aiogram.exceptions import TelegramAPIError
from aiogram.types import ErrorEvent

from bot.texts import GENERIC_ERROR

router = Router(name="errors")

logger = logging.getLogger(__name__)


@router.error()
async def handle_error(event: ErrorEvent) -> bool:
    """Логирует исключение и сообщает пользователю об ошибке."""

    update = event.update
    logger.error(
        "Необработанная ошибка при обработке обновления %s",
        update.update_id,
        exc_info=event.exception,
    )

    try:
        if update.callback_query is not None:
            await update.callback_query.answer(GENERIC_ERROR, show_alert=True)
        elif update.message is not None:
            await update.message.answer(GENERIC_ERROR)
    except TelegramAPIError:
        logger.warning("Не удалось отправить сообщение об ошибке", exc_info=True)
    return True
