"""Точка входа бота статистики склада.

Подключает роутеры разделов, файловое хранилище сессий и запускает polling.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from pathlib import Path

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from dotenv import load_dotenv

from bot import dependencies
from bot.handlers.admin import router as admin_router
from bot.handlers.applications import router as applications_router
from bot.handlers.errors import router as errors_router
from bot.handlers.main import router as main_router
from bot.handlers.productivity import router as productivity_router
from bot.handlers.shifts import router as shifts_router
from services.env import get_log_level, get_sessions_path, require_env
from services.sessions import JsonFileStorage

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 6 * 60 * 60


def setup_logging() -> None:
    """Базовая настройка логгера для всего приложения."""

    logging.basicConfig(
        level=get_log_level(),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_dispatcher(storage: JsonFileStorage) -> Dispatcher:
    """Собирает диспетчер; главный роутер с вводом ФИО подключается последним."""

    dispatcher = Dispatcher(storage=storage)
    dispatcher.include_router(errors_router)
    dispatcher.include_router(admin_router)
    dispatcher.include_router(shifts_router)
    dispatcher.include_router(applications_router)
    dispatcher.include_router(productivity_router)
    dispatcher.include_router(main_router)
    return dispatcher


async def _cleanup_sessions_periodically(storage: JsonFileStorage) -> None:
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
        try:
            storage.cleanup_old_sessions()
        except Exception:  # noqa: BLE001
            logger.exception("Не удалось очистить старые сессии")


async def run() -> None:
    storage = JsonFileStorage(get_sessions_path())
    removed = storage.cleanup_old_sessions()
    logger.info("Удалено устаревших сессий при запуске: %s", removed)
    dependencies.set_storage(storage)

    bot = Bot(
        token=require_env("BOT_TOKEN"),
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dispatcher = build_dispatcher(storage)
    cleanup_task = asyncio.create_task(_cleanup_sessions_periodically(storage))

    logger.info("Бот запущен")
    try:
        await dispatcher.start_polling(bot)
    finally:
        cleanup_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await cleanup_task
        await bot.session.close()
        logger.info("Бот остановлен")


def main() -> None:
    """Запускает бота."""

    project_root = Path(__file__).resolve().parent
    load_dotenv()
    load_dotenv(project_root / ".env")
    setup_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
