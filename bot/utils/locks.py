"""Блокировки от повторных нажатий и параллельных операций над сменой."""

from __future__ import annotations

import asyncio
from typing import Dict, Hashable

__all__ = ["acquire_shift_lock", "acquire_user_lock", "release_lock"]

# Реестр блокировок: ("user", telegram_id) или ("shift", shift_id)
_LOCKS: Dict[Hashable, asyncio.Lock] = {}
_REGISTRY_LOCK = asyncio.Lock()


async def _get_lock(key: Hashable) -> asyncio.Lock:
    async with _REGISTRY_LOCK:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = asyncio.Lock()
            _LOCKS[key] = lock
    return lock


async def acquire_user_lock(user_id: int) -> asyncio.Lock | None:
    """Пытается захватить блокировку пользователя.

    Возвращает ``None``, если операция пользователя уже выполняется и
    повторное нажатие нужно отклонить.
    """

    lock = await _get_lock(("user", user_id))
    if lock.locked():
        return None
    await lock.acquire()
    return lock


async def acquire_shift_lock(shift_id: str) -> asyncio.Lock:
    """Ожидает и захватывает блокировку смены (решения по заявкам идут по очереди)."""

    lock = await _get_lock(("shift", str(shift_id)))
    await lock.acquire()
    return lock


def release_lock(lock: asyncio.Lock) -> None:
    if lock.locked():
        lock.release()
