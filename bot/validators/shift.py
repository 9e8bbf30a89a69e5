"""Валидаторы шагов мастера создания смены."""

from __future__ import annotations

import re
from datetime import datetime

__all__ = ["parse_shift_date", "parse_shift_time", "parse_department", "parse_people"]

_DATE_RE = re.compile(r"^\d{2}\.\d{2}\.\d{4}$")
_TIME_RE = re.compile(r"^(\d{2}):(\d{2})-(\d{2}):(\d{2})$")
_DIGITS_RE = re.compile(r"^\d{1,4}$")


def parse_shift_date(value: str) -> str:
    text = (value or "").strip()
    if not _DATE_RE.fullmatch(text):
        raise ValueError("Неверный формат даты. Используйте ДД.ММ.ГГГГ\nПример: 15.01.2025")
    try:
        datetime.strptime(text, "%d.%m.%Y")
    except ValueError as exc:
        raise ValueError("Такой даты не существует. Проверьте день и месяц.") from exc
    return text


def parse_shift_time(value: str) -> str:
    text = (value or "").replace(" ", "")
    match = _TIME_RE.fullmatch(text)
    if not match:
        raise ValueError("Неверный формат времени. Используйте ЧЧ:ММ-ЧЧ:ММ\nПример: 14:00-22:00")
    start_h, start_m, end_h, end_m = (int(part) for part in match.groups())
    if start_h > 23 or end_h > 23 or start_m > 59 or end_m > 59:
        raise ValueError("Часы должны быть от 00 до 23, минуты от 00 до 59.")
    return text


def parse_department(value: str) -> str:
    text = " ".join((value or "").split())
    if len(text) < 2:
        raise ValueError("Отдел должен содержать не менее 2 символов.")
    return text


def parse_people(value: str) -> int:
    """Количество человек: целое число больше нуля."""

    text = (value or "").strip()
    if not _DIGITS_RE.fullmatch(text) or int(text) <= 0:
        raise ValueError("Неверное количество. Введите число больше 0\nПример: 3")
    return int(text)
