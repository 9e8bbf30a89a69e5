"""Валидация ФИО, которое сотрудник отправляет для входа."""

from __future__ import annotations

from services.users import normalize_fio, validate_fio


def parse_fio(value: str) -> str:
    """Возвращает ФИО с нормализованными пробелами или выбрасывает ``ValueError``."""

    candidate = normalize_fio(value)
    if not validate_fio(candidate):
        raise ValueError("Ожидается «Фамилия Имя Отчество»: три слова из букв и дефисов.")
    return candidate
