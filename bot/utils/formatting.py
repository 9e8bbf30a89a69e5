"""Форматирование дат, отделов, ФИО и чисел для сообщений бота."""

from __future__ import annotations

from datetime import date
from typing import Sequence, TypeVar

__all__ = [
    "MONTH_NAMES",
    "format_date_short",
    "format_department",
    "format_number",
    "format_percent",
    "format_progress_bar",
    "format_time",
    "last_months",
    "month_title",
    "paginate",
    "truncate_name",
]

T = TypeVar("T")

MONTH_NAMES = (
    "Январь",
    "Февраль",
    "Март",
    "Апрель",
    "Май",
    "Июнь",
    "Июль",
    "Август",
    "Сентябрь",
    "Октябрь",
    "Ноябрь",
    "Декабрь",
)

_DEPARTMENT_SHORT_NAMES = {
    "склад": "СКЛ",
    "торговый зал": "ТЗ",
    "касса": "КС",
    "кладовая": "КЛ",
    "приемка": "ПР",
    "приёмка": "ПР",
    "выдача": "ВД",
    "логистика": "ЛГ",
    "администрация": "АДМ",
    "мерчандайзинг": "МЧ",
    "операционный": "ОП",
}


def format_date_short(value: str | None) -> str:
    """Сокращает дату до ДД.ММ независимо от исходного формата."""

    if not value:
        return "??.??"
    text = value.strip()
    if "." in text:
        parts = text.split(".")
        if len(parts) >= 2:
            return f"{parts[0]}.{parts[1]}"
    elif "-" in text:
        parts = text.split("-")
        if len(parts) >= 3:
            return f"{parts[2][:2]}.{parts[1]}"
    elif "/" in text:
        parts = text.split("/")
        if len(parts) >= 2:
            return f"{parts[1]}.{parts[0]}"
    return text[:5]


def format_time(value: str | None) -> str:
    """Время начала смены из диапазона ЧЧ:ММ-ЧЧ:ММ."""

    if not value:
        return "??:??"
    return value.split("-", 1)[0].strip()


def format_department(value: str | None) -> str:
    if not value:
        return "???"
    key = value.strip().lower()
    return _DEPARTMENT_SHORT_NAMES.get(key, value.strip()[:3].upper())


def truncate_name(full_name: str | None, max_length: int = 15) -> str:
    """Иванов Иван Иванович → Иванов И.И."""

    if not full_name:
        return "???"
    parts = full_name.split()
    if len(parts) >= 3:
        return f"{parts[0]} {parts[1][0]}.{parts[2][0]}."
    if len(parts) == 2:
        return f"{parts[0]} {parts[1][0]}."
    if len(full_name) > max_length:
        return full_name[: max_length - 1] + "…"
    return full_name


def format_number(value: float | int | None) -> str:
    """Разделяет разряды пробелами; дробная часть отбрасывается, если она нулевая."""

    if value is None:
        return "0"
    if isinstance(value, float) and not value.is_integer():
        return f"{value:,.1f}".replace(",", " ")
    return f"{int(value):,}".replace(",", " ")


def format_percent(value: float, total: float) -> str:
    if not total:
        return "0%"
    return f"{round(value / total * 100)}%"


def format_progress_bar(current: float, total: float, length: int = 10) -> str:
    if total <= 0:
        return "[" + "░" * length + "]"
    filled = min(length, max(0, round(length * current / total)))
    return "[" + "█" * filled + "░" * (length - filled) + "]"


def month_title(year: int, month: int) -> str:
    return f"{MONTH_NAMES[month - 1]} {year}"


def last_months(count: int = 6, today: date | None = None) -> list[tuple[int, int]]:
    """Пары (год, месяц) от текущего месяца назад."""

    current = today or date.today()
    year, month = current.year, current.month
    result: list[tuple[int, int]] = []
    for _ in range(count):
        result.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return result


def paginate(items: Sequence[T], page: int, page_size: int = 10) -> tuple[list[T], int, int]:
    """Возвращает элементы страницы, номер страницы (с 1) и общее число страниц."""

    total_pages = max(1, -(-len(items) // page_size))
    page = min(max(page, 1), total_pages)
    start = (page - 1) * page_size
    return list(items[start : start + page_size]), page, total_pages
