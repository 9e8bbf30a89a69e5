"""Смены для подработки: модель строки листа «Подработки» и операции над ней.

Колонки листа: A=ID, B=дата, C=время, D=отдел, E=требуется человек,
F=записавшиеся, G=статус, H=ожидают подтверждения, I=подтверждены.

Запись на смену проходит в два шага: сотрудник попадает в список ожидающих,
администратор переносит его в подтверждённые (см. ``services.admins``).
Свободные места считаются как ``требуется − (подтверждены + ожидают)``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

from services.sheets import (
    SHEET_SHIFTS,
    SheetsService,
    cell,
    column_letter,
    extract_user_name,
    join_user_list,
    make_user_entry,
    parse_int,
    parse_user_list,
)

logger = logging.getLogger(__name__)

SHIFTS_RANGE = "A:I"

COL_ID = 0
COL_DATE = 1
COL_TIME = 2
COL_DEPARTMENT = 3
COL_REQUIRED = 4
COL_SIGNED_UP = 5
COL_STATUS = 6
COL_PENDING = 7
COL_APPROVED = 8
ROW_WIDTH = 9

_FIELD_COLUMNS = (
    (COL_ID, "id"),
    (COL_DATE, "date"),
    (COL_TIME, "time"),
    (COL_DEPARTMENT, "department"),
    (COL_REQUIRED, "required_people"),
    (COL_SIGNED_UP, "signed_up"),
    (COL_STATUS, "status"),
    (COL_PENDING, "pending_approval"),
    (COL_APPROVED, "approved"),
)

DATE_FORMAT = "%d.%m.%Y"
_DATE_RE = re.compile(r"^\d{2}\.\d{2}\.\d{4}$")
_TIME_RE = re.compile(r"^(\d{2}):(\d{2})-(\d{2}):(\d{2})$")


class ShiftStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    INACTIVE = "inactive"

    @classmethod
    def parse(cls, value: Any) -> "ShiftStatus":
        """Распознаёт статус из ячейки; неизвестное значение считается активным."""

        text = str(value if value is not None else "").strip().lower()
        return _STATUS_ALIASES.get(text, cls.ACTIVE)


_STATUS_ALIASES = {
    "active": ShiftStatus.ACTIVE,
    "активно": ShiftStatus.ACTIVE,
    "completed": ShiftStatus.COMPLETED,
    "завершено": ShiftStatus.COMPLETED,
    "inactive": ShiftStatus.INACTIVE,
    "неактивно": ShiftStatus.INACTIVE,
}


class UserShiftStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"
    SIGNED = "signed"


class ShiftError(Exception):
    """Базовая ошибка операций со сменами. Текст показывается пользователю."""


class ShiftNotFoundError(ShiftError):
    def __init__(self, shift_id: Any) -> None:
        super().__init__(f"Смена {shift_id} не найдена")
        self.shift_id = str(shift_id)


class ShiftInactiveError(ShiftError):
    def __init__(self) -> None:
        super().__init__("Смена не активна для записи")


class ShiftFullError(ShiftError):
    def __init__(self) -> None:
        super().__init__("На эту смену уже набрано достаточно людей")


class AlreadyAppliedError(ShiftError):
    def __init__(self) -> None:
        super().__init__("Вы уже подали заявку на эту смену")


class ApplicationNotFoundError(ShiftError):
    def __init__(self) -> None:
        super().__init__("Заявка не найдена")


class ShiftValidationError(ShiftError):
    def __init__(self, errors: list[str]) -> None:
        super().__init__("\n".join(errors))
        self.errors = errors


def _contains_user(entries: Iterable[str], fio: str) -> bool:
    target = fio.strip()
    return any(extract_user_name(entry) == target for entry in entries)


def _without_user(entries: Iterable[str], fio: str) -> list[str]:
    target = fio.strip()
    return [entry for entry in entries if extract_user_name(entry) != target]


@dataclass
class Shift:
    """Строка листа «Подработки»."""

    id: str
    date: str
    time: str
    department: str
    required_people: int = 0
    signed_up: list[str] = field(default_factory=list)
    status: ShiftStatus = ShiftStatus.ACTIVE
    pending_approval: list[str] = field(default_factory=list)
    approved: list[str] = field(default_factory=list)
    row_index: Optional[int] = None
    raw: list[str] = field(default_factory=list, repr=False, compare=False)

    @classmethod
    def from_row(cls, row: list[str], row_index: int) -> "Shift":
        """Строит смену из строки листа; пустые ячейки остаются пустыми."""

        required = parse_int(cell(row, COL_REQUIRED))
        return cls(
            id=cell(row, COL_ID),
            date=cell(row, COL_DATE),
            time=cell(row, COL_TIME),
            department=cell(row, COL_DEPARTMENT),
            required_people=max(required, 0),
            signed_up=parse_user_list(cell(row, COL_SIGNED_UP)),
            status=ShiftStatus.parse(cell(row, COL_STATUS)),
            pending_approval=parse_user_list(cell(row, COL_PENDING)),
            approved=parse_user_list(cell(row, COL_APPROVED)),
            row_index=row_index,
            raw=[str(value) for value in row],
        )

    def to_row(self) -> list[Any]:
        return [
            self.id,
            self.date,
            self.time,
            self.department,
            self.required_people,
            join_user_list(self.signed_up),
            self.status.value,
            join_user_list(self.pending_approval),
            join_user_list(self.approved),
        ]

    def changed_cells(self) -> dict[int, Any]:
        """Колонки, значения которых отличаются от прочитанной строки."""

        original = Shift.from_row(self.raw, self.row_index or 0)
        values = self.to_row()
        return {
            column: values[column]
            for column, name in _FIELD_COLUMNS
            if getattr(self, name) != getattr(original, name)
        }

    @property
    def taken_slots(self) -> int:
        return len(self.approved) + len(self.pending_approval)

    @property
    def available_slots(self) -> int:
        return self.required_people - self.taken_slots

    @property
    def is_full(self) -> bool:
        return self.taken_slots >= self.required_people

    @property
    def fulfillment_percentage(self) -> int:
        if self.required_people <= 0:
            return 0
        return round(len(self.approved) / self.required_people * 100)

    def user_status(self, fio: str) -> Optional[UserShiftStatus]:
        """Статус участия сотрудника: подтверждён, ожидает или просто записан."""

        if _contains_user(self.approved, fio):
            return UserShiftStatus.APPROVED
        if _contains_user(self.pending_approval, fio):
            return UserShiftStatus.PENDING
        if _contains_user(self.signed_up, fio):
            return UserShiftStatus.SIGNED
        return None


@dataclass
class ShiftsStats:
    total: int = 0
    active: int = 0
    completed: int = 0
    inactive: int = 0
    total_applications: int = 0
    pending_applications: int = 0
    approved_applications: int = 0
    average_fulfillment: int = 0


def validate_shift_data(
    date_text: str, time_text: str, department: str, required_people: Any
) -> list[str]:
    """Проверяет поля новой смены и возвращает список ошибок."""

    errors: list[str] = []

    date_value = (date_text or "").strip()
    valid_date = bool(_DATE_RE.fullmatch(date_value))
    if valid_date:
        try:
            datetime.strptime(date_value, DATE_FORMAT)
        except ValueError:
            valid_date = False
    if not valid_date:
        errors.append("Неверный формат даты. Используйте ДД.ММ.ГГГГ")

    match = _TIME_RE.fullmatch((time_text or "").strip())
    if not match or not _valid_time_range(*(int(part) for part in match.groups())):
        errors.append("Неверный формат времени. Используйте ЧЧ:ММ-ЧЧ:ММ")

    if len((department or "").strip()) < 2:
        errors.append("Отдел должен содержать не менее 2 символов")

    people = parse_int(required_people) if not isinstance(required_people, int) else required_people
    if people <= 0:
        errors.append("Количество человек должно быть больше 0")

    return errors


def _coerce_status(value: ShiftStatus | str) -> ShiftStatus:
    if isinstance(value, ShiftStatus):
        return value
    status = _STATUS_ALIASES.get(str(value).strip().lower())
    if status is None:
        raise ShiftError(f"Неизвестный статус смены: {value}")
    return status


def _valid_time_range(start_h: int, start_m: int, end_h: int, end_m: int) -> bool:
    return start_h < 24 and end_h < 24 and start_m < 60 and end_m < 60


class ShiftService:
    """Операции над листом «Подработки»."""

    def __init__(self, sheets: SheetsService) -> None:
        self.sheets = sheets

    # ---------- Чтение ----------

    def get_all_shifts(self) -> list[Shift]:
        """Все смены, включая завершённые и неактивные.

        Строки без ID, даты или отдела (в том числе очищенные ``delete_shift``)
        сменами не считаются.
        """

        rows = self.sheets.get_rows(SHEET_SHIFTS, SHIFTS_RANGE)
        shifts: list[Shift] = []
        for index, row in enumerate(rows[1:], start=2):
            if not (cell(row, COL_ID) and cell(row, COL_DATE) and cell(row, COL_DEPARTMENT)):
                continue
            shifts.append(Shift.from_row(row, index))
        return shifts

    def get_available_shifts(self) -> list[Shift]:
        """Активные смены, доступные для записи."""

        shifts = [
            shift for shift in self.get_all_shifts() if shift.status is ShiftStatus.ACTIVE
        ]
        logger.info("Загружено %s активных смен", len(shifts))
        return shifts

    def get_shifts_by_status(self, status: ShiftStatus) -> list[Shift]:
        return [shift for shift in self.get_all_shifts() if shift.status is status]

    def get_active_shifts(self) -> list[Shift]:
        return self.get_shifts_by_status(ShiftStatus.ACTIVE)

    def get_shift_by_id(self, shift_id: Any) -> Shift:
        target = str(shift_id).strip()
        for shift in self.get_all_shifts():
            if shift.id == target:
                return shift
        raise ShiftNotFoundError(shift_id)

    # Детали смены в интерфейсе администратора показывают и неактивные смены
    get_shift_details = get_shift_by_id

    def get_user_shifts(self, fio: str) -> list[tuple[Shift, UserShiftStatus]]:
        """Смены, в которых участвует сотрудник, вместе с его статусом."""

        result: list[tuple[Shift, UserShiftStatus]] = []
        for shift in self.get_all_shifts():
            status = shift.user_status(fio)
            if status is not None:
                result.append((shift, status))
        return result

    def is_user_signed_up(self, fio: str, shift_id: Any) -> bool:
        try:
            shift = self.get_shift_by_id(shift_id)
        except ShiftNotFoundError:
            return False
        return shift.user_status(fio) is not None

    def get_shifts_stats(self) -> ShiftsStats:
        shifts = self.get_all_shifts()
        stats = ShiftsStats(total=len(shifts))
        for shift in shifts:
            if shift.status is ShiftStatus.ACTIVE:
                stats.active += 1
            elif shift.status is ShiftStatus.COMPLETED:
                stats.completed += 1
            else:
                stats.inactive += 1
            stats.pending_applications += len(shift.pending_approval)
            stats.approved_applications += len(shift.approved)
        stats.total_applications = stats.pending_applications + stats.approved_applications

        staffed = [shift for shift in shifts if shift.required_people > 0]
        if staffed:
            total = sum(len(shift.approved) / shift.required_people * 100 for shift in staffed)
            stats.average_fulfillment = round(total / len(staffed))
        return stats

    def find_shifts(
        self,
        *,
        date: str | None = None,
        department: str | None = None,
        status: ShiftStatus | None = None,
        min_slots: int | None = None,
    ) -> list[Shift]:
        """Поиск смен по дате, отделу, статусу и числу свободных мест."""

        department_key = department.strip().casefold() if department else None
        result: list[Shift] = []
        for shift in self.get_all_shifts():
            if date and shift.date != date.strip():
                continue
            if department_key and shift.department.casefold() != department_key:
                continue
            if status is not None and shift.status is not status:
                continue
            if min_slots is not None and shift.available_slots < min_slots:
                continue
            result.append(shift)
        return result

    # ---------- Изменение ----------

    def create_shift(
        self, date: str, time: str, department: str, required_people: int
    ) -> Shift:
        """Создаёт активную смену и возвращает её с присвоенным ID."""

        errors = validate_shift_data(date, time, department, required_people)
        if errors:
            raise ShiftValidationError(errors)

        with self.sheets.lock:
            rows = self.sheets.get_rows(SHEET_SHIFTS, SHIFTS_RANGE)
            numeric_ids = [parse_int(cell(row, COL_ID), default=0) for row in rows[1:]]
            new_id = max(numeric_ids, default=0) + 1
            shift = Shift(
                id=str(new_id),
                date=date.strip(),
                time=time.strip(),
                department=department.strip(),
                required_people=int(required_people),
            )
            self.sheets.append_row(SHEET_SHIFTS, shift.to_row())

        logger.info(
            "Смена создана: ID %s, %s %s, %s", new_id, shift.date, shift.time, shift.department
        )
        return shift

    def save_shift(self, shift: Shift) -> None:
        """Записывает только изменённые ячейки, остальные остаются как в таблице."""

        if shift.row_index is None:
            raise ShiftNotFoundError(shift.id)
        changes = shift.changed_cells()
        if not changes:
            return
        first, last = min(changes), max(changes)
        current = list(shift.raw) + [""] * (ROW_WIDTH - len(shift.raw))
        values = [changes.get(column, current[column]) for column in range(first, last + 1)]
        self.sheets.update_row(
            SHEET_SHIFTS, shift.row_index, values, start_column=column_letter(first + 1)
        )
        for column, value in changes.items():
            current[column] = str(value)
        shift.raw = current

    def update_shift(self, shift_id: Any, **changes: Any) -> Shift:
        """Обновляет поля смены (date, time, department, required_people, status)."""

        allowed = {"date", "time", "department", "required_people", "status"}
        unknown = set(changes) - allowed
        if unknown:
            raise TypeError(f"Неизвестные поля смены: {', '.join(sorted(unknown))}")

        with self.sheets.lock:
            shift = self.get_shift_by_id(shift_id)
            if "status" in changes:
                changes["status"] = _coerce_status(changes["status"])
            updated = replace(shift, **changes)
            self.save_shift(updated)

        logger.info("Смена %s обновлена: %s", shift_id, ", ".join(sorted(changes)))
        return updated

    def update_shift_status(self, shift_id: Any, status: ShiftStatus | str) -> Shift:
        return self.update_shift(shift_id, status=status)

    def complete_shift(self, shift_id: Any) -> Shift:
        return self.update_shift_status(shift_id, ShiftStatus.COMPLETED)

    def deactivate_shift(self, shift_id: Any) -> Shift:
        return self.update_shift_status(shift_id, ShiftStatus.INACTIVE)

    def activate_shift(self, shift_id: Any) -> Shift:
        return self.update_shift_status(shift_id, ShiftStatus.ACTIVE)

    def delete_shift(self, shift_id: Any) -> None:
        """Очищает строку смены, оставляя только статус «inactive»."""

        with self.sheets.lock:
            shift = self.get_shift_by_id(shift_id)
            blank: list[Any] = [""] * ROW_WIDTH
            blank[COL_STATUS] = ShiftStatus.INACTIVE.value
            self.sheets.update_row(SHEET_SHIFTS, shift.row_index, blank)
        logger.info("Смена %s деактивирована и очищена", shift_id)

    def sign_up(self, user_id: int, fio: str, shift_id: Any) -> Shift:
        """Подаёт заявку сотрудника на смену (попадает в ожидающие)."""

        logger.info("Попытка записи пользователя %s на смену %s", user_id, shift_id)
        with self.sheets.lock:
            shift = self.get_shift_by_id(shift_id)
            if shift.status is not ShiftStatus.ACTIVE:
                raise ShiftInactiveError()
            if shift.user_status(fio) is not None:
                raise AlreadyAppliedError()
            if shift.is_full:
                raise ShiftFullError()

            updated = replace(
                shift,
                pending_approval=[*shift.pending_approval, make_user_entry(fio, user_id)],
            )
            self.save_shift(updated)

        logger.info("Пользователь %s добавлен в ожидающие смены %s", user_id, shift_id)
        return updated

    def cancel_sign_up(self, fio: str, shift_id: Any) -> Shift:
        """Убирает сотрудника из всех списков смены."""

        with self.sheets.lock:
            shift = self.get_shift_by_id(shift_id)
            if shift.user_status(fio) is None:
                raise ApplicationNotFoundError()
            updated = replace(
                shift,
                signed_up=_without_user(shift.signed_up, fio),
                pending_approval=_without_user(shift.pending_approval, fio),
                approved=_without_user(shift.approved, fio),
            )
            self.save_shift(updated)

        logger.info("Запись отменена для смены %s", shift_id)
        return updated
