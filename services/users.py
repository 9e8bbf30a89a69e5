"""Сотрудники: привязка ФИО к Telegram ID и личная статистика.

Данные читаются из листов «Пользователи», «Ошибки», «Табель», «Отбор» и
«Размещение». Производительность в «Отборе» и «Размещении» хранится
построчно: ФИО, дата, ОС, РМ.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from services.sheets import (
    SHEET_ERRORS,
    SHEET_PLACEMENT,
    SHEET_SELECTION,
    SHEET_TIMESHEET,
    SHEET_USERS,
    SheetsService,
    cell,
    parse_date,
    parse_float,
    parse_int,
)
from services.shifts import Shift, ShiftService, UserShiftStatus

logger = logging.getLogger(__name__)

USERS_RANGE = "A:B"
ERRORS_RANGE = "A:C"
TIMESHEET_RANGE = "A:Z"
PRODUCTIVITY_RANGE = "A:D"

# Колонки, в которых ищется ФИО в строке табеля
TIMESHEET_FIO_COLUMNS = 10

_EMPLOYEE_RANGES = (
    (SHEET_ERRORS, "A:A"),
    (SHEET_TIMESHEET, TIMESHEET_RANGE),
    (SHEET_SELECTION, "A:A"),
    (SHEET_PLACEMENT, "A:A"),
)

_FIO_PART_RE = re.compile(r"^[A-Za-zА-Яа-яЁё\-]+$")


class TimesheetNotFoundError(LookupError):
    def __init__(self, fio: str) -> None:
        super().__init__("Сотрудник не найден в табеле")
        self.fio = fio


def normalize_fio(text: str) -> str:
    return " ".join((text or "").split())


def validate_fio(text: str) -> bool:
    """ФИО должно состоять ровно из трёх слов из букв и дефисов."""

    parts = normalize_fio(text).split(" ")
    return len(parts) == 3 and all(_FIO_PART_RE.fullmatch(part) for part in parts)


@dataclass
class UserRecord:
    fio: str
    user_id: int
    row_index: int


@dataclass
class Timesheet:
    planned: int = 0
    extra: int = 0
    absences: int = 0
    reinforcement: int = 0

    @property
    def total_worked(self) -> int:
        return self.planned + self.extra + self.reinforcement

    @property
    def attendance_rate(self) -> int:
        """Отработанные смены (с доп. сменами и усилениями) к графику, в процентах."""

        if self.planned <= 0:
            return 0
        return round(self.total_worked / self.planned * 100)


@dataclass
class DayValues:
    os: float = 0.0
    rm: float = 0.0

    @property
    def total(self) -> float:
        return self.os + self.rm


@dataclass
class DayProductivity:
    day: int
    selection: DayValues
    placement: DayValues


@dataclass
class Productivity:
    year: int
    month: int
    total_rm_selection: float = 0.0
    total_os_selection: float = 0.0
    total_rm_placement: float = 0.0
    total_os_placement: float = 0.0
    days_with_data: int = 0
    days: list[DayProductivity] = field(default_factory=list)

    @property
    def total_selection(self) -> float:
        return self.total_rm_selection + self.total_os_selection

    @property
    def total_placement(self) -> float:
        return self.total_rm_placement + self.total_os_placement

    @property
    def avg_selection_per_day(self) -> int:
        if not self.days_with_data:
            return 0
        return round(self.total_selection / self.days_with_data)

    @property
    def avg_placement_per_day(self) -> int:
        if not self.days_with_data:
            return 0
        return round(self.total_placement / self.days_with_data)


@dataclass
class UserStats:
    error_count: int
    timesheet: Optional[Timesheet]
    applications_count: int
    approved_applications: int
    pending_applications: int


class UserService:
    """Операции над сотрудниками и их показателями."""

    def __init__(self, sheets: SheetsService, shifts: ShiftService | None = None) -> None:
        self.sheets = sheets
        self.shifts = shifts or ShiftService(sheets)

    # ---------- Пользователи ----------

    def get_all_users(self) -> list[UserRecord]:
        rows = self.sheets.get_rows(SHEET_USERS, USERS_RANGE)
        users: list[UserRecord] = []
        for index, row in enumerate(rows[1:], start=2):
            fio = cell(row, 0)
            user_id = parse_int(cell(row, 1), default=-1)
            if fio and user_id >= 0:
                users.append(UserRecord(fio=fio, user_id=user_id, row_index=index))
        return users

    def save_user(self, fio: str, user_id: int) -> None:
        """Добавляет сотрудника или обновляет его Telegram ID."""

        fio = normalize_fio(fio)
        with self.sheets.lock:
            rows = self.sheets.get_rows(SHEET_USERS, USERS_RANGE)
            for index, row in enumerate(rows[1:], start=2):
                if cell(row, 0) == fio:
                    self.sheets.update_row(SHEET_USERS, index, [user_id], start_column="B")
                    logger.info("ID пользователя обновлён: %s", user_id)
                    return
            self.sheets.append_row(SHEET_USERS, [fio, user_id])
        logger.info("Пользователь добавлен: %s", user_id)

    def find_user_id_by_fio(self, fio: str) -> Optional[int]:
        target = normalize_fio(fio)
        for user in self.get_all_users():
            if user.fio == target:
                return user.user_id
        return None

    def find_fio_by_user_id(self, user_id: int) -> Optional[str]:
        for user in self.get_all_users():
            if user.user_id == user_id:
                return user.fio
        return None

    def delete_user(self, fio: str) -> bool:
        target = normalize_fio(fio)
        with self.sheets.lock:
            rows = self.sheets.get_rows(SHEET_USERS, USERS_RANGE)
            kept = rows[:1] + [row for row in rows[1:] if cell(row, 0) != target]
            if len(kept) == len(rows):
                return False
            self.sheets.replace_rows(SHEET_USERS, USERS_RANGE, kept)
        logger.info("Пользователь удалён из листа %s", SHEET_USERS)
        return True

    def check_employee_exists(self, fio: str) -> bool:
        """Ищет ФИО в листах ошибок, табеля, отбора и размещения."""

        target = normalize_fio(fio)
        for sheet_name, columns in _EMPLOYEE_RANGES:
            try:
                rows = self.sheets.get_rows(sheet_name, columns)
            except Exception:  # noqa: BLE001
                logger.warning("Не удалось проверить лист %s", sheet_name, exc_info=True)
                continue
            if any(str(value).strip() == target for row in rows for value in row):
                logger.info("Сотрудник найден на листе %s", sheet_name)
                return True
        return False

    # ---------- Показатели ----------

    def get_error_count(self, fio: str) -> int:
        target = normalize_fio(fio)
        rows = self.sheets.get_rows(SHEET_ERRORS, ERRORS_RANGE)
        return sum(1 for row in rows[1:] if cell(row, 0) == target)

    def get_timesheet(self, fio: str) -> Timesheet:
        """Табель: четыре числовые ячейки, следующие за ФИО сотрудника."""

        target = normalize_fio(fio)
        rows = self.sheets.get_rows(SHEET_TIMESHEET, TIMESHEET_RANGE)
        for row in rows[1:]:
            for position in range(min(len(row), TIMESHEET_FIO_COLUMNS)):
                if cell(row, position) != target:
                    continue
                values = [parse_int(cell(row, position + offset)) for offset in range(1, 5)]
                return Timesheet(*values)
        raise TimesheetNotFoundError(target)

    def _get_daily_values(
        self, sheet_name: str, fio: str, year: int, month: int
    ) -> dict[int, DayValues]:
        target = normalize_fio(fio)
        rows = self.sheets.get_rows(sheet_name, PRODUCTIVITY_RANGE)
        data: dict[int, DayValues] = {}
        for row in rows[1:]:
            if cell(row, 0) != target:
                continue
            row_date = parse_date(cell(row, 1))
            if row_date is None or row_date.year != year or row_date.month != month:
                continue
            data[row_date.day] = DayValues(
                os=parse_float(cell(row, 2)), rm=parse_float(cell(row, 3))
            )
        return data

    def get_selection_data(self, fio: str, year: int, month: int) -> dict[int, DayValues]:
        return self._get_daily_values(SHEET_SELECTION, fio, year, month)

    def get_placement_data(self, fio: str, year: int, month: int) -> dict[int, DayValues]:
        return self._get_daily_values(SHEET_PLACEMENT, fio, year, month)

    def get_productivity(self, fio: str, year: int, month: int) -> Productivity:
        """Сводка по отбору и размещению за месяц; учитываются дни с данными."""

        selection = self.get_selection_data(fio, year, month)
        placement = self.get_placement_data(fio, year, month)
        result = Productivity(year=year, month=month)

        for day in sorted(set(selection) | set(placement)):
            sel = selection.get(day, DayValues())
            pl = placement.get(day, DayValues())
            if not (sel.os > 0 or sel.rm > 0 or pl.os > 0 or pl.rm > 0):
                continue
            result.days_with_data += 1
            result.total_rm_selection += sel.rm
            result.total_os_selection += sel.os
            result.total_rm_placement += pl.rm
            result.total_os_placement += pl.os
            result.days.append(DayProductivity(day=day, selection=sel, placement=pl))

        logger.info(
            "Производительность за %02d.%s: дней с данными %s",
            month,
            year,
            result.days_with_data,
        )
        return result

    # ---------- Заявки ----------

    def get_user_applications(self, fio: str) -> list[tuple[Shift, UserShiftStatus]]:
        """Активные смены, на которые сотрудник записан или подал заявку."""

        result: list[tuple[Shift, UserShiftStatus]] = []
        for shift in self.shifts.get_available_shifts():
            status = shift.user_status(fio)
            if status is not None:
                result.append((shift, status))
        return result

    def get_user_stats(self, fio: str) -> UserStats:
        applications = self.get_user_applications(fio)
        try:
            timesheet: Optional[Timesheet] = self.get_timesheet(fio)
        except TimesheetNotFoundError:
            timesheet = None
        return UserStats(
            error_count=self.get_error_count(fio),
            timesheet=timesheet,
            applications_count=len(applications),
            approved_applications=sum(
                1 for _, status in applications if status is UserShiftStatus.APPROVED
            ),
            pending_applications=sum(
                1 for _, status in applications if status is UserShiftStatus.PENDING
            ),
        )
