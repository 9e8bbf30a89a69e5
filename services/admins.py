"""Администраторы, обработка заявок и сводная статистика."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from services.env import get_super_admin_id
from services.sheets import (
    SHEET_ADMINS,
    SheetsService,
    cell,
    extract_user_id,
    extract_user_name,
    parse_int,
)
from services.shifts import (
    ApplicationNotFoundError,
    Shift,
    ShiftFullError,
    ShiftInactiveError,
    ShiftService,
    ShiftStatus,
    UserShiftStatus,
)

logger = logging.getLogger(__name__)

ADMINS_RANGE = "A:A"
POSITION_KEY_PREFIX = "n"


class AdminError(Exception):
    """Ошибка управления списком администраторов."""


@dataclass
class Application:
    """Заявка сотрудника, ожидающая решения администратора."""

    shift_id: str
    user_name: str
    user_id: Optional[int]
    entry: str
    date: str
    time: str
    department: str
    required_people: int
    approved_count: int
    key: str = ""


@dataclass
class ApplicationDecision:
    shift: Shift
    user_name: str
    user_id: Optional[int]


@dataclass
class AdminStats:
    total_shifts: int = 0
    active_shifts: int = 0
    completed_shifts: int = 0
    inactive_shifts: int = 0
    total_applications: int = 0
    pending_applications: int = 0
    approved_applications: int = 0
    fulfillment_rate: int = 0


@dataclass
class UserApplicationStats:
    total_applications: int = 0
    approved_applications: int = 0
    pending_applications: int = 0
    shifts: list[tuple[str, str, UserShiftStatus]] = field(default_factory=list)


def applicant_key(shift: Shift, entry: str) -> str:
    """Ключ заявки для кнопок: Telegram ID или позиция записи без ID в списке."""

    user_id = extract_user_id(entry)
    if user_id is not None:
        return str(user_id)
    return f"{POSITION_KEY_PREFIX}{shift.pending_approval.index(entry)}"


def find_pending_entry(shift: Shift, applicant: int | str) -> str:
    """Находит ожидающую запись по Telegram ID или ключу позиции."""

    text = str(applicant).strip()
    if text.startswith(POSITION_KEY_PREFIX):
        position = parse_int(text[len(POSITION_KEY_PREFIX):], default=-1)
        if 0 <= position < len(shift.pending_approval):
            entry = shift.pending_approval[position]
            if extract_user_id(entry) is None:
                return entry
        raise ApplicationNotFoundError()

    user_id = parse_int(text, default=-1)
    for entry in shift.pending_approval:
        if extract_user_id(entry) == user_id:
            return entry
    raise ApplicationNotFoundError()


def _parse_admin_cell(value: str) -> Optional[int]:
    text = value.strip()
    if "|" in text:
        return extract_user_id(text)
    number = parse_int(text, default=-1)
    return number if number >= 0 else None


class AdminService:
    def __init__(
        self,
        sheets: SheetsService,
        shifts: ShiftService | None = None,
        super_admin_id: int | None = None,
    ) -> None:
        self.sheets = sheets
        self.shifts = shifts or ShiftService(sheets)
        self.super_admin_id = (
            super_admin_id if super_admin_id is not None else get_super_admin_id()
        )

    # ---------- Администраторы ----------

    def get_admins(self) -> list[int]:
        rows = self.sheets.get_rows(SHEET_ADMINS, ADMINS_RANGE)
        admins: list[int] = []
        for row in rows[1:]:
            admin_id = _parse_admin_cell(cell(row, 0))
            if admin_id is not None and admin_id not in admins:
                admins.append(admin_id)
        return admins

    def is_admin(self, user_id: int) -> bool:
        if self.super_admin_id is not None and user_id == self.super_admin_id:
            return True
        try:
            return user_id in self.get_admins()
        except Exception:  # noqa: BLE001
            logger.exception("Не удалось проверить права администратора (user_id=%s)", user_id)
            return False

    def is_super_admin(self, user_id: int) -> bool:
        return self.super_admin_id is not None and user_id == self.super_admin_id

    def add_admin(self, user_id: int) -> None:
        with self.sheets.lock:
            if user_id in self.get_admins():
                raise AdminError("Пользователь уже является администратором")
            self.sheets.append_row(SHEET_ADMINS, [user_id])
        logger.info("Администратор добавлен: %s", user_id)

    def remove_admin(self, user_id: int) -> None:
        """Удаляет администратора, перезаписывая колонку без него."""

        if self.is_super_admin(user_id):
            raise AdminError("Нельзя удалить супер-администратора")

        with self.sheets.lock:
            rows = self.sheets.get_rows(SHEET_ADMINS, ADMINS_RANGE)
            header = rows[:1] or [["ID"]]
            kept: list[list[str]] = []
            found = False
            for row in rows[1:]:
                value = cell(row, 0)
                if not value:
                    continue
                if _parse_admin_cell(value) == user_id:
                    found = True
                    continue
                kept.append([value])
            if not found:
                raise AdminError("Пользователь не является администратором")
            self.sheets.replace_rows(SHEET_ADMINS, ADMINS_RANGE, header + kept)

        logger.info("Администратор удалён: %s", user_id)

    # ---------- Заявки ----------

    def get_pending_applications(self) -> list[Application]:
        applications: list[Application] = []
        for shift in self.shifts.get_available_shifts():
            for entry in shift.pending_approval:
                applications.append(
                    Application(
                        shift_id=shift.id,
                        user_name=extract_user_name(entry),
                        user_id=extract_user_id(entry),
                        entry=entry,
                        date=shift.date,
                        time=shift.time,
                        department=shift.department,
                        required_people=shift.required_people,
                        approved_count=len(shift.approved),
                        key=applicant_key(shift, entry),
                    )
                )
        return applications

    def _pending_shift(self, shift_id: Any) -> Shift:
        shift = self.shifts.get_shift_by_id(shift_id)
        if shift.status is not ShiftStatus.ACTIVE:
            raise ShiftInactiveError()
        return shift

    def approve_application(self, shift_id: Any, applicant: int | str) -> ApplicationDecision:
        """Переносит заявку из ожидающих в подтверждённые.

        ``applicant`` это Telegram ID сотрудника либо ключ позиции из ``applicant_key``.
        """

        logger.info("Подтверждение заявки %s на смену %s", applicant, shift_id)
        with self.sheets.lock:
            shift = self._pending_shift(shift_id)
            entry = find_pending_entry(shift, applicant)
            if len(shift.approved) >= shift.required_people:
                raise ShiftFullError()
            pending = list(shift.pending_approval)
            pending.remove(entry)
            updated = replace(
                shift, pending_approval=pending, approved=[*shift.approved, entry]
            )
            self.shifts.save_shift(updated)

        user_name = extract_user_name(entry)
        logger.info("Заявка подтверждена: %s на смену %s", user_name, shift_id)
        return ApplicationDecision(
            shift=updated, user_name=user_name, user_id=extract_user_id(entry)
        )

    def reject_application(self, shift_id: Any, applicant: int | str) -> ApplicationDecision:
        logger.info("Отклонение заявки %s на смену %s", applicant, shift_id)
        with self.sheets.lock:
            shift = self._pending_shift(shift_id)
            entry = find_pending_entry(shift, applicant)
            pending = list(shift.pending_approval)
            pending.remove(entry)
            updated = replace(shift, pending_approval=pending)
            self.shifts.save_shift(updated)

        user_name = extract_user_name(entry)
        logger.info("Заявка отклонена: %s на смену %s", user_name, shift_id)
        return ApplicationDecision(
            shift=updated, user_name=user_name, user_id=extract_user_id(entry)
        )

    # ---------- Статистика ----------

    def get_admin_stats(self) -> AdminStats:
        shifts = self.shifts.get_all_shifts()
        stats = AdminStats(total_shifts=len(shifts))
        for shift in shifts:
            if shift.status is ShiftStatus.ACTIVE:
                stats.active_shifts += 1
            elif shift.status is ShiftStatus.COMPLETED:
                stats.completed_shifts += 1
            else:
                stats.inactive_shifts += 1
            stats.pending_applications += len(shift.pending_approval)
            stats.approved_applications += len(shift.approved)
        stats.total_applications = stats.pending_applications + stats.approved_applications
        if stats.total_applications:
            stats.fulfillment_rate = round(
                stats.approved_applications / stats.total_applications * 100
            )
        return stats

    def get_user_application_stats(self) -> dict[str, UserApplicationStats]:
        """Сводка заявок по каждому сотруднику во всех сменах."""

        result: dict[str, UserApplicationStats] = {}
        for shift in self.shifts.get_all_shifts():
            names: list[str] = []
            for entry in [*shift.signed_up, *shift.pending_approval, *shift.approved]:
                name = extract_user_name(entry)
                if name and name not in names:
                    names.append(name)
            for name in names:
                status = shift.user_status(name)
                stats = result.setdefault(name, UserApplicationStats())
                stats.total_applications += 1
                stats.shifts.append((shift.id, shift.date, status))
                if status is UserShiftStatus.APPROVED:
                    stats.approved_applications += 1
                elif status is UserShiftStatus.PENDING:
                    stats.pending_applications += 1
        return result
