"""Ленивое создание сервисов для обработчиков бота."""

from __future__ import annotations

from services.admins import AdminService
from services.sessions import JsonFileStorage
from services.sheets import SheetsService
from services.shifts import ShiftService
from services.users import UserService

_sheets: SheetsService | None = None
_shifts: ShiftService | None = None
_admins: AdminService | None = None
_users: UserService | None = None
_storage: JsonFileStorage | None = None


def get_sheets() -> SheetsService:
    global _sheets
    if _sheets is None:
        _sheets = SheetsService()
    return _sheets


def get_shift_service() -> ShiftService:
    global _shifts
    if _shifts is None:
        _shifts = ShiftService(get_sheets())
    return _shifts


def get_admin_service() -> AdminService:
    global _admins
    if _admins is None:
        _admins = AdminService(get_sheets(), get_shift_service())
    return _admins


def get_user_service() -> UserService:
    global _users
    if _users is None:
        _users = UserService(get_sheets(), get_shift_service())
    return _users


def set_storage(storage: JsonFileStorage | None) -> None:
    """Запоминает хранилище сессий для статистики в админ-панели."""

    global _storage
    _storage = storage


def get_storage() -> JsonFileStorage | None:
    return _storage


def reset_services() -> None:
    global _sheets, _shifts, _admins, _users, _storage
    _sheets = _shifts = _admins = _users = _storage = None
