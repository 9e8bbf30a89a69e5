import sys
from pathlib import Path
from threading import RLock
from types import SimpleNamespace

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from bot import dependencies
from services.admins import AdminService
from services.sheets import (
    SHEET_ADMINS,
    SHEET_ERRORS,
    SHEET_PLACEMENT,
    SHEET_SELECTION,
    SHEET_SHIFTS,
    SHEET_TIMESHEET,
    SHEET_USERS,
)
from services.shifts import ShiftService
from services.users import UserService

SUPER_ADMIN_ID = 1

SHIFTS_HEADER = [
    "ID",
    "Дата",
    "Время",
    "Отдел",
    "Требуется",
    "Записались",
    "Статус",
    "Ожидают",
    "Подтверждены",
]


def _column_index(letters: str) -> int:
    index = 0
    for char in letters.upper():
        index = index * 26 + ord(char) - ord("A") + 1
    return index - 1


def _column_bounds(columns: str) -> tuple[int, int]:
    start, _, end = columns.partition(":")
    start = start.rstrip("0123456789")
    end = (end or start).rstrip("0123456789")
    return _column_index(start), _column_index(end)


class FakeSheets:
    """Таблица в памяти с тем же интерфейсом, что и SheetsService."""

    def __init__(self, data: dict[str, list[list[object]]] | None = None) -> None:
        self.data: dict[str, list[list[str]]] = {}
        for name, rows in (data or {}).items():
            self.data[name] = [[str(value) for value in row] for row in rows]
        self.lock = RLock()
        self.writes: list[tuple[str, str]] = []

    def has_sheet(self, sheet_name: str) -> bool:
        return sheet_name in self.data

    def get_rows(self, sheet_name: str, columns: str) -> list[list[str]]:
        if sheet_name not in self.data:
            raise KeyError(sheet_name)
        first, last = _column_bounds(columns)
        result = []
        for row in self.data[sheet_name]:
            part = list(row[first : last + 1])
            while part and part[-1] == "":
                part.pop()
            result.append(part)
        while result and not result[-1]:
            result.pop()
        return result

    def update_row(self, sheet_name, row_index, values, start_column="A") -> None:
        self.writes.append(("update", sheet_name))
        rows = self.data.setdefault(sheet_name, [])
        while len(rows) < row_index:
            rows.append([])
        row = rows[row_index - 1]
        start = _column_index(start_column)
        needed = start + len(values)
        row.extend([""] * (needed - len(row)))
        for offset, value in enumerate(values):
            row[start + offset] = str(value)

    def append_row(self, sheet_name, values) -> None:
        self.writes.append(("append", sheet_name))
        self.data.setdefault(sheet_name, []).append([str(value) for value in values])

    def replace_rows(self, sheet_name, columns, rows) -> None:
        self.writes.append(("replace", sheet_name))
        first, last = _column_bounds(columns)
        existing = self.data.setdefault(sheet_name, [])
        for row in existing:
            for index in range(first, min(last + 1, len(row))):
                row[index] = ""
        for row_number, values in enumerate(rows):
            while len(existing) <= row_number:
                existing.append([])
            row = existing[row_number]
            needed = first + len(values)
            row.extend([""] * (needed - len(row)))
            for offset, value in enumerate(values):
                row[first + offset] = str(value)
        while existing and not any(existing[-1]):
            existing.pop()


def make_shift_row(
    shift_id,
    date="15.01.2030",
    time="09:00-18:00",
    department="Склад",
    required=2,
    signed="",
    status="active",
    pending="",
    approved="",
) -> list[object]:
    return [shift_id, date, time, department, required, signed, status, pending, approved]


def default_data() -> dict[str, list[list[object]]]:
    return {
        SHEET_SHIFTS: [
            SHIFTS_HEADER,
            make_shift_row(1, required=2),
            make_shift_row(2, date="16.01.2030", department="Касса", required=1,
                           pending="Петров Пётр Петрович|200"),
            make_shift_row(3, date="17.01.2030", status="completed", required=3,
                           approved="Сидоров Сидор Сидорович|300"),
        ],
        SHEET_USERS: [["ФИО", "Telegram ID"], ["Петров Пётр Петрович", 200]],
        SHEET_ADMINS: [["ID"], [10], ["Админов Админ Админович|11"]],
        SHEET_ERRORS: [
            ["ФИО", "Дата", "Описание"],
            ["Иванов Иван Иванович", "01.01.2030", "Пересорт"],
            ["Иванов Иван Иванович", "02.01.2030", "Недовложение"],
            ["Петров Пётр Петрович", "02.01.2030", "Пересорт"],
        ],
        SHEET_TIMESHEET: [
            ["Таб. №", "ФИО", "График", "Доп", "Прогулы", "Усиления"],
            ["17", "Иванов Иван Иванович", "20", "2", "1", "3"],
        ],
        SHEET_SELECTION: [
            ["ФИО", "Дата", "ОС", "РМ"],
            ["Иванов Иван Иванович", "01.03.2030", "100", "50"],
            ["Иванов Иван Иванович", "2030-03-02", "10,5", "0"],
            ["Иванов Иван Иванович", "05.03.2030", "0", "0"],
            ["Иванов Иван Иванович", "01.04.2030", "999", "999"],
            ["Петров Пётр Петрович", "01.03.2030", "7", "7"],
        ],
        SHEET_PLACEMENT: [
            ["ФИО", "Дата", "ОС", "РМ"],
            ["Иванов Иван Иванович", "01.03.2030", "20", "30"],
            ["Иванов Иван Иванович", "03.03.2030", "0", "40"],
        ],
    }


@pytest.fixture
def sheets() -> FakeSheets:
    return FakeSheets(default_data())


@pytest.fixture
def shift_service(sheets: FakeSheets) -> ShiftService:
    return ShiftService(sheets)


@pytest.fixture
def admin_service(sheets: FakeSheets, shift_service: ShiftService) -> AdminService:
    return AdminService(sheets, shift_service, super_admin_id=SUPER_ADMIN_ID)


@pytest.fixture
def user_service(sheets: FakeSheets, shift_service: ShiftService) -> UserService:
    return UserService(sheets, shift_service)


@pytest.fixture
def services(sheets, shift_service, admin_service, user_service):
    """Подставляет сервисы поверх таблицы в памяти в модуль зависимостей."""

    dependencies.reset_services()
    dependencies._sheets = sheets
    dependencies._shifts = shift_service
    dependencies._admins = admin_service
    dependencies._users = user_service
    yield SimpleNamespace(
        sheets=sheets, shifts=shift_service, admins=admin_service, users=user_service
    )
    dependencies.reset_services()


class StubBot:
    """Минимальный бот для тестирования сообщений и обратных вызовов."""

    def __init__(self) -> None:
        self._counter = 1
        self.sent_messages: list["DummyMessage"] = []

    async def send_message(self, chat_id: int, text: str, **kwargs) -> "DummyMessage":
        message = DummyMessage(
            bot=self,
            user_id=0,
            chat_id=chat_id,
            message_id=self._counter,
            text=text,
            reply_markup=kwargs.get("reply_markup"),
        )
        self._counter += 1
        self.sent_messages.append(message)
        return message


class DummyMessage:
    """Сообщение для передачи в хендлеры aiogram."""

    def __init__(
        self,
        *,
        bot: StubBot,
        user_id: int,
        chat_id: int,
        message_id: int = 0,
        text: str = "",
        reply_markup=None,
    ) -> None:
        self.bot = bot
        self.from_user = SimpleNamespace(id=user_id)
        self.chat = SimpleNamespace(id=chat_id)
        self.message_id = message_id
        self.text = text
        self.reply_markup = reply_markup
        self.edits: list[tuple[str, object]] = []

    async def answer(self, text: str, reply_markup=None, **kwargs) -> "DummyMessage":
        return await self.bot.send_message(self.chat.id, text, reply_markup=reply_markup)

    async def edit_text(self, text: str, reply_markup=None, **kwargs) -> None:
        self.text = text
        self.reply_markup = reply_markup
        self.edits.append((text, reply_markup))


class DummyCallbackQuery:
    """Фиктивный callback-query для проверки inline-навигации."""

    def __init__(self, *, bot: StubBot, user_id: int, data: str) -> None:
        self.bot = bot
        self.message = DummyMessage(bot=bot, user_id=user_id, chat_id=user_id, message_id=99)
        self.from_user = SimpleNamespace(id=user_id)
        self.data = data
        self.answers: list[tuple[str | None, bool]] = []

    async def answer(self, text: str | None = None, show_alert: bool = False) -> None:
        self.answers.append((text, show_alert))


class StubFSMContext:
    """Упрощённая реализация FSMContext для тестов."""

    def __init__(self, **data) -> None:
        self._state: str | None = None
        self._data: dict[str, object] = dict(data)

    async def set_state(self, value) -> None:  # noqa: ANN001 - интерфейс повторяет aiogram
        if value is None:
            self._state = None
        else:
            self._state = getattr(value, "state", value)

    async def get_state(self) -> str | None:
        return self._state

    async def update_data(self, **kwargs) -> None:
        self._data.update(kwargs)

    async def get_data(self) -> dict[str, object]:
        return dict(self._data)


@pytest.fixture
def bot() -> StubBot:
    return StubBot()


@pytest.fixture
def make_message(bot):
    def factory(text: str, user_id: int = 100) -> DummyMessage:
        return DummyMessage(bot=bot, user_id=user_id, chat_id=user_id, text=text)

    return factory


@pytest.fixture
def make_callback(bot):
    def factory(data: str, user_id: int = 100) -> DummyCallbackQuery:
        return DummyCallbackQuery(bot=bot, user_id=user_id, data=data)

    return factory
