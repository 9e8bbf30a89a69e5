"""Сервис-обёртка для работы с Google-таблицей бота.

В модуле собраны низкоуровневые операции чтения и записи, которыми пользуются
сервисы пользователей, смен и администраторов. Основные правила:

* первая строка каждого листа является заголовком и данными не считается;
* все значения читаются как строки, строки могут быть «рваными»
  (Google API отбрасывает пустые ячейки в конце строки);
* списки участников смены хранятся в одной ячейке через запятую
  в виде ``ФИО|telegram_id``.
"""

from __future__ import annotations

import json
import logging
import os
import re
import socket
import time
from datetime import date, datetime
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

import gspread
from gspread.exceptions import APIError, WorksheetNotFound
from google.auth.exceptions import TransportError
from google.oauth2.service_account import Credentials
from requests.exceptions import SSLError as RequestsSSLError
from urllib3.exceptions import SSLError as Urllib3SSLError

from services.env import get_spreadsheet_id

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
]

SHEET_SHIFTS = "Подработки"
SHEET_USERS = "Пользователи"
SHEET_ERRORS = "Ошибки"
SHEET_TIMESHEET = "Табель"
SHEET_SELECTION = "Отбор"
SHEET_PLACEMENT = "Размещение"
SHEET_ADMINS = "Администраторы"

USER_ENTRY_SEPARATOR = "|"
LIST_SEPARATOR = ","

_DATE_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})"), "dmy"),
    (re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})"), "ymd"),
    (re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})"), "mdy"),
)

T = TypeVar("T")


def retry(func: Callable[[], T], tries: int = 3, backoff: float = 0.5) -> T:
    """Повторяет сетевой вызов при временных ошибках Google API."""

    attempt = 1
    while True:
        try:
            return func()
        except APIError as error:
            status = getattr(getattr(error, "response", None), "status_code", None)
            is_retryable = status in {429} or (isinstance(status, int) and 500 <= status < 600)
            if not is_retryable:
                logger.error("Ошибка Google API без повтора: %s", error)
                raise

            if attempt >= tries:
                logger.error("Предел попыток исчерпан (%s): %s", tries, error)
                raise

            logger.warning(
                "Повтор %s/%s после ошибки %s", attempt, tries, status or "без кода"
            )
        except (
            RequestsSSLError,
            Urllib3SSLError,
            socket.timeout,
            TransportError,
        ) as error:
            if attempt >= tries:
                logger.error("Ошибка соединения после %s попыток: %s", tries, error)
                raise

            logger.warning(
                "Повтор %s/%s после сетевой ошибки: %s", attempt, tries, error
            )
        time.sleep(backoff * attempt)
        attempt += 1


# ---------- Разбор значений ячеек ----------


def cell(row: Sequence[Any], index: int) -> str:
    """Возвращает значение ячейки строки как обрезанную строку (или "")."""

    if index < len(row) and row[index] is not None:
        return str(row[index]).strip()
    return ""


def parse_int(value: Any, default: int = 0) -> int:
    """Преобразует значение ячейки в целое число, игнорируя мусор."""

    text = str(value if value is not None else "").strip().replace(" ", "")
    if text.endswith(".0"):
        text = text[:-2]
    match = re.match(r"^-?\d+", text)
    if not match:
        return default
    return int(match.group(0))


def parse_float(value: Any, default: float = 0.0) -> float:
    """Преобразует значение ячейки в число, допускает запятую как разделитель."""

    text = str(value if value is not None else "").strip().replace(" ", "").replace(",", ".")
    match = re.match(r"^-?\d+(\.\d+)?", text)
    if not match:
        return default
    return float(match.group(0))


def parse_date(value: Any) -> Optional[date]:
    """Разбирает дату в форматах ДД.ММ.ГГГГ, ГГГГ-ММ-ДД или М/Д/ГГГГ."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value if value is not None else "").strip()
    if not text:
        return None

    for pattern, order in _DATE_PATTERNS:
        match = pattern.match(text)
        if not match:
            continue
        first, second, third = (int(part) for part in match.groups())
        if order == "dmy":
            day, month, year = first, second, third
        elif order == "ymd":
            year, month, day = first, second, third
        else:
            month, day, year = first, second, third
        try:
            return date(year, month, day)
        except ValueError:
            return None
    return None


def parse_user_list(value: Any) -> list[str]:
    """Разбивает ячейку со списком участников на отдельные записи."""

    text = str(value if value is not None else "")
    return [item.strip() for item in text.split(LIST_SEPARATOR) if item.strip()]


def join_user_list(items: Iterable[str]) -> str:
    """Собирает список участников обратно в значение ячейки."""

    return ", ".join(items)


def make_user_entry(fio: str, user_id: int | str) -> str:
    """Формирует запись участника вида ``ФИО|telegram_id``."""

    return f"{fio.strip()}{USER_ENTRY_SEPARATOR}{user_id}"


def extract_user_name(entry: str) -> str:
    return entry.split(USER_ENTRY_SEPARATOR, 1)[0].strip()


def extract_user_id(entry: str) -> Optional[int]:
    parts = entry.split(USER_ENTRY_SEPARATOR)
    if len(parts) < 2:
        return None
    value = parse_int(parts[1], default=-1)
    return value if value >= 0 else None


def column_letter(index: int) -> str:
    """Преобразует номер колонки (1 = A) в буквенное обозначение."""

    letters = ""
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


# ---------- Подключение к Google ----------


def _load_service_account_info() -> dict[str, Any]:
    """Загружает данные сервисного аккаунта из окружения.

    ``GOOGLE_CREDENTIALS`` может содержать сам JSON или путь к ``.json``-файлу;
    дополнительно поддерживается ``SERVICE_ACCOUNT_JSON_PATH``.
    """

    raw = os.getenv("GOOGLE_CREDENTIALS", "").strip()
    path = os.getenv("SERVICE_ACCOUNT_JSON_PATH") or os.getenv(
        "GOOGLE_SERVICE_ACCOUNT_JSON_PATH"
    )

    if raw and not raw.endswith(".json"):
        try:
            info = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise RuntimeError("GOOGLE_CREDENTIALS не является корректным JSON") from exc
    else:
        path = raw or path
        if not path:
            raise RuntimeError(
                "Не заданы GOOGLE_CREDENTIALS или SERVICE_ACCOUNT_JSON_PATH"
            )
        resolved = Path(path).expanduser().resolve()
        logger.info("Загрузка учётных данных из файла %s", resolved)
        info = json.loads(resolved.read_text(encoding="utf-8"))

    for field in ("client_email", "private_key"):
        if not info.get(field):
            raise RuntimeError(f"В учётных данных отсутствует поле {field}")
    return info


def get_client() -> gspread.Client:
    """Создаёт gspread-клиент по данным сервисного аккаунта."""

    credentials = Credentials.from_service_account_info(
        _load_service_account_info(), scopes=SCOPES
    )
    return gspread.authorize(credentials)


class SheetsService:
    """Обёртка вокруг gspread: чтение и запись строк именованных листов."""

    def __init__(
        self,
        client: gspread.Client | None = None,
        spreadsheet_id: str | None = None,
    ) -> None:
        self.client = client or get_client()
        self.spreadsheet_id = spreadsheet_id or get_spreadsheet_id()
        self._spreadsheet: gspread.Spreadsheet | None = None
        self._worksheet_cache: dict[str, gspread.Worksheet] = {}
        self.lock = RLock()

    @property
    def spreadsheet(self) -> gspread.Spreadsheet:
        """Возвращает объект таблицы с кэшированием."""

        if self._spreadsheet is None:
            sid = self.spreadsheet_id
            self._spreadsheet = retry(lambda: self.client.open_by_key(sid))
            logger.info("Открыта таблица %s", sid)
        return self._spreadsheet

    def worksheet(self, sheet_name: str) -> gspread.Worksheet:
        """Возвращает рабочий лист с кэшированием."""

        if sheet_name not in self._worksheet_cache:
            spreadsheet = self.spreadsheet
            self._worksheet_cache[sheet_name] = retry(
                lambda: spreadsheet.worksheet(sheet_name)
            )
        return self._worksheet_cache[sheet_name]

    def has_sheet(self, sheet_name: str) -> bool:
        try:
            self.worksheet(sheet_name)
        except WorksheetNotFound:
            return False
        return True

    def get_rows(self, sheet_name: str, columns: str) -> list[list[str]]:
        """Читает диапазон колонок листа целиком, включая заголовок."""

        worksheet = self.worksheet(sheet_name)
        logger.debug("Чтение диапазона %s!%s", sheet_name, columns)
        values = retry(lambda: worksheet.get(columns))
        return [[str(value) for value in row] for row in values]

    def update_row(
        self,
        sheet_name: str,
        row_index: int,
        values: Sequence[Any],
        start_column: str = "A",
    ) -> None:
        """Перезаписывает строку начиная с указанной колонки."""

        start = ord(start_column.upper()) - ord("A") + 1
        end = column_letter(start + max(len(values), 1) - 1)
        cell_range = f"{sheet_name}!{start_column}{row_index}:{end}{row_index}"
        logger.info("Обновление диапазона %s", cell_range)
        spreadsheet = self.spreadsheet
        retry(
            lambda: spreadsheet.values_batch_update(
                {
                    "valueInputOption": "RAW",
                    "data": [{"range": cell_range, "values": [list(values)]}],
                }
            )
        )

    def append_row(self, sheet_name: str, values: Sequence[Any]) -> None:
        """Добавляет строку в конец листа."""

        worksheet = self.worksheet(sheet_name)
        logger.info("Добавление строки на лист %s", sheet_name)
        retry(lambda: worksheet.append_row(list(values), value_input_option="RAW"))

    def replace_rows(
        self, sheet_name: str, columns: str, rows: Sequence[Sequence[Any]]
    ) -> None:
        """Очищает диапазон и записывает строки заново начиная с первой."""

        worksheet = self.worksheet(sheet_name)
        logger.info(
            "Перезапись диапазона %s!%s (%s строк)", sheet_name, columns, len(rows)
        )
        retry(lambda: worksheet.batch_clear([columns]))
        if not rows:
            return
        start_column = columns.split(":", 1)[0].rstrip("0123456789") or "A"
        width = max(len(row) for row in rows) or 1
        start = ord(start_column.upper()) - ord("A") + 1
        end = column_letter(start + width - 1)
        padded = [list(row) + [""] * (width - len(row)) for row in rows]
        cell_range = f"{sheet_name}!{start_column}1:{end}{len(rows)}"
        spreadsheet = self.spreadsheet
        retry(
            lambda: spreadsheet.values_batch_update(
                {
                    "valueInputOption": "RAW",
                    "data": [{"range": cell_range, "values": padded}],
                }
            )
        )
