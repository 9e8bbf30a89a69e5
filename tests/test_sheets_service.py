from types import SimpleNamespace

import pytest
from gspread.exceptions import APIError, WorksheetNotFound
from requests.exceptions import SSLError

from services import sheets as sheets_module
from services.sheets import SheetsService, column_letter, retry


class StatusAPIError(APIError):
    """APIError с заданным HTTP-кодом ответа."""

    def __init__(self, status_code: int) -> None:
        Exception.__init__(self, f"HTTP {status_code}")
        self.response = SimpleNamespace(status_code=status_code)
        self.error = {"code": status_code, "message": f"HTTP {status_code}", "status": ""}
        self.code = status_code


class FakeWorksheet:
    def __init__(self, rows: list[list[object]] | None = None) -> None:
        self.rows = rows or []
        self.cleared: list[list[str]] = []
        self.appended: list[tuple[list[object], str]] = []

    def get(self, columns: str) -> list[list[object]]:
        return self.rows

    def append_row(self, values, value_input_option: str = "RAW") -> None:
        self.appended.append((values, value_input_option))

    def batch_clear(self, ranges: list[str]) -> None:
        self.cleared.append(ranges)


class FakeSpreadsheet:
    def __init__(self, worksheets: dict[str, FakeWorksheet]) -> None:
        self.worksheets = worksheets
        self.batch_updates: list[dict] = []
        self.worksheet_calls = 0

    def worksheet(self, name: str) -> FakeWorksheet:
        self.worksheet_calls += 1
        if name not in self.worksheets:
            raise WorksheetNotFound(name)
        return self.worksheets[name]

    def values_batch_update(self, body: dict) -> None:
        self.batch_updates.append(body)


class FakeClient:
    def __init__(self, spreadsheet: FakeSpreadsheet) -> None:
        self.spreadsheet = spreadsheet
        self.opened: list[str] = []

    def open_by_key(self, key: str) -> FakeSpreadsheet:
        self.opened.append(key)
        return self.spreadsheet


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch) -> list[float]:
    delays: list[float] = []
    monkeypatch.setattr(sheets_module.time, "sleep", delays.append)
    return delays


@pytest.fixture
def spreadsheet() -> FakeSpreadsheet:
    return FakeSpreadsheet(
        {
            "Подработки": FakeWorksheet([["ID", "Дата"], [1, "15.01.2030"]]),
            "Администраторы": FakeWorksheet([["ID"], ["10"]]),
        }
    )


@pytest.fixture
def service(spreadsheet: FakeSpreadsheet) -> SheetsService:
    return SheetsService(client=FakeClient(spreadsheet), spreadsheet_id="sheet-id")


def _failing(errors: list[Exception], result: str = "ok"):
    calls: list[int] = []

    def func() -> str:
        calls.append(1)
        if errors:
            raise errors.pop(0)
        return result

    return func, calls


@pytest.mark.parametrize("status", [429, 500, 503])
def test_retry_repeats_transient_api_errors(status, no_sleep) -> None:
    func, calls = _failing([StatusAPIError(status), StatusAPIError(status)])

    assert retry(func, tries=3, backoff=0.5) == "ok"
    assert len(calls) == 3
    assert no_sleep == [0.5, 1.0]


def test_retry_gives_up_after_last_attempt() -> None:
    func, calls = _failing([StatusAPIError(503)] * 3)

    with pytest.raises(APIError):
        retry(func, tries=3)
    assert len(calls) == 3


def test_retry_does_not_repeat_client_errors() -> None:
    func, calls = _failing([StatusAPIError(400)])

    with pytest.raises(APIError):
        retry(func, tries=3)
    assert len(calls) == 1


def test_retry_repeats_ssl_errors() -> None:
    func, calls = _failing([SSLError("handshake")])

    assert retry(func, tries=3) == "ok"
    assert len(calls) == 2

    func, calls = _failing([SSLError("handshake")] * 2)
    with pytest.raises(SSLError):
        retry(func, tries=2)
    assert len(calls) == 2


def test_retry_propagates_other_errors() -> None:
    func, calls = _failing([KeyError("boom")])

    with pytest.raises(KeyError):
        retry(func, tries=3)
    assert len(calls) == 1


def test_column_letter() -> None:
    assert column_letter(1) == "A"
    assert column_letter(9) == "I"
    assert column_letter(27) == "AA"


def test_get_rows_caches_spreadsheet_and_worksheet(service, spreadsheet) -> None:
    assert service.get_rows("Подработки", "A:I") == [["ID", "Дата"], ["1", "15.01.2030"]]
    service.get_rows("Подработки", "A:I")

    assert service.client.opened == ["sheet-id"]
    assert spreadsheet.worksheet_calls == 1


def test_has_sheet(service) -> None:
    assert service.has_sheet("Администраторы")
    assert not service.has_sheet("Табель")


def test_update_row_from_start_column(service, spreadsheet) -> None:
    service.update_row("Подработки", 5, ["a", "b", 3], start_column="B")
    service.update_row("Подработки", 2, list(range(9)))

    assert spreadsheet.batch_updates == [
        {
            "valueInputOption": "RAW",
            "data": [{"range": "Подработки!B5:D5", "values": [["a", "b", 3]]}],
        },
        {
            "valueInputOption": "RAW",
            "data": [{"range": "Подработки!A2:I2", "values": [list(range(9))]}],
        },
    ]


def test_append_row(service, spreadsheet) -> None:
    service.append_row("Администраторы", [555])

    assert spreadsheet.worksheets["Администраторы"].appended == [([555], "RAW")]


def test_replace_rows_clears_and_rewrites_from_first_row(service, spreadsheet) -> None:
    service.replace_rows("Администраторы", "B:C", [["ID"], ["10", "Админ"]])

    assert spreadsheet.worksheets["Администраторы"].cleared == [["B:C"]]
    assert spreadsheet.batch_updates == [
        {
            "valueInputOption": "RAW",
            "data": [
                {
                    "range": "Администраторы!B1:C2",
                    "values": [["ID", ""], ["10", "Админ"]],
                }
            ],
        }
    ]


def test_replace_rows_with_nothing_only_clears(service, spreadsheet) -> None:
    service.replace_rows("Администраторы", "A:A", [])

    assert spreadsheet.worksheets["Администраторы"].cleared == [["A:A"]]
    assert spreadsheet.batch_updates == []
