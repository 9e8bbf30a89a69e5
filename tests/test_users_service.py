import pytest

from services.sheets import SHEET_ERRORS, SHEET_USERS
from services.shifts import UserShiftStatus
from services.users import Timesheet, TimesheetNotFoundError, normalize_fio, validate_fio

IVANOV = "Иванов Иван Иванович"
PETROV = "Петров Пётр Петрович"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Иванов Иван Иванович", True),
        ("  Иванов   Иван  Иванович ", True),
        ("Римский-Корсаков Николай Андреевич", True),
        ("Ivanov Ivan Ivanovich", True),
        ("Иванов Иван", False),
        ("Иванов Иван Иванович Младший", False),
        ("Иванов 1ван Иванович", False),
        ("", False),
    ],
)
def test_validate_fio(value: str, expected: bool) -> None:
    assert validate_fio(value) is expected


def test_normalize_fio() -> None:
    assert normalize_fio("  Иванов \t Иван  Иванович ") == IVANOV


def test_save_new_user(user_service, sheets) -> None:
    user_service.save_user("Иванов  Иван Иванович", 100)

    assert sheets.data[SHEET_USERS][-1] == [IVANOV, "100"]
    assert user_service.find_user_id_by_fio(IVANOV) == 100
    assert user_service.find_fio_by_user_id(100) == IVANOV


def test_save_existing_user_updates_id(user_service, sheets) -> None:
    user_service.save_user(PETROV, 201)

    assert len(sheets.data[SHEET_USERS]) == 2
    assert sheets.data[SHEET_USERS][1] == [PETROV, "201"]
    assert user_service.find_fio_by_user_id(201) == PETROV
    assert user_service.find_fio_by_user_id(200) is None


def test_delete_user(user_service) -> None:
    assert user_service.delete_user(PETROV)
    assert user_service.get_all_users() == []
    assert not user_service.delete_user(PETROV)


def test_check_employee_exists(user_service, sheets) -> None:
    assert user_service.check_employee_exists(IVANOV)
    assert not user_service.check_employee_exists("Нетов Нет Нетович")

    del sheets.data[SHEET_ERRORS]
    assert user_service.check_employee_exists(IVANOV)


def test_error_count(user_service) -> None:
    assert user_service.get_error_count(IVANOV) == 2
    assert user_service.get_error_count(PETROV) == 1
    assert user_service.get_error_count("Нетов Нет Нетович") == 0


def test_timesheet_reads_cells_after_fio(user_service) -> None:
    timesheet = user_service.get_timesheet(IVANOV)

    assert timesheet == Timesheet(planned=20, extra=2, absences=1, reinforcement=3)
    assert timesheet.total_worked == 25
    assert timesheet.attendance_rate == 125


def test_timesheet_missing_employee(user_service) -> None:
    with pytest.raises(TimesheetNotFoundError):
        user_service.get_timesheet(PETROV)


def test_attendance_rate_without_plan() -> None:
    assert Timesheet().attendance_rate == 0


def test_daily_values_filter_by_month(user_service) -> None:
    selection = user_service.get_selection_data(IVANOV, 2030, 3)

    assert sorted(selection) == [1, 2, 5]
    assert selection[1].os == 100
    assert selection[2].os == 10.5
    assert selection[1].total == 150


def test_productivity_counts_days_with_data(user_service) -> None:
    data = user_service.get_productivity(IVANOV, 2030, 3)

    assert [day.day for day in data.days] == [1, 2, 3]
    assert data.days_with_data == 3
    assert data.total_os_selection == 110.5
    assert data.total_rm_selection == 50
    assert data.total_placement == 90
    assert data.avg_placement_per_day == 30


def test_productivity_empty_month(user_service) -> None:
    data = user_service.get_productivity(IVANOV, 2029, 12)

    assert data.days == []
    assert data.avg_selection_per_day == 0


def test_user_applications_only_active_shifts(user_service) -> None:
    applications = user_service.get_user_applications(PETROV)

    assert [(shift.id, status) for shift, status in applications] == [
        ("2", UserShiftStatus.PENDING)
    ]
    assert user_service.get_user_applications("Сидоров Сидор Сидорович") == []


def test_user_stats(user_service) -> None:
    stats = user_service.get_user_stats(PETROV)

    assert stats.error_count == 1
    assert stats.timesheet is None
    assert stats.applications_count == 1
    assert stats.pending_applications == 1
