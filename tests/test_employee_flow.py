import asyncio

from bot.handlers import applications, main, productivity
from bot.keyboards.main import ADMIN_PANEL_PAYLOAD, ERRORS_PAYLOAD, TIMESHEET_PAYLOAD
from bot.keyboards.work import (
    CANCEL_PREFIX,
    MY_APPLICATIONS_PAYLOAD,
    SHIFT_DETAIL_PREFIX,
    SHIFTS_LIST_PAYLOAD,
    SIGN_UP_PREFIX,
)
from bot.texts import FIO_NOT_FOUND_ALERT, INVALID_FIO, UNKNOWN_COMMAND
from services.sheets import SHEET_SHIFTS, SHEET_USERS

from conftest import StubFSMContext

IVANOV = "Иванов Иван Иванович"


def _payloads(markup) -> list[str]:
    return [button.callback_data for row in markup.inline_keyboard for button in row]


def _authorized_state() -> StubFSMContext:
    return StubFSMContext(user_fio=IVANOV)


def test_fio_input_authorizes_and_registers_user(services, bot, make_message) -> None:
    state = StubFSMContext()

    asyncio.run(main.handle_fio_input(make_message("  Иванов   Иван Иванович "), state))

    assert asyncio.run(state.get_data())["user_fio"] == IVANOV
    assert services.users.find_user_id_by_fio(IVANOV) == 100
    reply = bot.sent_messages[-1]
    assert IVANOV in reply.text
    assert ADMIN_PANEL_PAYLOAD not in _payloads(reply.reply_markup)


def test_fio_input_for_admin_shows_admin_button(services, bot, make_message) -> None:
    state = StubFSMContext()

    asyncio.run(main.handle_fio_input(make_message(IVANOV, user_id=10), state))

    reply = bot.sent_messages[-1]
    assert "Режим администратора" in reply.text
    assert ADMIN_PANEL_PAYLOAD in _payloads(reply.reply_markup)


def test_invalid_fio_is_rejected(services, bot, make_message) -> None:
    state = StubFSMContext()

    asyncio.run(main.handle_fio_input(make_message("Иванов"), state))

    assert bot.sent_messages[-1].text == INVALID_FIO
    assert "user_fio" not in asyncio.run(state.get_data())


def test_unknown_employee_keeps_previous_fio(services, bot, make_message) -> None:
    state = _authorized_state()

    asyncio.run(main.handle_fio_input(make_message("Нетов Нет Нетович"), state))

    assert "Информация не найдена" in bot.sent_messages[-1].text
    assert asyncio.run(state.get_data())["user_fio"] == IVANOV
    assert len(services.sheets.data[SHEET_USERS]) == 2


def test_start_resets_state_but_keeps_fio(services, bot, make_message) -> None:
    state = _authorized_state()
    asyncio.run(state.set_state("ShiftCreation:date"))

    asyncio.run(main.handle_start(make_message("/start"), state))

    assert asyncio.run(state.get_state()) is None
    assert asyncio.run(state.get_data())["user_fio"] == IVANOV
    assert "Добро пожаловать" in bot.sent_messages[-1].text


def test_unknown_command(services, bot, make_message) -> None:
    asyncio.run(main.handle_unknown_command(make_message("/whatever")))

    assert bot.sent_messages[-1].text == UNKNOWN_COMMAND


def test_sections_require_fio(services, make_callback) -> None:
    callback = make_callback(ERRORS_PAYLOAD)

    asyncio.run(main.handle_errors(callback, StubFSMContext()))

    assert callback.answers == [(FIO_NOT_FOUND_ALERT, True)]
    assert callback.message.edits == []


def test_errors_and_timesheet(services, make_callback) -> None:
    errors = make_callback(ERRORS_PAYLOAD)
    asyncio.run(main.handle_errors(errors, _authorized_state()))
    assert "Общее количество ошибок:</b> 2" in errors.message.text

    timesheet = make_callback(TIMESHEET_PAYLOAD)
    asyncio.run(main.handle_timesheet(timesheet, _authorized_state()))
    assert "Всего отработано:</b> 25" in timesheet.message.text
    assert "125%" in timesheet.message.text


def test_timesheet_missing_employee(services, make_callback) -> None:
    callback = make_callback(TIMESHEET_PAYLOAD)

    asyncio.run(
        main.handle_timesheet(callback, StubFSMContext(user_fio="Петров Пётр Петрович"))
    )

    assert "не найден в табеле" in callback.message.text


def test_shift_list_and_detail(services, make_callback) -> None:
    listing = make_callback(SHIFTS_LIST_PAYLOAD)
    asyncio.run(applications.handle_shifts_list(listing, _authorized_state()))
    assert f"{SHIFT_DETAIL_PREFIX}1" in _payloads(listing.message.reply_markup)
    assert f"{SHIFT_DETAIL_PREFIX}3" not in _payloads(listing.message.reply_markup)

    open_shift = make_callback(f"{SHIFT_DETAIL_PREFIX}1")
    asyncio.run(applications.handle_shift_detail(open_shift, _authorized_state()))
    assert f"{SIGN_UP_PREFIX}1" in _payloads(open_shift.message.reply_markup)

    full_shift = make_callback(f"{SHIFT_DETAIL_PREFIX}2")
    asyncio.run(applications.handle_shift_detail(full_shift, _authorized_state()))
    assert "Мест больше нет" in full_shift.message.text
    assert f"{SIGN_UP_PREFIX}2" not in _payloads(full_shift.message.reply_markup)


def test_missing_shift_detail(services, make_callback) -> None:
    callback = make_callback(f"{SHIFT_DETAIL_PREFIX}42")

    asyncio.run(applications.handle_shift_detail(callback, _authorized_state()))

    assert callback.answers[0][0] == "❌ Смена не найдена"


def test_sign_up_then_cancel(services, make_callback) -> None:
    sign_up = make_callback(f"{SIGN_UP_PREFIX}1")
    asyncio.run(applications.handle_sign_up(sign_up, _authorized_state()))

    assert sign_up.answers[0][0].startswith("✅")
    assert "ЗАЯВКА ПОДАНА" in sign_up.message.text
    assert services.sheets.data[SHEET_SHIFTS][1][7] == f"{IVANOV}|100"

    again = make_callback(f"{SIGN_UP_PREFIX}1")
    asyncio.run(applications.handle_sign_up(again, _authorized_state()))
    assert again.answers[0] == ("❌ Вы уже подали заявку на эту смену", True)

    mine = make_callback(MY_APPLICATIONS_PAYLOAD)
    asyncio.run(applications.handle_my_applications(mine, _authorized_state()))
    assert "Ожидает подтверждения" in mine.message.text

    cancel = make_callback(f"{CANCEL_PREFIX}1")
    asyncio.run(applications.handle_cancel(cancel, _authorized_state()))
    assert cancel.answers[0][0] == "✅ Запись отменена!"
    assert services.sheets.data[SHEET_SHIFTS][1][7] == ""


def test_sign_up_on_full_shift_offers_retry(services, make_callback) -> None:
    callback = make_callback(f"{SIGN_UP_PREFIX}2")

    asyncio.run(applications.handle_sign_up(callback, _authorized_state()))

    assert callback.answers[0][1] is True
    assert "Ошибка записи" in callback.message.text
    assert f"{SHIFT_DETAIL_PREFIX}2" in _payloads(callback.message.reply_markup)


def test_pod_command_lists_shifts(services, bot, make_message) -> None:
    asyncio.run(applications.handle_pod_command(make_message("/pod"), _authorized_state()))

    reply = bot.sent_messages[-1]
    assert "БЫСТРАЯ ЗАПИСЬ" in reply.text
    assert _payloads(reply.reply_markup) == [f"{SHIFT_DETAIL_PREFIX}1", f"{SHIFT_DETAIL_PREFIX}2"]


def test_productivity_month_and_detail(services, make_callback) -> None:
    summary = make_callback("prod:month:2030:3")
    asyncio.run(productivity.handle_month(summary, _authorized_state()))
    assert "МАРТ 2030" in summary.message.text
    assert "Дней с данными: 3" in summary.message.text
    assert "prod:detail:2030:3:1" in _payloads(summary.message.reply_markup)

    detail = make_callback("prod:detail:2030:3:1")
    asyncio.run(productivity.handle_detail(detail, _authorized_state()))
    assert "1-3 из 3" in detail.message.text
    assert "ОС=10.5" in detail.message.text


def test_productivity_rejects_bad_payload(services, make_callback) -> None:
    callback = make_callback("prod:month:2030:13")

    asyncio.run(productivity.handle_month(callback, _authorized_state()))

    assert callback.answers == [("❌ Неверные параметры", False)]
