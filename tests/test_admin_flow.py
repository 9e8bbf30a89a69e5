import asyncio
from types import SimpleNamespace

from bot import dependencies
from bot.handlers import admin, errors, shifts
from bot.handlers.admin import AdminAction
from bot.handlers.shifts import ShiftCreation, ShiftSearch
from bot.keyboards.admin import (
    ADD_PAYLOAD,
    APPLICATIONS_PAYLOAD,
    APPROVE_PREFIX,
    REJECT_PREFIX,
    REMOVE_PAYLOAD,
    STATS_PAYLOAD,
)
from bot.keyboards.shifts import (
    CANCEL_CREATION_PAYLOAD,
    CREATE_SHIFT_PAYLOAD,
    DEACTIVATE_PREFIX,
    FIND_SHIFTS_PAYLOAD,
    SHIFTS_STATS_PAYLOAD,
)
from bot.texts import GENERIC_ERROR, NO_RIGHTS
from services.sessions import JsonFileStorage
from services.sheets import SHEET_SHIFTS

from conftest import StubFSMContext

ADMIN_ID = 10
PETROV = "Петров Пётр Петрович"


def test_admin_command_requires_rights(services, bot, make_message) -> None:
    asyncio.run(admin.handle_admin_command(make_message("/admin", user_id=100), StubFSMContext()))
    assert bot.sent_messages[-1].text.startswith("❌ Недостаточно прав")

    asyncio.run(admin.handle_admin_command(make_message("/admin", user_id=ADMIN_ID), StubFSMContext()))
    assert "ПАНЕЛЬ АДМИНИСТРАТОРА" in bot.sent_messages[-1].text


def test_pending_applications_list(services, make_callback) -> None:
    callback = make_callback(APPLICATIONS_PAYLOAD, user_id=ADMIN_ID)

    asyncio.run(admin.handle_applications(callback))

    assert "На рассмотрении: 1" in callback.message.text
    payloads = [b.callback_data for row in callback.message.reply_markup.inline_keyboard for b in row]
    assert "admin:app:2:200" in payloads


def test_approve_notifies_employee(services, bot, make_callback) -> None:
    callback = make_callback(f"{APPROVE_PREFIX}2:200", user_id=ADMIN_ID)

    asyncio.run(admin.handle_approve(callback))

    assert callback.answers[0][0] == "✅ Заявка подтверждена!"
    assert "ЗАЯВКА ПОДТВЕРЖДЕНА" in callback.message.text
    assert services.sheets.data[SHEET_SHIFTS][2][8] == f"{PETROV}|200"
    notification = bot.sent_messages[-1]
    assert notification.chat.id == 200
    assert "подтверждена" in notification.text


def test_reject_notifies_employee(services, bot, make_callback) -> None:
    callback = make_callback(f"{REJECT_PREFIX}2:200", user_id=ADMIN_ID)

    asyncio.run(admin.handle_reject(callback))

    assert services.sheets.data[SHEET_SHIFTS][2][7] == ""
    assert services.sheets.data[SHEET_SHIFTS][2][8] == ""
    assert "отклонена" in bot.sent_messages[-1].text


def test_decision_without_rights_changes_nothing(services, bot, make_callback) -> None:
    callback = make_callback(f"{APPROVE_PREFIX}2:200", user_id=100)

    asyncio.run(admin.handle_approve(callback))

    assert callback.answers == [(NO_RIGHTS, True)]
    assert services.sheets.data[SHEET_SHIFTS][2][7] == f"{PETROV}|200"
    assert bot.sent_messages == []


def test_decision_for_missing_application(services, make_callback) -> None:
    callback = make_callback(f"{APPROVE_PREFIX}2:999", user_id=ADMIN_ID)

    asyncio.run(admin.handle_approve(callback))

    assert callback.answers == [("❌ Заявка не найдена", True)]


def test_application_without_telegram_id_can_be_approved(services, bot, make_callback) -> None:
    services.sheets.data[SHEET_SHIFTS][1][7] = "Ручной Иван Иванович"
    listing = make_callback(APPLICATIONS_PAYLOAD, user_id=ADMIN_ID)
    asyncio.run(admin.handle_applications(listing))
    payloads = [b.callback_data for row in listing.message.reply_markup.inline_keyboard for b in row]
    assert "admin:app:1:n0" in payloads

    detail = make_callback("admin:app:1:n0", user_id=ADMIN_ID)
    asyncio.run(admin.handle_application_detail(detail))
    assert "Ручной Иван Иванович" in detail.message.text

    approve = make_callback(f"{APPROVE_PREFIX}1:n0", user_id=ADMIN_ID)
    asyncio.run(admin.handle_approve(approve))

    assert approve.answers[0][0] == "✅ Заявка подтверждена!"
    assert services.sheets.data[SHEET_SHIFTS][1][8] == "Ручной Иван Иванович"
    assert bot.sent_messages == []


def test_decision_on_inactive_shift(services, make_callback) -> None:
    services.shifts.deactivate_shift("2")
    callback = make_callback(f"{APPROVE_PREFIX}2:200", user_id=ADMIN_ID)

    asyncio.run(admin.handle_approve(callback))

    assert callback.answers == [("❌ Смена не активна для записи", True)]
    assert services.sheets.data[SHEET_SHIFTS][2][8] == ""


def test_add_admin_flow(services, bot, make_callback, make_message) -> None:
    state = StubFSMContext()
    prompt = make_callback(ADD_PAYLOAD, user_id=ADMIN_ID)

    asyncio.run(admin.handle_admin_action_prompt(prompt, state))
    assert asyncio.run(state.get_state()) == AdminAction.add_admin.state

    asyncio.run(admin.handle_admin_id_input(make_message("abc", user_id=ADMIN_ID), state))
    assert "Неверный формат ID" in bot.sent_messages[-1].text
    assert asyncio.run(state.get_state()) == AdminAction.add_admin.state

    asyncio.run(admin.handle_admin_id_input(make_message("555", user_id=ADMIN_ID), state))
    assert 555 in services.admins.get_admins()
    assert asyncio.run(state.get_state()) is None
    assert "555 добавлен" in bot.sent_messages[-2].text


def test_super_admin_cannot_be_removed(services, bot, make_callback, make_message) -> None:
    state = StubFSMContext()
    asyncio.run(admin.handle_admin_action_prompt(make_callback(REMOVE_PAYLOAD, user_id=ADMIN_ID), state))

    asyncio.run(admin.handle_admin_id_input(make_message("1", user_id=ADMIN_ID), state))

    assert "Нельзя удалить супер-администратора" in bot.sent_messages[-1].text
    assert asyncio.run(state.get_state()) is None


def test_stats_include_sessions(services, make_callback, tmp_path) -> None:
    dependencies.set_storage(JsonFileStorage(tmp_path / "sessions.json"))
    callback = make_callback(STATS_PAYLOAD, user_id=ADMIN_ID)

    asyncio.run(admin.handle_stats(callback))

    assert "Всего: 3" in callback.message.text
    assert "Заполненность:</b> 50%" in callback.message.text
    assert "Сессии" in callback.message.text


def test_create_shift_wizard(services, bot, make_callback, make_message) -> None:
    state = StubFSMContext(user_fio="Админов Админ Админович")
    asyncio.run(shifts.handle_create_callback(make_callback(CREATE_SHIFT_PAYLOAD, user_id=ADMIN_ID), state))
    assert asyncio.run(state.get_state()) == ShiftCreation.date.state

    asyncio.run(shifts.handle_date(make_message("20.02.2030", user_id=ADMIN_ID), state))
    asyncio.run(shifts.handle_time(make_message("25:00-26:00", user_id=ADMIN_ID), state))
    assert bot.sent_messages[-1].text.startswith("❌")
    assert asyncio.run(state.get_state()) == ShiftCreation.time.state

    asyncio.run(shifts.handle_time(make_message("10:00-19:00", user_id=ADMIN_ID), state))
    asyncio.run(shifts.handle_department(make_message("Приёмка", user_id=ADMIN_ID), state))
    asyncio.run(shifts.handle_people(make_message("3", user_id=ADMIN_ID), state))

    assert "СМЕНА УСПЕШНО СОЗДАНА" in bot.sent_messages[-1].text
    assert asyncio.run(state.get_state()) is None
    assert asyncio.run(state.get_data())["user_fio"] == "Админов Админ Админович"
    created = services.shifts.get_shift_by_id("4")
    assert (created.date, created.time, created.department, created.required_people) == (
        "20.02.2030",
        "10:00-19:00",
        "Приёмка",
        3,
    )


def test_cancel_shift_creation(services, make_callback) -> None:
    state = StubFSMContext()
    asyncio.run(state.set_state(ShiftCreation.department))
    callback = make_callback(CANCEL_CREATION_PAYLOAD, user_id=ADMIN_ID)

    asyncio.run(shifts.handle_cancel_creation(callback, state))

    assert asyncio.run(state.get_state()) is None
    assert "Создание смены отменено" in callback.message.text


def test_create_command_requires_rights(services, bot, make_message) -> None:
    state = StubFSMContext()

    asyncio.run(shifts.handle_create_command(make_message("/podrabotka", user_id=100), state))

    assert asyncio.run(state.get_state()) is None
    assert bot.sent_messages[-1].text.startswith("❌ Недостаточно прав")


def test_deactivate_shift(services, make_callback) -> None:
    callback = make_callback(f"{DEACTIVATE_PREFIX}1", user_id=ADMIN_ID)

    asyncio.run(shifts.handle_status_change(callback))

    assert "СМЕНА #1 ДЕАКТИВИРОВАНА" in callback.message.text
    assert services.sheets.data[SHEET_SHIFTS][1][6] == "inactive"


def test_shifts_stats(services, make_callback) -> None:
    callback = make_callback(SHIFTS_STATS_PAYLOAD, user_id=ADMIN_ID)

    asyncio.run(shifts.handle_shifts_stats(callback))

    assert "Всего смен:</b> 3" in callback.message.text
    assert "Средняя заполненность:</b> 11%" in callback.message.text


def test_find_shifts(services, bot, make_callback, make_message) -> None:
    state = StubFSMContext()
    asyncio.run(shifts.handle_find_prompt(make_callback(FIND_SHIFTS_PAYLOAD, user_id=ADMIN_ID), state))
    assert asyncio.run(state.get_state()) == ShiftSearch.query.state

    asyncio.run(shifts.handle_find_query(make_message("16.01.2030 касса", user_id=ADMIN_ID), state))

    assert "Найдено смен: 1" in bot.sent_messages[-1].text
    assert asyncio.run(state.get_state()) is None

    asyncio.run(state.set_state(ShiftSearch.query))
    asyncio.run(shifts.handle_find_query(make_message("01.01.2031", user_id=ADMIN_ID), state))
    assert "Смены не найдены" in bot.sent_messages[-1].text


def test_error_handler_replies_to_user(bot) -> None:
    answers = []

    async def answer(text, show_alert=False):
        answers.append((text, show_alert))

    event = SimpleNamespace(
        exception=RuntimeError("boom"),
        update=SimpleNamespace(
            update_id=1,
            callback_query=SimpleNamespace(answer=answer),
            message=None,
        ),
    )

    assert asyncio.run(errors.handle_error(event)) is True
    assert answers == [(GENERIC_ERROR, True)]
