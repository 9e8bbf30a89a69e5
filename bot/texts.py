"""Тексты сообщений бота (HTML-разметка).

Все пользовательские значения (ФИО, отделы, даты из таблицы) экранируются.
"""

from __future__ import annotations

from html import escape
from typing import Sequence

from bot.utils.formatting import (
    format_number,
    format_progress_bar,
    month_title,
    truncate_name,
)
from services.admins import AdminStats
from services.shifts import Shift, ShiftsStats, ShiftStatus, UserShiftStatus
from services.users import DayProductivity, DayValues, Productivity, Timesheet

SHIFT_STATUS_LABELS = {
    ShiftStatus.ACTIVE: "✅ Активна",
    ShiftStatus.COMPLETED: "🏁 Завершена",
    ShiftStatus.INACTIVE: "⚫ Неактивна",
}


def shift_date(shift: Shift) -> str:
    return escape(shift.date) if shift.date else "Не указана"


def shift_time(shift: Shift) -> str:
    return escape(shift.time) if shift.time else "Не указано"


def shift_department(shift: Shift) -> str:
    return escape(shift.department) if shift.department else "Не указан"


APPLICATION_STATUS_LABELS = {
    UserShiftStatus.APPROVED: "✅ Подтверждена",
    UserShiftStatus.PENDING: "⏳ Ожидает подтверждения",
    UserShiftStatus.SIGNED: "📝 Записана",
}

FIO_PROMPT = "📝 <b>Отправьте ваше ФИО</b> (Фамилия Имя Отчество) для начала работы."
FIO_REQUIRED = "❌ Сначала отправьте ваше ФИО"
FIO_NOT_FOUND_ALERT = "❌ ФИО не найдено. Отправьте ФИО снова."
NO_RIGHTS = "❌ Недостаточно прав!"
GENERIC_ERROR = "⚠️ Произошла ошибка. Попробуйте позже или обратитесь к администратору."
UNKNOWN_COMMAND = "❌ Неизвестная команда. Используйте /help для списка команд."

HELP_TEXT = (
    "📖 <b>ПОМОЩЬ ПО БОТУ</b>\n\n"
    "<b>Основные команды:</b>\n"
    "/start - Начать работу с ботом\n"
    "/help - Показать эту справку\n"
    "/info - Информация о боте\n"
    "/pod - Быстрая запись на подработку\n"
    "/prod - Производительность за текущий месяц\n"
    "/compare - Сравнение с прошлым месяцем\n\n"
    "<b>Для администраторов:</b>\n"
    "/admin - Панель администратора\n"
    "/podrabotka - Создать новую смену\n"
    "/debug_shifts - Структура листа подработок\n\n"
    "<b>Как работать:</b>\n"
    "1. Отправьте ваше ФИО\n"
    "2. Выберите нужный раздел в меню\n"
    "3. Получайте актуальную информацию"
)

INFO_TEXT = (
    "ℹ️ <b>ИНФОРМАЦИЯ О БОТЕ</b>\n\n"
    "<b>Назначение:</b> учёт статистики и подработок\n"
    "<b>Функции:</b>\n"
    "• Просмотр ошибок и табеля\n"
    "• Анализ производительности\n"
    "• Запись на дополнительные смены\n"
    "• Управление для администраторов\n\n"
    "<b>Техподдержка:</b> обращайтесь к вашему руководителю"
)

INVALID_FIO = (
    "❌ <b>Некорректный формат ФИО</b>\n\n"
    "📋 Правильный формат: <b>Фамилия Имя Отчество</b>\n"
    "Пример: <b>Иванов Иван Иванович</b>\n\n"
    "Пожалуйста, отправьте ФИО в правильном формате."
)

CREATE_SHIFT_INTRO = (
    "📝 <b>СОЗДАНИЕ НОВОЙ СМЕНЫ ДЛЯ ПОДРАБОТКИ</b>\n\n"
    "Данные вводятся по шагам:\n"
    "1. 📅 <b>Дата</b> (ДД.ММ.ГГГГ)\n"
    "2. ⏰ <b>Время</b> (ЧЧ:ММ-ЧЧ:ММ)\n"
    "3. 🏢 <b>Отдел/место</b>\n"
    "4. 👥 <b>Количество человек</b>\n\n"
    "📅 Введите дату смены, например 15.01.2025"
)


def welcome_text(is_admin: bool) -> str:
    lines = [
        "👋 <b>Добро пожаловать в бот статистики!</b>",
        "",
        "📈 Здесь вы можете получить информацию о:",
        "• 📊 Количестве ошибок",
        "• 📅 Данных табеля",
        "• 🚀 Производительности труда",
        "• 💼 Подработках и дополнительных сменах",
        "",
    ]
    if is_admin:
        lines.extend(["⚡ <b>Вы администратор системы</b>", ""])
    lines.append(FIO_PROMPT)
    return "\n".join(lines)


def main_menu_text(fio: str, is_admin: bool = False) -> str:
    text = f"👤 <b>{escape(fio)}</b>\n\n📊 <b>Выберите раздел:</b>"
    if is_admin:
        text += "\n\n⚡ <b>Режим администратора активирован</b>"
    return text


def employee_not_found_text(fio: str) -> str:
    return (
        "🔍 <b>Информация не найдена</b>\n\n"
        f"По сотруднику <b>{escape(fio)}</b> данных не обнаружено.\n\n"
        "Возможные причины:\n"
        "• ФИО введено с ошибкой\n"
        "• Сотрудник не внесён в систему\n"
        "• Данные ещё не обновлены\n\n"
        "📝 Попробуйте другое ФИО или проверьте правильность написания."
    )


def errors_text(fio: str, count: int) -> str:
    return (
        "📊 <b>СТАТИСТИКА ОШИБОК</b>\n\n"
        f"👤 <b>Сотрудник:</b> {escape(fio)}\n"
        "📅 <b>Период:</b> всё время\n\n"
        f"❌ <b>Общее количество ошибок:</b> {count}\n\n"
        "💡 Учитываются все зафиксированные ошибки в работе"
    )


def timesheet_text(fio: str, timesheet: Timesheet) -> str:
    return (
        "📊 <b>ТАБЕЛЬ СОТРУДНИКА</b>\n\n"
        f"👤 <b>ФИО:</b> {escape(fio)}\n\n"
        f"📅 <b>График:</b> {timesheet.planned} смен\n"
        f"➕ <b>Доп. смены:</b> {timesheet.extra}\n"
        f"❌ <b>Прогулы:</b> {timesheet.absences}\n"
        f"💪 <b>Усиления:</b> {timesheet.reinforcement}\n\n"
        f"✅ <b>Всего отработано:</b> {timesheet.total_worked} смен\n"
        f"📈 <b>Посещаемость:</b> {timesheet.attendance_rate}%"
    )


# ---------- Подработки ----------


def work_menu_text(fio: str) -> str:
    return f"💼 <b>ПОДРАБОТКИ</b>\n\n👤 {escape(fio)}"


def shift_detail_text(shift: Shift, fio: str) -> str:
    """Карточка смены для сотрудника с его статусом и числом мест."""

    lines = [
        "📅 <b>ДЕТАЛИ СМЕНЫ</b>",
        "",
        f"🗓️ <b>Дата:</b> {shift_date(shift)}",
        f"⏰ <b>Время:</b> {shift_time(shift)}",
        f"🏢 <b>Отдел:</b> {shift_department(shift)}",
        f"👥 <b>Требуется человек:</b> {shift.required_people}",
        f"✅ <b>Подтверждено:</b> {len(shift.approved)}/{shift.required_people}",
        f"⏳ <b>Ожидают подтверждения:</b> {len(shift.pending_approval)}",
        "",
    ]
    status = shift.user_status(fio)
    if status is UserShiftStatus.APPROVED:
        lines.append("✅ <b>Ваша заявка подтверждена руководителем</b>")
    elif status is UserShiftStatus.PENDING:
        lines.append("⏳ <b>Ваша заявка на рассмотрении</b>")
    elif status is UserShiftStatus.SIGNED:
        lines.append("📝 <b>Вы записаны на эту смену</b>")
    if status is not None:
        lines.append("")

    if shift.status is not ShiftStatus.ACTIVE:
        lines.append("⚫ <b>Запись на смену закрыта</b>")
    elif status is UserShiftStatus.APPROVED:
        lines.append("🎉 <b>Ваша заявка уже подтверждена!</b> Ждём вас на смене.")
    elif status is not None:
        lines.append("ℹ️ <b>Вы уже подали заявку</b> на эту смену.")
    elif shift.available_slots <= 0:
        lines.append("❌ <b>Мест больше нет</b>\nНа эту смену уже набрано достаточно людей.")
    else:
        lines.append(
            f"✅ <b>Есть свободные места:</b> {shift.available_slots} из {shift.required_people}"
        )
    return "\n".join(lines)


def sign_up_done_text(shift: Shift) -> str:
    return (
        "✅ <b>ЗАЯВКА ПОДАНА!</b>\n\n"
        f"📅 Смена: {shift_date(shift)} {shift_time(shift)}\n"
        f"🏢 Отдел: {shift_department(shift)}\n"
        "⏳ Статус: ожидает подтверждения\n\n"
        f"Осталось свободных мест: {max(shift.available_slots, 0)}"
    )


def my_applications_text(applications: Sequence[tuple[Shift, UserShiftStatus]]) -> str:
    lines = ["📋 <b>МОИ ЗАЯВКИ НА ПОДРАБОТКУ:</b>", ""]
    for index, (shift, status) in enumerate(applications, start=1):
        label = APPLICATION_STATUS_LABELS[status]
        lines.extend(
            [
                f"{index}. {label.split(' ', 1)[0]} <b>{shift_date(shift)} {shift_time(shift)}</b>",
                f"   🏢 {shift_department(shift)}",
                f"   👥 {len(shift.approved)}/{shift.required_people} человек",
                f"   📝 {label}",
                "",
            ]
        )
    lines.append(f"<b>Всего заявок:</b> {len(applications)}")
    return "\n".join(lines)


# ---------- Производительность ----------


def productivity_menu_text(fio: str) -> str:
    return (
        "🚀 <b>АНАЛИЗ ПРОИЗВОДИТЕЛЬНОСТИ</b>\n\n"
        f"👤 <b>Сотрудник:</b> {escape(fio)}\n\n"
        "📊 <b>Выберите месяц для анализа</b>\n"
        "Доступны данные за последние 6 месяцев"
    )


def productivity_summary_text(fio: str, data: Productivity) -> str:
    title = month_title(data.year, data.month).upper()
    return (
        f"🚀 <b>ПРОИЗВОДИТЕЛЬНОСТЬ ЗА {title}</b>\n\n"
        f"👤 <b>Сотрудник:</b> {escape(fio)}\n\n"
        "📦 <b>ОТБОР ТОВАРА</b>\n"
        f"├ ОС: {format_number(data.total_os_selection)} ед.\n"
        f"├ РМ: {format_number(data.total_rm_selection)} ед.\n"
        f"└ <b>Всего:</b> {format_number(data.total_selection)} ед.\n\n"
        "📋 <b>РАЗМЕЩЕНИЕ ТОВАРА</b>\n"
        f"├ ОС: {format_number(data.total_os_placement)} ед.\n"
        f"├ РМ: {format_number(data.total_rm_placement)} ед.\n"
        f"└ <b>Всего:</b> {format_number(data.total_placement)} ед.\n\n"
        "📈 <b>ОБЩАЯ СТАТИСТИКА</b>\n"
        f"├ Дней с данными: {data.days_with_data}\n"
        f"├ Средний отбор/день: {format_number(data.avg_selection_per_day)} ед.\n"
        f"└ Среднее размещение/день: {format_number(data.avg_placement_per_day)} ед.\n\n"
        f"📊 <b>ОБЩИЙ РЕЗУЛЬТАТ:</b> "
        f"{format_number(data.total_selection + data.total_placement)} ед."
    )


def _day_values_line(title: str, values: DayValues) -> str | None:
    if values.os <= 0 and values.rm <= 0:
        return None
    parts = []
    if values.os > 0:
        parts.append(f"ОС={format_number(values.os)}")
    if values.rm > 0:
        parts.append(f"РМ={format_number(values.rm)}")
    return f"{title}: {' '.join(parts)}"


def productivity_detail_text(
    fio: str,
    data: Productivity,
    days: Sequence[DayProductivity],
    page: int,
    total_pages: int,
    first_index: int,
) -> str:
    """Страница детализации по дням; ``first_index`` считается с нуля."""

    lines = [
        f"📋 <b>ДЕТАЛИЗАЦИЯ ПО ДНЯМ</b> • Страница {page}",
        "",
        f"👤 <b>Сотрудник:</b> {escape(fio)}",
        f"📅 <b>Период:</b> {month_title(data.year, data.month)}",
        "",
    ]
    if not data.days:
        lines.extend(
            ["📭 <b>Данные отсутствуют</b>", "", "За выбранный период активность не зафиксирована."]
        )
        return "\n".join(lines)

    last_index = first_index + len(days)
    lines.extend([f"<b>Дни с данными:</b> {first_index + 1}-{last_index} из {len(data.days)}", ""])
    for day in days:
        lines.append(f"📅 <b>{day.day:02d}.{data.month:02d}</b>")
        for line in (
            _day_values_line("📦 Отбор", day.selection),
            _day_values_line("📋 Размещение", day.placement),
        ):
            if line:
                lines.append(line)
        lines.append("")
    lines.append(f"<b>Страница {page} из {total_pages}</b>")
    return "\n".join(lines)


def quick_productivity_text(fio: str, data: Productivity) -> str:
    return (
        "🚀 <b>ПРОИЗВОДИТЕЛЬНОСТЬ ЗА ТЕКУЩИЙ МЕСЯЦ</b>\n\n"
        f"👤 <b>Сотрудник:</b> {escape(fio)}\n"
        f"📅 <b>Период:</b> {month_title(data.year, data.month)}\n\n"
        f"📦 <b>Отбор товара:</b> {format_number(data.total_selection)} ед.\n"
        f"📋 <b>Размещение товара:</b> {format_number(data.total_placement)} ед.\n"
        f"📊 <b>Общий результат:</b> "
        f"{format_number(data.total_selection + data.total_placement)} ед.\n\n"
        "📈 <b>Среднедневные показатели:</b>\n"
        f"├ Отбор: {format_number(data.avg_selection_per_day)} ед./день\n"
        f"└ Размещение: {format_number(data.avg_placement_per_day)} ед./день"
    )


def _trend(change: float) -> str:
    if change > 0:
        return "📈"
    if change < 0:
        return "📉"
    return "➡️"


def _signed(value: float) -> str:
    sign = "+" if value > 0 else ""
    return f"{sign}{format_number(value)}"


def compare_text(fio: str, current: Productivity, previous: Productivity) -> str:
    selection_change = current.total_selection - previous.total_selection
    placement_change = current.total_placement - previous.total_placement
    current_total = current.total_selection + current.total_placement
    previous_total = previous.total_selection + previous.total_placement
    total_change = current_total - previous_total
    return (
        "📊 <b>СРАВНЕНИЕ ПРОИЗВОДИТЕЛЬНОСТИ</b>\n\n"
        f"👤 <b>Сотрудник:</b> {escape(fio)}\n\n"
        f"📅 <b>{month_title(current.year, current.month)}:</b>\n"
        f"├ 📦 Отбор: {format_number(current.total_selection)} ед. {_trend(selection_change)}\n"
        f"├ 📋 Размещение: {format_number(current.total_placement)} ед. {_trend(placement_change)}\n"
        f"└ 📊 Всего: {format_number(current_total)} ед. {_trend(total_change)}\n\n"
        f"📅 <b>{month_title(previous.year, previous.month)}:</b>\n"
        f"├ 📦 Отбор: {format_number(previous.total_selection)} ед.\n"
        f"├ 📋 Размещение: {format_number(previous.total_placement)} ед.\n"
        f"└ 📊 Всего: {format_number(previous_total)} ед.\n\n"
        "📈 <b>Изменение:</b>\n"
        f"├ Отбор: {_signed(selection_change)} ед.\n"
        f"├ Размещение: {_signed(placement_change)} ед.\n"
        f"└ Всего: {_signed(total_change)} ед."
    )


# ---------- Администратор ----------


def application_detail_text(user_name: str, shift: Shift) -> str:
    return (
        "📋 <b>ДЕТАЛИ ЗАЯВКИ</b>\n\n"
        f"👤 <b>Сотрудник:</b> {escape(user_name)}\n"
        f"📅 <b>Дата:</b> {shift_date(shift)}\n"
        f"⏰ <b>Время:</b> {shift_time(shift)}\n"
        f"🏢 <b>Отдел:</b> {shift_department(shift)}\n"
        f"🆔 <b>ID смены:</b> {escape(shift.id)}\n\n"
        f"✅ <b>Подтверждено:</b> {len(shift.approved)}/{shift.required_people}\n"
        f"⏳ <b>Ожидают:</b> {len(shift.pending_approval)}"
    )


def application_decision_text(approved: bool, user_name: str, shift: Shift) -> str:
    header = "✅ <b>ЗАЯВКА ПОДТВЕРЖДЕНА!</b>" if approved else "❌ <b>ЗАЯВКА ОТКЛОНЕНА!</b>"
    text = (
        f"{header}\n\n"
        f"👤 Сотрудник: {escape(user_name)}\n"
        f"📅 Смена: {shift_date(shift)} {shift_time(shift)}\n"
        f"🏢 Отдел: {shift_department(shift)}"
    )
    if approved:
        text += f"\n\n✅ Подтверждено: {len(shift.approved)}/{shift.required_people}"
    return text


def employee_decision_text(approved: bool, shift: Shift) -> str:
    """Уведомление сотруднику о решении по его заявке."""

    if approved:
        header = "✅ <b>Ваша заявка на подработку подтверждена!</b>"
        footer = "Ждём вас на смене."
    else:
        header = "❌ <b>Ваша заявка на подработку отклонена.</b>"
        footer = "Вы можете выбрать другую смену в разделе «Подработка»."
    return (
        f"{header}\n\n"
        f"📅 {shift_date(shift)} {shift_time(shift)}\n"
        f"🏢 {shift_department(shift)}\n\n"
        f"{footer}"
    )


def admins_list_text(admin_ids: Sequence[int], super_admin_id: int | None) -> str:
    lines = ["👥 <b>СПИСОК АДМИНИСТРАТОРОВ</b>", ""]
    if super_admin_id is not None:
        lines.append(f"👑 {super_admin_id} (супер-администратор)")
    for admin_id in admin_ids:
        if admin_id != super_admin_id:
            lines.append(f"• {admin_id}")
    if len(lines) == 2:
        lines.append("Список пуст")
    return "\n".join(lines)


def admin_stats_text(stats: AdminStats, sessions: dict[str, int] | None = None) -> str:
    text = (
        "📊 <b>СТАТИСТИКА СИСТЕМЫ</b>\n\n"
        "📅 <b>Смены:</b>\n"
        f"├ Всего: {stats.total_shifts}\n"
        f"├ Активных: {stats.active_shifts}\n"
        f"├ Завершённых: {stats.completed_shifts}\n"
        f"└ Неактивных: {stats.inactive_shifts}\n\n"
        "📝 <b>Заявки:</b>\n"
        f"├ Всего: {stats.total_applications}\n"
        f"├ Ожидают: {stats.pending_applications}\n"
        f"└ Подтверждено: {stats.approved_applications}\n\n"
        f"📈 <b>Заполненность:</b> {stats.fulfillment_rate}% "
        f"{format_progress_bar(stats.approved_applications, stats.total_applications)}"
    )
    if sessions is not None:
        text += (
            "\n\n👤 <b>Сессии:</b>\n"
            f"├ Всего: {sessions.get('total', 0)}\n"
            f"├ С ФИО: {sessions.get('authorized', 0)}\n"
            f"└ Активны за сутки: {sessions.get('active_last_24h', 0)}"
        )
    return text


def admin_shift_detail_text(shift: Shift) -> str:
    lines = [
        f"📋 <b>ДЕТАЛИ СМЕНЫ #{escape(shift.id)}</b>",
        "",
        f"📅 <b>Дата:</b> {shift_date(shift)}",
        f"⏰ <b>Время:</b> {shift_time(shift)}",
        f"🏢 <b>Отдел:</b> {shift_department(shift)}",
        f"👥 <b>Требуется:</b> {shift.required_people} чел.",
        f"✅ <b>Подтверждено:</b> {len(shift.approved)}/{shift.required_people}",
        f"⏳ <b>Ожидают:</b> {len(shift.pending_approval)}",
        f"📝 <b>Записались:</b> {len(shift.signed_up)}",
        "",
        f"📊 <b>Статус:</b> {SHIFT_STATUS_LABELS[shift.status]}",
        f"🎯 <b>Заполненность:</b> {shift.fulfillment_percentage}%",
        f"📦 <b>Свободные места:</b> {shift.available_slots}",
    ]
    if shift.approved:
        lines.extend(["", "<b>Подтверждены:</b>"])
        lines.extend(f"• {escape(truncate_name(entry.split('|', 1)[0]))}" for entry in shift.approved)
    return "\n".join(lines)


def shifts_stats_text(stats: ShiftsStats) -> str:
    return (
        "📊 <b>СТАТИСТИКА СМЕН</b>\n\n"
        f"📅 <b>Всего смен:</b> {stats.total}\n"
        f"✅ <b>Активных:</b> {stats.active}\n"
        f"🏁 <b>Завершённых:</b> {stats.completed}\n"
        f"⚫ <b>Неактивных:</b> {stats.inactive}\n\n"
        "📝 <b>Заявки:</b>\n"
        f"├ Всего: {stats.total_applications}\n"
        f"├ Ожидают: {stats.pending_applications}\n"
        f"└ Подтверждено: {stats.approved_applications}\n\n"
        f"📈 <b>Средняя заполненность:</b> {stats.average_fulfillment}%"
    )


def shift_created_text(shift: Shift) -> str:
    return (
        "✅ <b>СМЕНА УСПЕШНО СОЗДАНА!</b>\n\n"
        f"🆔 ID смены: {escape(shift.id)}\n"
        f"📅 Дата: {shift_date(shift)}\n"
        f"⏰ Время: {shift_time(shift)}\n"
        f"🏢 Отдел: {shift_department(shift)}\n"
        f"👥 Нужно человек: {shift.required_people}\n\n"
        "Теперь сотрудники могут записываться на эту смену! 🚀"
    )


def search_results_text(shifts: Sequence[Shift]) -> str:
    lines = ["🔍 <b>РЕЗУЛЬТАТЫ ПОИСКА</b>", "", f"Найдено смен: {len(shifts)}", ""]
    for index, shift in enumerate(shifts, start=1):
        lines.extend(
            [
                f"{index}. 📅 {shift_date(shift)} {shift_time(shift)}",
                f"   🏢 {shift_department(shift)}",
                f"   👥 {len(shift.approved)}/{shift.required_people} чел.",
                f"   📊 {SHIFT_STATUS_LABELS[shift.status]}",
                "",
            ]
        )
    return "\n".join(lines).rstrip()
