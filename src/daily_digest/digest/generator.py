"""Digest content generator."""

from dataclasses import dataclass
from datetime import datetime

from ..bitrix.calendar import CalendarEvent
from ..bitrix.directory import User
from ..bitrix.tasks import Task

MAX_MESSAGE_LENGTH = 3500
MAX_TASKS_SHOWN = 15
TRUNCATION_MARKER = "…"


@dataclass(frozen=True)
class Strings:
    """User-facing text for one locale."""
    greeting: str
    intro: str
    calendar_header: str
    tasks_header: str
    no_events: str
    no_tasks: str
    untitled: str
    more_tasks: str
    closing: str
    weekdays: tuple[str, ...]


STRINGS = {
    "ru": Strings(
        greeting="Доброе утро, {name}! 👋",
        intro="Ваш дайджест на {date}:",
        calendar_header="📅 Календарь:",
        tasks_header="✅ Задачи:",
        no_events="• Событий на сегодня нет",
        no_tasks="• Открытых задач нет",
        untitled="(без названия)",
        more_tasks="… и ещё {count}",
        closing=(
            "Для удобства можете включить рабочий день в Битрикс24: кликнуть справа вверху "
            "на свой аватар и нажать кнопку \"Начать рабочий день\".\n"
            "Продуктивного дня и больших успехов в нашем общем деле!"
        ),
        weekdays=("понедельник", "вторник", "среда", "четверг", "пятница", "суббота", "воскресенье"),
    ),
    "en": Strings(
        greeting="Good morning, {name}! 👋",
        intro="Your digest for {date}:",
        calendar_header="📅 Calendar:",
        tasks_header="✅ Tasks:",
        no_events="• No events today",
        no_tasks="• No open tasks",
        untitled="(untitled)",
        more_tasks="… and {count} more",
        closing=(
            "Tip: start your workday in Bitrix24 by clicking your avatar in the top right "
            "corner and pressing \"Start workday\".\n"
            "Have a productive day!"
        ),
        weekdays=("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"),
    ),
}


def format_date(day: datetime, locale: str = "ru") -> str:
    """DD.MM.YYYY (weekday)"""
    weekday = STRINGS[locale].weekdays[day.weekday()]
    return f"{day:%d.%m.%Y} ({weekday})"


def format_event(event: CalendarEvent, locale: str = "ru") -> str:
    # Title and location only, never the time of day
    title = event.title or STRINGS[locale].untitled
    location = event.display_location
    return f"• {title} • {location}" if location else f"• {title}"


def format_task(task: Task) -> str:
    return f"• [#{task.id}] {task.title}"


def sanitize_message(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """Strip carriage returns and cap the length, marking the cut with an ellipsis."""
    cleaned = str(text).replace("\r", "").strip()
    if len(cleaned) > max_length:
        return cleaned[: max_length - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER
    return cleaned


def _event_lines(events: list[CalendarEvent], strings: Strings, locale: str) -> str:
    if not events:
        return strings.no_events
    return "\n".join(format_event(ev, locale) for ev in events)


def _task_lines(tasks: list[Task], strings: Strings) -> str:
    if not tasks:
        return strings.no_tasks
    lines = [format_task(t) for t in tasks[:MAX_TASKS_SHOWN]]
    if len(tasks) > MAX_TASKS_SHOWN:
        lines.append(strings.more_tasks.format(count=len(tasks) - MAX_TASKS_SHOWN))
    return "\n".join(lines)


def format_digest(
    user: User,
    events: list[CalendarEvent],
    tasks: list[Task],
    today: datetime,
    locale: str = "ru",
    max_length: int = MAX_MESSAGE_LENGTH,
) -> str:
    """Render one user's digest message.

    ``today`` is the current moment in the configured timezone; only its
    date is shown. Tasks are expected in deadline order already.
    """
    strings = STRINGS[locale]
    message = "\n".join([
        strings.greeting.format(name=user.name),
        strings.intro.format(date=format_date(today, locale)),
        "",
        strings.calendar_header,
        _event_lines(events, strings, locale),
        "",
        strings.tasks_header,
        _task_lines(tasks, strings),
        "",
        strings.closing,
    ])
    return sanitize_message(message, max_length)
