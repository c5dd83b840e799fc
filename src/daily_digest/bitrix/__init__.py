"""Bitrix24 REST access: client and per-user data fetchers."""

from .client import BitrixClient, RemoteCallError
from .directory import User, get_active_users
from .calendar import CalendarEvent, get_todays_events
from .tasks import Task, get_open_tasks

__all__ = [
    "BitrixClient",
    "RemoteCallError",
    "User",
    "get_active_users",
    "CalendarEvent",
    "get_todays_events",
    "Task",
    "get_open_tasks",
]
