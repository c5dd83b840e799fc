"""Open tasks for a user, following the list cursor."""

import logging
from dataclasses import dataclass

from ..config import Config
from .client import BitrixClient

logger = logging.getLogger(__name__)

STATUS_COMPLETED = 5
MAX_PAGES = 10

TASK_FIELDS = ["ID", "TITLE", "STATUS", "DEADLINE", "CREATED_DATE", "RESPONSIBLE_ID"]


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    status: int | None = None
    deadline: str | None = None
    created_date: str | None = None
    responsible_id: str | None = None

    @classmethod
    def from_api(cls, data: dict) -> "Task":
        # tasks.task.list answers in camelCase even when asked for upper-case fields
        def field(camel: str, upper: str):
            value = data.get(camel)
            return value if value is not None else data.get(upper)

        status = field("status", "STATUS")
        responsible = field("responsibleId", "RESPONSIBLE_ID")
        return cls(
            id=str(field("id", "ID") or ""),
            title=field("title", "TITLE") or "",
            status=int(status) if status not in (None, "") else None,
            deadline=field("deadline", "DEADLINE"),
            created_date=field("createdDate", "CREATED_DATE"),
            responsible_id=str(responsible) if responsible is not None else None,
        )


def task_list_params(config: Config, user_id: int, start: int) -> dict:
    filter_ = {"RESPONSIBLE_ID": user_id}
    if config.tasks_exclude_completed:
        filter_["!=STATUS"] = STATUS_COMPLETED
    return {
        "filter": filter_,
        "select": TASK_FIELDS,
        "order": {"DEADLINE": "asc"},
        "start": start,
    }


def _next_cursor(payload: dict) -> int | None:
    cursor = payload.get("next")
    if cursor is None and isinstance(payload.get("result"), dict):
        cursor = payload["result"].get("next")
    return int(cursor) if cursor else None


async def get_open_tasks(client: BitrixClient, config: Config, user_id: int) -> list[Task]:
    """Fetch every page of the user's open tasks, up to MAX_PAGES."""
    tasks: list[Task] = []
    start = 0
    for _ in range(MAX_PAGES):
        payload = await client.fetch("tasks.task.list", task_list_params(config, user_id, start))
        result = payload.get("result")
        # Some portals answer an empty list instead of {"tasks": []}
        rows = result.get("tasks") if isinstance(result, dict) else None
        tasks.extend(Task.from_api(row) for row in rows or [])

        cursor = _next_cursor(payload)
        if cursor is None:
            return tasks
        start = cursor

    logger.warning(
        f"Task list for user {user_id} still has more pages after {MAX_PAGES}; "
        f"showing the first {len(tasks)} tasks"
    )
    return tasks
