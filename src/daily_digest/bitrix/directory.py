"""User directory: the set of employees who receive a digest."""

import logging
from dataclasses import dataclass
from typing import Any

from ..config import Config
from .client import BitrixClient

logger = logging.getLogger(__name__)


def _truthy(value: Any) -> bool:
    """Bitrix sends flags as booleans, "true"/"false" or "Y"/"N" depending on the method."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "y", "1")
    return bool(value)


@dataclass(frozen=True)
class User:
    """A directory entry, read once per run."""
    id: int
    name: str
    active: bool
    is_bot: bool
    is_external: bool

    @property
    def eligible(self) -> bool:
        return self.active and not self.is_bot and not self.is_external

    @classmethod
    def from_api(cls, data: dict) -> "User":
        return cls(
            id=int(data.get("ID") or data.get("Id")),
            name=data.get("NAME") or data.get("NAME_FORMAT") or "",
            active=_truthy(data.get("ACTIVE")),
            is_bot=_truthy(data.get("IS_BOT")),
            is_external=_truthy(data.get("IS_EXTRANET")),
        )


async def get_active_users(client: BitrixClient, config: Config) -> list[User]:
    """Fetch active employees, excluding bots and extranet users.

    The server-side ACTIVE filter is repeated on the client because some
    portals ignore it.
    """
    result = await client.call("user.get", {"FILTER": {"ACTIVE": True}})
    users = []
    for row in result or []:
        try:
            user = User.from_api(row)
        except (AttributeError, TypeError, ValueError):
            logger.warning(f"Skipping directory entry without a numeric ID: {row!r}")
            continue
        if user.eligible:
            users.append(user)

    if config.only_user_id is not None:
        users = [u for u in users if u.id == config.only_user_id]
        logger.info(f"ONLY_USER_ID={config.only_user_id}: {len(users)} user(s) selected")

    return users
