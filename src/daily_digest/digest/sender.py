"""Message delivery via Bitrix24 chat, with personal notifications as fallback."""

import logging
from dataclasses import dataclass
from enum import Enum

from ..bitrix.client import BitrixClient, RemoteCallError

logger = logging.getLogger(__name__)

PRIMARY_METHOD = "im.message.add"
FALLBACK_METHOD = "im.notify.personal.add"


class DeliveryError(Exception):
    """The digest could not be delivered through any channel."""

    def __init__(self, user_id: int, cause: Exception):
        self.user_id = user_id
        self.cause = cause
        super().__init__(str(cause))


class SendStatus(Enum):
    DELIVERED = "delivered"
    FALLBACK_NEEDED = "fallback_needed"
    FAILED = "failed"


@dataclass
class SendOutcome:
    """Result of the direct-message attempt."""
    status: SendStatus
    error: RemoteCallError | None = None


def dialog_id(user_id: int) -> str:
    return f"user{user_id}"


def needs_fallback(error: RemoteCallError) -> bool:
    """Only a 400 from im.message.add itself justifies trying notifications.

    Bitrix answers 400 when the bot cannot open a chat with the user
    (e.g. the user never logged in to the messenger).
    """
    return error.method == PRIMARY_METHOD and error.status == 400


async def send_primary(client: BitrixClient, user_id: int, message: str) -> SendOutcome:
    try:
        await client.call(PRIMARY_METHOD, {"DIALOG_ID": dialog_id(user_id), "MESSAGE": message})
    except RemoteCallError as e:
        if needs_fallback(e):
            return SendOutcome(SendStatus.FALLBACK_NEEDED, e)
        return SendOutcome(SendStatus.FAILED, e)
    return SendOutcome(SendStatus.DELIVERED)


async def deliver(client: BitrixClient, user_id: int, message: str) -> str:
    """Send the message to one user.

    Returns the REST method that delivered it. Raises DeliveryError when
    the direct message fails for any reason other than a 400, or when the
    fallback notification fails too.
    """
    outcome = await send_primary(client, user_id, message)

    if outcome.status is SendStatus.DELIVERED:
        return PRIMARY_METHOD
    if outcome.status is SendStatus.FAILED:
        raise DeliveryError(user_id, outcome.error) from outcome.error

    logger.warning(f"{PRIMARY_METHOD} → 400, falling back to {FALLBACK_METHOD} for user {user_id}")
    try:
        await client.call(FALLBACK_METHOD, {"USER_ID": user_id, "MESSAGE": message})
    except RemoteCallError as e:
        raise DeliveryError(user_id, e) from e
    return FALLBACK_METHOD
