"""Today's calendar events for a user."""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..config import Config
from .client import BitrixClient

# Rooms booked through the resource calendar show up as "calendar_<id>"
_TECHNICAL_LOCATION = re.compile(r"^calendar_\d+")

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


@dataclass(frozen=True)
class CalendarEvent:
    title: str
    location: str | None = None

    @property
    def display_location(self) -> str | None:
        """Location worth showing, or None for blanks and technical placeholders."""
        loc = (self.location or "").strip()
        if not loc or loc == "false" or _TECHNICAL_LOCATION.match(loc):
            return None
        return loc

    @classmethod
    def from_api(cls, data: dict) -> "CalendarEvent":
        location = data.get("LOCATION")
        return cls(
            title=data.get("NAME") or data.get("name") or "",
            location=str(location) if location not in (None, False) else None,
        )


def event_window(config: Config, now: datetime | None = None) -> tuple[str, str]:
    """Return (from, to) covering the configured span starting at local midnight.

    The span is elapsed time, so a DST switch inside the window keeps it
    exactly ``day_span_hours`` long.
    """
    now = now.astimezone(config.tzinfo) if now else datetime.now(config.tzinfo)
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = (
        day_start.astimezone(timezone.utc)
        + timedelta(hours=config.day_span_hours)
        - timedelta(seconds=1)
    ).astimezone(config.tzinfo)
    return day_start.strftime(TIMESTAMP_FORMAT), day_end.strftime(TIMESTAMP_FORMAT)


async def get_todays_events(
    client: BitrixClient,
    config: Config,
    user_id: int,
    now: datetime | None = None,
) -> list[CalendarEvent]:
    """Fetch the user's events inside today's window. A null result means no events."""
    date_from, date_to = event_window(config, now)
    result = await client.call("calendar.event.get", {
        "type": "user",
        "ownerId": user_id,
        "from": date_from,
        "to": date_to,
        "params[checkPermissions]": 1 if config.calendar_check_perms else 0,
    })
    return [CalendarEvent.from_api(row) for row in result or []]
