"""Configuration management."""

import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter
from dotenv import load_dotenv

SUPPORTED_LOCALES = ("ru", "en")


class ConfigurationError(Exception):
    """Raised when required settings are missing or invalid."""


@dataclass(frozen=True)
class Config:
    # Bitrix24 REST endpoint
    base_url: str
    webhook: str

    # Schedule
    timezone: str = "Asia/Almaty"
    cron_schedule: str = "0 9 * * *"

    # Data selection
    tasks_exclude_completed: bool = True
    day_span_hours: int = 24
    only_user_id: int | None = None
    calendar_check_perms: bool = True

    # App
    locale: str = "ru"
    log_level: str = "INFO"

    @property
    def api_base_url(self) -> str:
        """Base URL plus webhook path, e.g. https://x.bitrix24.kz/rest/1/KEY/"""
        return f"{self.base_url.rstrip('/')}{self.webhook.rstrip('/')}/"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def _flag(value: str) -> bool:
    return value.strip().lower() == "true"


def _span_hours(value: str) -> int:
    try:
        hours = int(float(value))
    except ValueError:
        return 24
    return hours if hours > 0 else 24


def load_config(env: dict[str, str] | None = None) -> Config:
    """Load configuration from environment variables.

    Reads a local .env file first unless an explicit mapping is given.
    """
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    base_url = env.get("BITRIX_BASE_URL", "").strip()
    webhook = env.get("BITRIX_WEBHOOK", "").strip()
    if not base_url or not webhook:
        raise ConfigurationError("BITRIX_BASE_URL and BITRIX_WEBHOOK must be set (see .env)")

    timezone = env.get("TZ", "Asia/Almaty")
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(f"Unknown timezone: {timezone!r}")

    cron_schedule = env.get("CRON_SCHEDULE", "0 9 * * *")
    if not croniter.is_valid(cron_schedule):
        raise ConfigurationError(f"Invalid CRON_SCHEDULE: {cron_schedule!r}")

    locale = env.get("DIGEST_LOCALE", "ru").strip().lower()
    if locale not in SUPPORTED_LOCALES:
        raise ConfigurationError(f"Unsupported DIGEST_LOCALE: {locale!r}")

    only_user_id = None
    raw_user = env.get("ONLY_USER_ID", "").strip()
    if raw_user:
        try:
            only_user_id = int(raw_user)
        except ValueError:
            raise ConfigurationError(f"ONLY_USER_ID must be an integer, got {raw_user!r}")

    return Config(
        base_url=base_url,
        webhook=webhook,
        timezone=timezone,
        cron_schedule=cron_schedule,
        tasks_exclude_completed=_flag(env.get("TASKS_EXCLUDE_COMPLETED", "true")),
        day_span_hours=_span_hours(env.get("DAY_SPAN_HOURS", "24")),
        only_user_id=only_user_id,
        calendar_check_perms=_flag(env.get("CALENDAR_CHECK_PERMS", "true")),
        locale=locale,
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )
