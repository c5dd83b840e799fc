"""Tests for environment configuration."""

import pytest

from daily_digest.config import ConfigurationError, load_config

BASE_ENV = {"BITRIX_BASE_URL": "https://portal.example.kz/", "BITRIX_WEBHOOK": "/rest/1/key/"}


def test_defaults():
    config = load_config(dict(BASE_ENV))

    assert config.api_base_url == "https://portal.example.kz/rest/1/key/"
    assert config.timezone == "Asia/Almaty"
    assert config.cron_schedule == "0 9 * * *"
    assert config.tasks_exclude_completed is True
    assert config.day_span_hours == 24
    assert config.only_user_id is None
    assert config.calendar_check_perms is True
    assert config.locale == "ru"


def test_overrides():
    config = load_config({
        **BASE_ENV,
        "TZ": "Europe/Moscow",
        "CRON_SCHEDULE": "30 8 * * 1-5",
        "TASKS_EXCLUDE_COMPLETED": "False",
        "DAY_SPAN_HOURS": "48",
        "ONLY_USER_ID": "41",
        "CALENDAR_CHECK_PERMS": "0",
        "DIGEST_LOCALE": "EN",
        "LOG_LEVEL": "debug",
    })

    assert config.timezone == "Europe/Moscow"
    assert config.tasks_exclude_completed is False
    assert config.day_span_hours == 48
    assert config.only_user_id == 41
    assert config.calendar_check_perms is False
    assert config.locale == "en"
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize("raw", ["abc", "0", "-5"])
def test_bad_span_falls_back_to_a_day(raw):
    assert load_config({**BASE_ENV, "DAY_SPAN_HOURS": raw}).day_span_hours == 24


@pytest.mark.parametrize("missing", ["BITRIX_BASE_URL", "BITRIX_WEBHOOK"])
def test_missing_endpoint_is_fatal(missing):
    env = dict(BASE_ENV)
    del env[missing]

    with pytest.raises(ConfigurationError):
        load_config(env)


@pytest.mark.parametrize("key, value", [
    ("TZ", "Mars/Olympus"),
    ("CRON_SCHEDULE", "every morning"),
    ("DIGEST_LOCALE", "kk"),
    ("ONLY_USER_ID", "forty-one"),
])
def test_invalid_values_rejected(key, value):
    with pytest.raises(ConfigurationError):
        load_config({**BASE_ENV, key: value})
