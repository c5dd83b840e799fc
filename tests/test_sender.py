"""Tests for digest delivery and the notification fallback."""

import httpx
import pytest

from daily_digest.bitrix.client import RemoteCallError
from daily_digest.digest.sender import (
    FALLBACK_METHOD,
    PRIMARY_METHOD,
    DeliveryError,
    SendStatus,
    deliver,
    needs_fallback,
    send_primary,
)


def bad_request(params):
    return httpx.Response(400, json={"error": "ACCESS_ERROR", "error_description": "Chat not available"})


def server_error(params):
    return httpx.Response(503, json={"error": "QUERY_LIMIT_EXCEEDED", "error_description": "Too many requests"})


def ok(params):
    return {"result": 123}


def test_needs_fallback_predicate():
    assert needs_fallback(RemoteCallError(PRIMARY_METHOD, "x", 400))
    assert not needs_fallback(RemoteCallError(PRIMARY_METHOD, "x", 500))
    assert not needs_fallback(RemoteCallError(PRIMARY_METHOD, "x", None))
    assert not needs_fallback(RemoteCallError(FALLBACK_METHOD, "x", 400))


@pytest.mark.asyncio
async def test_direct_message_delivered(client, portal):
    portal.on(PRIMARY_METHOD, ok)

    assert await deliver(client, 12, "hello") == PRIMARY_METHOD
    assert portal.calls_to(PRIMARY_METHOD) == [{"DIALOG_ID": "user12", "MESSAGE": "hello"}]
    assert portal.calls_to(FALLBACK_METHOD) == []


@pytest.mark.asyncio
async def test_send_primary_classifies_failures(client, portal):
    portal.on(PRIMARY_METHOD, bad_request)
    outcome = await send_primary(client, 12, "hello")
    assert outcome.status is SendStatus.FALLBACK_NEEDED
    assert outcome.error.status == 400

    portal.on(PRIMARY_METHOD, server_error)
    outcome = await send_primary(client, 12, "hello")
    assert outcome.status is SendStatus.FAILED


@pytest.mark.asyncio
async def test_400_falls_back_to_personal_notification_once(client, portal, caplog):
    portal.on(PRIMARY_METHOD, bad_request).on(FALLBACK_METHOD, ok)

    assert await deliver(client, 12, "hello") == FALLBACK_METHOD

    assert portal.calls_to(FALLBACK_METHOD) == [{"USER_ID": "12", "MESSAGE": "hello"}]
    assert len(portal.calls_to(PRIMARY_METHOD)) == 1
    assert "falling back" in caplog.text


@pytest.mark.asyncio
async def test_server_error_does_not_fall_back(client, portal):
    portal.on(PRIMARY_METHOD, server_error).on(FALLBACK_METHOD, ok)

    with pytest.raises(DeliveryError) as exc_info:
        await deliver(client, 12, "hello")

    assert exc_info.value.user_id == 12
    assert exc_info.value.cause.status == 503
    assert portal.calls_to(FALLBACK_METHOD) == []


@pytest.mark.asyncio
async def test_failed_fallback_is_terminal(client, portal):
    portal.on(PRIMARY_METHOD, bad_request).on(FALLBACK_METHOD, bad_request)

    with pytest.raises(DeliveryError) as exc_info:
        await deliver(client, 12, "hello")

    assert exc_info.value.cause.method == FALLBACK_METHOD
    assert len(portal.calls_to(PRIMARY_METHOD)) == 1
    assert len(portal.calls_to(FALLBACK_METHOD)) == 1
