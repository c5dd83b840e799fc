"""
Pytest configuration and shared fixtures.
"""

import asyncio
from urllib.parse import parse_qsl

import httpx
import pytest
import pytest_asyncio

from daily_digest.bitrix.client import BitrixClient
from daily_digest.config import Config


class FakeBitrix:
    """In-memory Bitrix24 portal behind httpx.MockTransport.

    Handlers are registered per REST method and receive the decoded query
    params; they return either a payload dict or an httpx.Response.
    """

    def __init__(self, delay: float = 0.0):
        self.handlers = {}
        self.calls: list[tuple[str, dict]] = []
        self.delay = delay

    def on(self, method: str, handler):
        self.handlers[method] = handler
        return self

    def calls_to(self, method: str) -> list[dict]:
        return [params for name, params in self.calls if name == method]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/", 1)[-1].removesuffix(".json")
        params = dict(parse_qsl(request.url.query.decode()))
        self.calls.append((method, params))
        if self.delay:
            await asyncio.sleep(self.delay)

        handler = self.handlers.get(method)
        if handler is None:
            return httpx.Response(400, json={"error": "ERROR_METHOD_NOT_FOUND", "error_description": "Method not found!"})
        result = handler(params)
        if asyncio.iscoroutine(result):
            result = await result
        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json=result)


@pytest.fixture
def config():
    """Config pointing at a fake portal, with defaults for everything else."""
    # Fixed UTC+5, no DST
    return Config(base_url="https://portal.example.kz", webhook="/rest/1/s3cr3tkey", timezone="Asia/Tashkent")


@pytest.fixture
def portal():
    return FakeBitrix()


@pytest_asyncio.fixture
async def client(config, portal):
    async with BitrixClient(config, transport=httpx.MockTransport(portal)) as bitrix:
        yield bitrix


def user_row(user_id, name="Aigerim", active=True, bot=False, extranet=False):
    return {"ID": str(user_id), "NAME": name, "ACTIVE": active, "IS_BOT": bot, "IS_EXTRANET": extranet}


def task_rows(start, count):
    return [{"id": str(i), "title": f"Task {i}", "status": "2"} for i in range(start, start + count)]
