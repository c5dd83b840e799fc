"""Bitrix24 REST client over an inbound webhook."""

import asyncio
import logging
import re
from collections.abc import Mapping
from typing import Any

import httpx

from ..config import Config

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 20.0

# .../rest/<user>/<secret>/ -> .../rest/<user>/***/
_SECRET_SEGMENT = re.compile(r"(/rest/\d+/)[^/]+")


class RemoteCallError(Exception):
    """A REST method failed at the payload or transport level."""

    def __init__(self, method: str, description: str, status: int | None = None):
        self.method = method
        self.status = status
        self.description = description
        if status:
            super().__init__(f"{method}: {status} {description}")
        else:
            super().__init__(f"{method}: {description}")


def mask_secret(url: str) -> str:
    """Hide the webhook secret and drop the query string."""
    return _SECRET_SEGMENT.sub(r"\1***", url.split("?", 1)[0])


def flatten_params(params: Mapping[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    """Encode nested params the way PHP parses them: FILTER[ACTIVE]=true, select[0]=ID."""
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if isinstance(value, Mapping):
            pairs.extend(flatten_params(value, name))
        elif isinstance(value, (list, tuple)):
            pairs.extend(flatten_params(dict(enumerate(value)), name))
        elif isinstance(value, bool):
            pairs.append((name, "true" if value else "false"))
        elif value is None:
            continue
        else:
            pairs.append((name, str(value)))
    return pairs


def _error_description(response: httpx.Response) -> str | None:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        return data.get("error_description") or data.get("error")
    return None


class BitrixClient:
    """Calls named REST methods and normalizes failures into RemoteCallError.

    The client holds no per-call state, so one instance is shared by all
    concurrent digest pipelines.
    """

    def __init__(self, config: Config, transport: httpx.AsyncBaseTransport | None = None):
        self.client = httpx.AsyncClient(
            base_url=config.api_base_url,
            timeout=REQUEST_TIMEOUT,
            transport=transport,
            event_hooks={"request": [self._log_request]},
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _log_request(self, request: httpx.Request) -> None:
        logger.info(f"→ {mask_secret(str(request.url))}")

    async def fetch(self, method: str, params: Mapping[str, Any] | None = None) -> dict:
        """Call a method and return the whole response payload.

        Pagination metadata such as ``next`` lives next to ``result``, so
        callers that page through lists need the full payload.
        """
        method = method.lstrip("/")
        try:
            # httpx limits each connect/read step; this caps the whole call
            response = await asyncio.wait_for(
                self.client.get(f"{method}.json", params=flatten_params(params or {})),
                REQUEST_TIMEOUT,
            )
            response.raise_for_status()
        except asyncio.TimeoutError as e:
            raise RemoteCallError(method, "timed out") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise RemoteCallError(method, _error_description(e.response) or str(e), status) from e
        except httpx.HTTPError as e:
            raise RemoteCallError(method, str(e) or type(e).__name__) from e

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteCallError(method, "response is not valid JSON", response.status_code) from e

        if not isinstance(data, dict):
            raise RemoteCallError(method, "unexpected response payload", response.status_code)
        if data.get("error"):
            description = data.get("error_description") or data["error"]
            raise RemoteCallError(method, description, response.status_code)
        return data

    async def call(self, method: str, params: Mapping[str, Any] | None = None) -> Any:
        """Call a method and return its ``result``."""
        data = await self.fetch(method, params)
        return data.get("result")
