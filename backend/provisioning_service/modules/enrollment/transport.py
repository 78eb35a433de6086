"""
HTTP transport for the provisioning registry.

Same shape as the other connector clients: a persistent
``httpx.AsyncClient`` created lazily from a dataclass config, structured
logging and an explicit ``close()``. The transport attaches the signed
credential to every request, encodes bodies as JSON and turns non-success
statuses into typed ``TransportError`` subclasses. It never retries.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from provisioning_service.core.config import get_settings
from provisioning_service.core.errors import (
    STATUS_ERRORS,
    TransportConnectionError,
    TransportError,
)
from provisioning_service.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ServiceConfig:
    """Registry host name and the signed credential sent with every request."""

    host: str
    credential: str


@dataclass(frozen=True)
class ApiResult:
    """Decoded JSON body (``None`` when empty) and the raw HTTP response."""

    body: Any
    response: httpx.Response


class Transport(Protocol):
    async def execute_api_call(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        body: Any = None,
    ) -> ApiResult: ...

    async def close(self) -> None: ...


def _error_details(response: httpx.Response) -> tuple[str | None, Any, str | None]:
    try:
        payload = response.json()
    except ValueError:
        return (response.text or None), None, None
    if not isinstance(payload, dict):
        return None, None, None
    message = payload.get("message") or payload.get("Message")
    return message, payload.get("errorCode"), payload.get("trackingId")


def translate_error(response: httpx.Response) -> TransportError:
    """Build the ``TransportError`` matching a non-success response."""
    message, error_code, tracking_id = _error_details(response)
    error_cls = STATUS_ERRORS.get(response.status_code, TransportError)
    text = f"HTTP {response.status_code}"
    if message:
        text = f"{text}: {message[:200]}"
    return error_cls(
        text,
        status_code=response.status_code,
        response=response,
        error_code=error_code,
        tracking_id=tracking_id,
    )


class RestApiClient:
    """Authenticated JSON client for the registry's REST API."""

    def __init__(
        self,
        config: ServiceConfig,
        *,
        user_agent: str | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self._config = config
        self._user_agent = user_agent or settings.user_agent
        self._timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._http_client: httpx.AsyncClient | None = None

    def _base_url(self) -> str:
        host = self._config.host.strip().rstrip("/")
        if "://" in host:
            return host
        return f"https://{host}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Return (or lazily create) the authenticated HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self._base_url(),
                headers={
                    "Authorization": self._config.credential,
                    "User-Agent": self._user_agent,
                },
                timeout=self._timeout,
            )
        return self._http_client

    async def execute_api_call(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        body: Any = None,
    ) -> ApiResult:
        client = await self._get_client()

        request_headers = {**headers, "Request-Id": str(uuid.uuid4())}
        content = None if body is None else json.dumps(body).encode("utf-8")

        try:
            response = await client.request(
                method,
                path,
                headers=request_headers,
                content=content,
            )
        except httpx.HTTPError as exc:
            raise TransportConnectionError(f"Request to registry failed: {exc}") from exc

        if response.status_code >= 300:
            raise translate_error(response)

        if not response.content:
            return ApiResult(body=None, response=response)
        try:
            return ApiResult(body=response.json(), response=response)
        except ValueError as exc:
            raise TransportError(
                "Registry returned a body that is not valid JSON",
                status_code=response.status_code,
                response=response,
            ) from exc

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
