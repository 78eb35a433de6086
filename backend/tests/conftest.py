"""
Pytest fixtures for the provisioning service client.
Provides a mocked transport, a client wired to it and response factories.
"""

from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from provisioning_service.core.config import get_settings
from provisioning_service.modules.enrollment.client import ProvisioningServiceClient
from provisioning_service.modules.enrollment.transport import (
    ApiResult,
    RestApiClient,
    ServiceConfig,
)


class CallbackRecorder:
    """Completion handler that records every invocation."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def __call__(self, *args: Any) -> None:
        self.calls.append(args)


def make_result(
    status_code: int = 200,
    json_data: Any = None,
    headers: dict[str, str] | None = None,
) -> ApiResult:
    """Build a transport result around a real httpx.Response."""
    request = httpx.Request("POST", "https://registry.example.net/test")
    if json_data is None:
        response = httpx.Response(status_code=status_code, headers=headers, request=request)
    else:
        response = httpx.Response(
            status_code=status_code,
            json=json_data,
            headers=headers,
            request=request,
        )
    return ApiResult(body=json_data, response=response)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def service_config() -> ServiceConfig:
    return ServiceConfig(
        host="registry.example.net",
        credential="SharedAccessSignature sr=registry.example.net&sig=abc&se=1&skn=owner",
    )


@pytest.fixture
def transport() -> AsyncMock:
    mock_transport = AsyncMock(spec=RestApiClient)
    mock_transport.execute_api_call.return_value = make_result(200, {})
    return mock_transport


@pytest.fixture
def client(service_config: ServiceConfig, transport: AsyncMock) -> ProvisioningServiceClient:
    return ProvisioningServiceClient(service_config, transport=transport)


@pytest.fixture
def recorder() -> CallbackRecorder:
    return CallbackRecorder()


@pytest.fixture
def result_factory():
    return make_result
