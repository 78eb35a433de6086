"""
Provisioning service client.

Binds the registry operations to their resource kinds: individual
enrollments, enrollment groups and device registration status records.
Every operation is a coroutine that reports its outcome through a
completion handler; see ``dispatcher`` for the handler contract.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

from provisioning_service.core.config import Settings, get_settings
from provisioning_service.core.errors import (
    ArgumentMissingError,
    ConfigurationMissingError,
    InvalidArgumentError,
    InvalidConfigurationError,
)
from provisioning_service.core.logging import get_logger
from provisioning_service.core.security.sas import Clock, credential_from_connection_string
from provisioning_service.modules.enrollment.arguments import CompletionHandler
from provisioning_service.modules.enrollment.dispatcher import OperationDispatcher
from provisioning_service.modules.enrollment.models import (
    BulkOperation,
    DeviceRegistrationStatus,
    Enrollment,
    EnrollmentGroup,
    QuerySpecification,
    ResourceKind,
)
from provisioning_service.modules.enrollment.query import QueryCursor
from provisioning_service.modules.enrollment.transport import (
    ApiResult,
    RestApiClient,
    ServiceConfig,
    Transport,
)

logger = get_logger(__name__)


class ProvisioningServiceClient:
    """
    Client for the device provisioning registry.

    Handles:
    - Individual enrollment create/update, get, delete and query
    - Enrollment group create/update, get, delete and query
    - Device registration status get, delete and query
    - Bulk enrollment operations
    """

    def __init__(self, config: ServiceConfig | None, transport: Transport | None = None) -> None:
        if config is None:
            raise ConfigurationMissingError("The 'config' parameter cannot be None")
        if not isinstance(config, ServiceConfig):
            raise InvalidConfigurationError(
                f"The 'config' argument must be a ServiceConfig, got {type(config).__name__}"
            )
        if not config.host or not config.credential:
            raise InvalidConfigurationError(
                "The 'config' argument is missing either the host or the credential"
            )
        self._config = config
        self._transport = transport if transport is not None else RestApiClient(config)
        self._dispatcher = OperationDispatcher(self._transport)

    @classmethod
    def from_connection_string(
        cls,
        value: str | None,
        *,
        clock: Clock = time.time,
        settings: Settings | None = None,
    ) -> ProvisioningServiceClient:
        """
        Build a client from ``HostName=...;SharedAccessKeyName=...;SharedAccessKey=...``.

        The credential is a shared access signature valid for
        ``settings.sas_token_ttl_seconds`` from ``clock()``.
        """
        settings = settings or get_settings()
        host, credential = credential_from_connection_string(
            value,
            ttl_seconds=settings.sas_token_ttl_seconds,
            clock=clock,
        )
        logger.info("provisioning_client_configured", host=host)
        return cls(ServiceConfig(host=host, credential=credential))

    @property
    def host(self) -> str:
        return self._config.host

    # ------------------------------------------------------------------
    # Individual enrollments
    # ------------------------------------------------------------------

    async def create_or_update_individual_enrollment(
        self,
        enrollment: Enrollment | Mapping[str, Any],
        callback: CompletionHandler | None = None,
    ) -> None:
        await self._dispatcher.create_or_update(ResourceKind.ENROLLMENT, enrollment, callback)

    async def get_individual_enrollment(
        self, registration_id: str, callback: CompletionHandler
    ) -> None:
        await self._dispatcher.get(ResourceKind.ENROLLMENT, registration_id, callback)

    async def delete_individual_enrollment(
        self,
        enrollment_or_id: Enrollment | Mapping[str, Any] | str,
        etag_or_callback: str | CompletionHandler | None = None,
        callback: CompletionHandler | None = None,
    ) -> None:
        """
        Delete by registration ID (optionally conditional on ``etag``) or by
        ``Enrollment``, in which case the enrollment's own etag is used.
        """
        await self._dispatcher.delete(
            ResourceKind.ENROLLMENT, enrollment_or_id, etag_or_callback, callback
        )

    def create_individual_enrollment_query(
        self,
        query_specification: QuerySpecification,
        page_size: int | None = None,
        continuation_token: str | None = None,
    ) -> QueryCursor:
        return self._create_query(
            ResourceKind.ENROLLMENT, query_specification, page_size, continuation_token
        )

    # ------------------------------------------------------------------
    # Enrollment groups
    # ------------------------------------------------------------------

    async def create_or_update_enrollment_group(
        self,
        enrollment_group: EnrollmentGroup | Mapping[str, Any],
        callback: CompletionHandler | None = None,
    ) -> None:
        await self._dispatcher.create_or_update(
            ResourceKind.ENROLLMENT_GROUP, enrollment_group, callback
        )

    async def get_enrollment_group(
        self, enrollment_group_id: str, callback: CompletionHandler
    ) -> None:
        await self._dispatcher.get(ResourceKind.ENROLLMENT_GROUP, enrollment_group_id, callback)

    async def delete_enrollment_group(
        self,
        enrollment_group_or_id: EnrollmentGroup | Mapping[str, Any] | str,
        etag_or_callback: str | CompletionHandler | None = None,
        callback: CompletionHandler | None = None,
    ) -> None:
        await self._dispatcher.delete(
            ResourceKind.ENROLLMENT_GROUP, enrollment_group_or_id, etag_or_callback, callback
        )

    def create_enrollment_group_query(
        self,
        query_specification: QuerySpecification,
        page_size: int | None = None,
        continuation_token: str | None = None,
    ) -> QueryCursor:
        return self._create_query(
            ResourceKind.ENROLLMENT_GROUP, query_specification, page_size, continuation_token
        )

    # ------------------------------------------------------------------
    # Device registration status
    # ------------------------------------------------------------------

    async def get_device_registration_status(
        self, registration_id: str, callback: CompletionHandler
    ) -> None:
        await self._dispatcher.get(ResourceKind.REGISTRATION_STATUS, registration_id, callback)

    async def delete_device_registration_status(
        self,
        status_or_id: DeviceRegistrationStatus | Mapping[str, Any] | str,
        etag_or_callback: str | CompletionHandler | None = None,
        callback: CompletionHandler | None = None,
    ) -> None:
        await self._dispatcher.delete(
            ResourceKind.REGISTRATION_STATUS, status_or_id, etag_or_callback, callback
        )

    def create_device_registration_status_query(
        self,
        query_specification: QuerySpecification,
        page_size: int | None = None,
        continuation_token: str | None = None,
    ) -> QueryCursor:
        return self._create_query(
            ResourceKind.REGISTRATION_STATUS, query_specification, page_size, continuation_token
        )

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    async def bulk_operation(
        self,
        bulk_operation: BulkOperation,
        callback: CompletionHandler | None = None,
    ) -> None:
        await self._dispatcher.bulk_operation(bulk_operation, callback)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _create_query(
        self,
        kind: ResourceKind,
        query_specification: Any,
        page_size: int | None,
        continuation_token: str | None,
    ) -> QueryCursor:
        if query_specification is None:
            raise ArgumentMissingError("A query specification is required to create a query")
        if not isinstance(query_specification, QuerySpecification):
            raise InvalidArgumentError(
                f"Expected QuerySpecification, got {type(query_specification).__name__}"
            )

        async def fetch_page(token: str | None) -> ApiResult:
            return await self._dispatcher.query_page(
                kind,
                query_specification,
                page_size=page_size,
                continuation_token=token,
            )

        return QueryCursor(fetch_page, kind.model, continuation_token=continuation_token)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Release the transport's HTTP connections."""
        await self._transport.close()
