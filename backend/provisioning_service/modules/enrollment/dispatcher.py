"""
Operation dispatch: create-or-update, get, delete, bulk and query pages.

Each operation resolves its arguments, builds one ``ApiRequest``, awaits the
transport and reports the outcome through the caller's completion handler:

* failure: ``handler(error)``
* create-or-update, get, bulk: ``handler(None, entity, raw_response)``
* delete: ``handler(None)``

Argument errors are raised before the transport is called. Transport errors
are logged and handed to the handler, never raised. Nothing is cached or
retried; every call is an independent exchange.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from provisioning_service.core.errors import (
    ArgumentMissingError,
    InvalidArgumentError,
    TransportError,
)
from provisioning_service.core.logging import get_logger
from provisioning_service.modules.enrollment.arguments import (
    CompletionHandler,
    coerce_entity,
    resolve_create_or_update,
    resolve_delete,
    resolve_fetch,
)
from provisioning_service.modules.enrollment.models import (
    BulkOperation,
    BulkOperationResult,
    ProvisioningEntity,
    QuerySpecification,
    RegistryModel,
    ResourceKind,
)
from provisioning_service.modules.enrollment.request_builder import (
    ApiRequest,
    bulk_operation_request,
    create_or_update_request,
    delete_request,
    get_request,
    query_request,
)
from provisioning_service.modules.enrollment.transport import ApiResult, Transport

logger = get_logger(__name__)


async def invoke_handler(handler: CompletionHandler | None, *args: Any) -> None:
    """Call a completion handler, awaiting it when it returns an awaitable."""
    if handler is None:
        return
    outcome = handler(*args)
    if inspect.isawaitable(outcome):
        await outcome


def _optional_handler(callback: Any) -> CompletionHandler | None:
    if callback is not None and not callable(callback):
        raise InvalidArgumentError("callback must be callable")
    return callback


def parse_body(model: type[RegistryModel], result: ApiResult) -> Any:
    """Validate a decoded response body against ``model``."""
    if result.body is None:
        return None
    try:
        return model.model_validate(result.body)
    except ValidationError as exc:
        raise TransportError(
            f"Registry response is not a valid {model.__name__}",
            status_code=result.response.status_code,
            response=result.response,
        ) from exc


class OperationDispatcher:
    """Runs registry operations against a transport."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def _send(self, request: ApiRequest) -> ApiResult:
        logger.info("registry_request", method=request.method, path=request.path)
        try:
            result = await self._transport.execute_api_call(
                request.method,
                request.path,
                dict(request.headers),
                request.body,
            )
        except TransportError as exc:
            logger.warning(
                "registry_request_failed",
                method=request.method,
                path=request.path,
                status_code=exc.status_code,
                error=str(exc),
            )
            raise
        logger.debug(
            "registry_response",
            method=request.method,
            path=request.path,
            status_code=result.response.status_code,
        )
        return result

    async def _dispatch(
        self,
        request: ApiRequest,
        on_complete: CompletionHandler | None,
        model: type[RegistryModel] | None,
    ) -> None:
        try:
            result = await self._send(request)
            parsed = parse_body(model, result) if model is not None else None
        except TransportError as exc:
            await invoke_handler(on_complete, exc)
            return

        if model is None:
            await invoke_handler(on_complete, None)
        else:
            await invoke_handler(on_complete, None, parsed, result.response)

    async def create_or_update(
        self,
        kind: ResourceKind,
        entity: ProvisioningEntity | Mapping[str, Any],
        callback: CompletionHandler | None = None,
    ) -> None:
        """``PUT`` the entity. Without a callback the outcome is discarded."""
        entity = coerce_entity(kind, entity)
        identifier = resolve_create_or_update(kind, entity)
        handler = _optional_handler(callback)
        request = create_or_update_request(kind, identifier, entity.to_payload())
        await self._dispatch(request, handler, kind.model)

    async def get(
        self,
        kind: ResourceKind,
        identifier: str,
        callback: CompletionHandler,
    ) -> None:
        """``GET`` one record. The callback is the only way to observe it."""
        resolved = resolve_fetch(kind, identifier)
        if callback is None:
            raise ArgumentMissingError("A completion callback is required when calling get")
        handler = _optional_handler(callback)
        await self._dispatch(get_request(kind, resolved), handler, kind.model)

    async def delete(
        self,
        kind: ResourceKind,
        enrollment_or_id: Any,
        etag_or_callback: Any = None,
        callback: Any = None,
    ) -> None:
        intent = resolve_delete(kind, enrollment_or_id, etag_or_callback, callback)
        request = delete_request(kind, intent.id, intent.if_match)
        await self._dispatch(request, intent.on_complete, None)

    async def bulk_operation(
        self,
        operation: BulkOperation | None,
        callback: CompletionHandler | None = None,
    ) -> None:
        """
        ``POST`` a batch of enrollment mutations.

        Per-item outcomes are whatever the registry reports in the result's
        ``errors`` list, in the order it reports them.
        """
        if operation is None:
            raise ArgumentMissingError(
                "Required bulk_operation was None when calling bulk_operation"
            )
        if not isinstance(operation, BulkOperation):
            raise InvalidArgumentError(
                f"bulk_operation expects BulkOperation, got {type(operation).__name__}"
            )
        handler = _optional_handler(callback)
        request = bulk_operation_request(operation.to_payload())
        await self._dispatch(request, handler, BulkOperationResult)

    async def query_page(
        self,
        kind: ResourceKind,
        query_specification: QuerySpecification,
        *,
        page_size: int | None = None,
        continuation_token: str | None = None,
    ) -> ApiResult:
        """Fetch one page of query results; raises ``TransportError`` on failure."""
        request = query_request(
            kind,
            query_specification.to_payload(),
            continuation_token=continuation_token,
            page_size=page_size,
        )
        return await self._send(request)
