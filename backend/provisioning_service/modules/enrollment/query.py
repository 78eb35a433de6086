"""
Paginated registry queries.

A ``QueryCursor`` drives one server-side cursor. The registry answers each
page with an optional ``x-ms-continuation`` header; the cursor stores that
token and replays it verbatim on the next advance. A page without a token is
the last one, after which the cursor refuses to advance.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from provisioning_service.core.errors import (
    ArgumentMissingError,
    QueryExhaustedError,
    TransportError,
)
from provisioning_service.modules.enrollment.dispatcher import invoke_handler
from provisioning_service.modules.enrollment.models import RegistryModel
from provisioning_service.modules.enrollment.request_builder import CONTINUATION, ITEM_TYPE
from provisioning_service.modules.enrollment.transport import ApiResult

PageFetcher = Callable[[str | None], Awaitable[ApiResult]]


@dataclass(frozen=True)
class QueryPage:
    items: list[Any]
    continuation_token: str | None
    item_type: str | None
    response: httpx.Response


class QueryCursor:
    """
    Resumable cursor over the pages of one registry query.

    Only one caller may advance a cursor at a time: a second advance started
    before the first completes may replay either token. Create one cursor per
    reader instead of sharing it.
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        item_model: type[RegistryModel],
        *,
        continuation_token: str | None = None,
    ) -> None:
        self._fetch_page = fetch_page
        self._item_model = item_model
        self._continuation_token = continuation_token
        self._has_more_results = True

    @property
    def has_more_results(self) -> bool:
        return self._has_more_results

    @property
    def continuation_token(self) -> str | None:
        """Token the next advance will send; save it to resume the query later."""
        return self._continuation_token

    def _parse_items(self, result: ApiResult) -> list[Any]:
        if result.body is None:
            return []
        if not isinstance(result.body, list):
            raise TransportError(
                "Registry query response is not a list",
                status_code=result.response.status_code,
                response=result.response,
            )
        try:
            return [self._item_model.model_validate(item) for item in result.body]
        except ValidationError as exc:
            raise TransportError(
                f"Registry query returned an invalid {self._item_model.__name__}",
                status_code=result.response.status_code,
                response=result.response,
            ) from exc

    async def fetch_next_page(self) -> QueryPage:
        """
        Advance the cursor by one page.

        Raises ``QueryExhaustedError`` without contacting the registry once the
        last page was returned. When the request itself fails the cursor keeps
        its position so the same page can be requested again. Once a page is
        received its continuation token is stored, even if its items then fail
        to parse, so a malformed page is reported once and then skipped.
        """
        if not self._has_more_results:
            raise QueryExhaustedError("The query has no more results")

        result = await self._fetch_page(self._continuation_token)

        token = result.response.headers.get(CONTINUATION) or None
        self._continuation_token = token
        self._has_more_results = token is not None

        items = self._parse_items(result)

        return QueryPage(
            items=items,
            continuation_token=token,
            item_type=result.response.headers.get(ITEM_TYPE),
            response=result.response,
        )

    async def next(self, callback: Callable[..., Any]) -> None:
        """Advance and report ``(error)`` or ``(None, items, raw_response)``."""
        if callback is None:
            raise ArgumentMissingError("A completion callback is required when calling next")
        if not self._has_more_results:
            raise QueryExhaustedError("The query has no more results")
        try:
            page = await self.fetch_next_page()
        except TransportError as exc:
            await invoke_handler(callback, exc)
            return
        await invoke_handler(callback, None, page.items, page.response)

    def __aiter__(self) -> AsyncIterator[QueryPage]:
        return self._iterate_pages()

    async def _iterate_pages(self) -> AsyncIterator[QueryPage]:
        while self._has_more_results:
            yield await self.fetch_next_page()
