"""
Request shaping for the provisioning registry.

Pure functions: they turn a resource kind, an identifier and the fixed API
version into paths, header sets and ``ApiRequest`` values. Nothing here
touches the network.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

from provisioning_service.modules.enrollment.models import ResourceKind

API_VERSION = "2017-08-31-preview"

ACCEPT = "Accept"
CONTENT_TYPE = "Content-Type"
IF_MATCH = "If-Match"
CONTINUATION = "x-ms-continuation"
MAX_ITEM_COUNT = "x-ms-max-item-count"
ITEM_TYPE = "x-ms-item-type"

JSON_MEDIA_TYPE = "application/json"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"

# Characters left unescaped by encodeURIComponent.
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class ApiRequest:
    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None


def encode_identifier(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def _version_query_string() -> str:
    return f"?api-version={API_VERSION}"


def build_resource_path(prefix: str, identifier: str) -> str:
    """``<prefix><percent-encoded id>?api-version=<version>``."""
    return prefix + encode_identifier(identifier) + _version_query_string()


def build_query_path(prefix: str) -> str:
    return prefix + "query" + _version_query_string()


def build_collection_path(prefix: str) -> str:
    return prefix.rstrip("/") + _version_query_string()


def build_headers(*, has_body: bool, if_match: str | None = None) -> dict[str, str]:
    headers = {ACCEPT: JSON_MEDIA_TYPE}
    if has_body:
        headers[CONTENT_TYPE] = JSON_CONTENT_TYPE
    if if_match:
        headers[IF_MATCH] = if_match
    return headers


def build_query_headers(
    continuation_token: str | None = None,
    page_size: int | None = None,
) -> dict[str, str]:
    """
    Headers for one query page.

    The continuation token is replayed verbatim; the page size is sent only
    when it is a positive integer.
    """
    headers = build_headers(has_body=True)
    if continuation_token:
        headers[CONTINUATION] = continuation_token
    if isinstance(page_size, int) and not isinstance(page_size, bool) and page_size > 0:
        headers[MAX_ITEM_COUNT] = str(page_size)
    return headers


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


def create_or_update_request(
    kind: ResourceKind, identifier: str, body: dict[str, Any]
) -> ApiRequest:
    return ApiRequest(
        method="PUT",
        path=build_resource_path(kind.prefix, identifier),
        headers=build_headers(has_body=True),
        body=body,
    )


def get_request(kind: ResourceKind, identifier: str) -> ApiRequest:
    return ApiRequest(
        method="GET",
        path=build_resource_path(kind.prefix, identifier),
        headers=build_headers(has_body=False),
    )


def delete_request(
    kind: ResourceKind, identifier: str, if_match: str | None = None
) -> ApiRequest:
    return ApiRequest(
        method="DELETE",
        path=build_resource_path(kind.prefix, identifier),
        headers=build_headers(has_body=False, if_match=if_match),
    )


def bulk_operation_request(body: dict[str, Any]) -> ApiRequest:
    """Bulk mutations always target the individual enrollment collection."""
    return ApiRequest(
        method="POST",
        path=build_collection_path(ResourceKind.ENROLLMENT.prefix),
        headers=build_headers(has_body=True),
        body=body,
    )


def query_request(
    kind: ResourceKind,
    query_specification: dict[str, Any],
    *,
    continuation_token: str | None = None,
    page_size: int | None = None,
) -> ApiRequest:
    return ApiRequest(
        method="POST",
        path=build_query_path(kind.prefix),
        headers=build_query_headers(continuation_token, page_size),
        body=query_specification,
    )
