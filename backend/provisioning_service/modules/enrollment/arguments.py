"""
Argument resolution for registry operations.

Public operations accept several call shapes. Delete in particular takes
either a plain identifier or a full entity, followed by an optional entity
tag or completion handler. The functions here turn whatever was passed into
a single ``ResolvedIntent`` or raise before any request is built.

Delete rules:

* ``delete(id)``, ``delete(id, etag)``, ``delete(id, handler)`` and
  ``delete(id, etag, handler)``: the request is conditional only when an
  etag string is passed.
* ``delete(entity)`` and ``delete(entity, handler)``: the identifier is read
  from the kind's identifier field and the entity's own ``etag``, when set,
  becomes the ``If-Match`` precondition.

An entity may be a model instance or a plain mapping in wire or snake_case
form; mappings are validated into the kind's model first.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from provisioning_service.core.errors import ArgumentMissingError, InvalidArgumentError
from provisioning_service.modules.enrollment.models import (
    ProvisioningEntity,
    RegistryModel,
    ResourceKind,
)

CompletionHandler = Callable[..., Any]


@dataclass(frozen=True)
class ResolvedIntent:
    id: str
    if_match: str | None = None
    on_complete: CompletionHandler | None = None


@dataclass(frozen=True)
class ByIdentifier:
    """Delete target given as a plain identifier, optionally with an etag."""

    id: str
    etag: str | None = None


@dataclass(frozen=True)
class ByEntity:
    """Delete target given as a full entity; its own etag is authoritative."""

    entity: Any


DeleteTarget = ByIdentifier | ByEntity


def _require_handler(value: Any, position: str) -> CompletionHandler | None:
    if value is None:
        return None
    if not callable(value):
        raise InvalidArgumentError(f"The {position} argument of delete must be a callable")
    return value


def _require_identifier(kind: ResourceKind, entity: Any, operation: str) -> str:
    if not isinstance(entity, kind.model):
        raise InvalidArgumentError(
            f"{operation} on {kind.prefix} expects {kind.model.__name__}, "
            f"got {type(entity).__name__}"
        )
    identifier = kind.identifier_of(entity)
    if not identifier:
        raise InvalidArgumentError(
            f"Required property '{kind.id_field}' was empty when calling {operation}"
        )
    return identifier


def coerce_entity(kind: ResourceKind, entity: Any) -> Any:
    """Validate a plain mapping into ``kind.model``; anything else is returned as is."""
    if not isinstance(entity, Mapping):
        return entity
    try:
        return kind.model.model_validate(dict(entity))
    except ValidationError as exc:
        raise InvalidArgumentError(
            f"Mapping is not a valid {kind.model.__name__}: {exc.error_count()} error(s)"
        ) from exc


def resolve_fetch(kind: ResourceKind, identifier: Any) -> str:
    if identifier is None:
        raise ArgumentMissingError(f"An identifier is required to get {kind.prefix} records")
    if not isinstance(identifier, str) or not identifier:
        raise InvalidArgumentError(f"Identifier must be a non-empty string, got {identifier!r}")
    return identifier


def resolve_create_or_update(kind: ResourceKind, entity: ProvisioningEntity | None) -> str:
    if not kind.supports_create_or_update:
        raise InvalidArgumentError(f"{kind.prefix} records cannot be created or updated")
    if entity is None:
        raise ArgumentMissingError(
            "Required parameter entity was None when calling create_or_update"
        )
    return _require_identifier(kind, entity, "create_or_update")


def classify_delete_arguments(
    enrollment_or_id: Any,
    etag_or_callback: Any = None,
    callback: Any = None,
) -> tuple[DeleteTarget, CompletionHandler | None]:
    """Map the raw positional arguments of delete onto a tagged target."""
    if enrollment_or_id is None:
        raise ArgumentMissingError("Required parameter was None when calling delete")

    if isinstance(enrollment_or_id, str):
        if etag_or_callback is None or isinstance(etag_or_callback, str):
            return (
                ByIdentifier(enrollment_or_id, etag_or_callback),
                _require_handler(callback, "third"),
            )
        if callable(etag_or_callback):
            if callback is not None:
                raise InvalidArgumentError(
                    "delete accepts no further argument after the completion handler"
                )
            return ByIdentifier(enrollment_or_id), etag_or_callback
        raise InvalidArgumentError(
            "The second argument of delete must be an etag string or a callable"
        )

    if isinstance(enrollment_or_id, (RegistryModel, Mapping)):
        if etag_or_callback is not None and callback is not None:
            raise InvalidArgumentError(
                "delete by entity accepts only a completion handler after the entity"
            )
        handler = etag_or_callback if etag_or_callback is not None else callback
        return ByEntity(enrollment_or_id), _require_handler(handler, "second")

    raise InvalidArgumentError(
        "delete expects an identifier, an entity or a mapping, "
        f"got {type(enrollment_or_id).__name__}"
    )


def resolve_delete_target(
    kind: ResourceKind,
    target: DeleteTarget,
    on_complete: CompletionHandler | None = None,
) -> ResolvedIntent:
    if isinstance(target, ByIdentifier):
        if not target.id:
            raise InvalidArgumentError("Identifier must be a non-empty string when calling delete")
        return ResolvedIntent(target.id, target.etag or None, on_complete)
    if isinstance(target, ByEntity):
        entity = coerce_entity(kind, target.entity)
        identifier = _require_identifier(kind, entity, "delete")
        return ResolvedIntent(identifier, entity.etag or None, on_complete)
    raise InvalidArgumentError(f"Unsupported delete target: {target!r}")


def resolve_delete(
    kind: ResourceKind,
    enrollment_or_id: Any,
    etag_or_callback: Any = None,
    callback: Any = None,
) -> ResolvedIntent:
    target, on_complete = classify_delete_arguments(enrollment_or_id, etag_or_callback, callback)
    return resolve_delete_target(kind, target, on_complete)
