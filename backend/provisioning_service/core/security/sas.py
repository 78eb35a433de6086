"""
Shared access signature (SAS) credentials for the provisioning registry.

A connection string of the form
``HostName=<host>;SharedAccessKeyName=<policy>;SharedAccessKey=<base64 key>``
is turned into a time-bound token signed with HMAC-SHA256. The current time
is read through an injectable clock so that derivation is deterministic
under test.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import time
from collections.abc import Callable
from urllib.parse import quote

from provisioning_service.core.errors import ArgumentMissingError, InvalidArgumentError

Clock = Callable[[], float]

HOST_NAME = "HostName"
SHARED_ACCESS_KEY_NAME = "SharedAccessKeyName"
SHARED_ACCESS_KEY = "SharedAccessKey"

_REQUIRED_FIELDS = (HOST_NAME, SHARED_ACCESS_KEY_NAME, SHARED_ACCESS_KEY)


def encode_uri_component_strict(value: str) -> str:
    """Percent-encode everything except ``A-Z a-z 0-9 - _ . ~``."""
    return quote(value, safe="-_.~")


def parse_connection_string(value: str | None) -> dict[str, str]:
    """Split a ``key=value;key=value`` connection string into its fields."""
    if not value:
        raise ArgumentMissingError(f"Connection string cannot be {value!r}")

    fields: dict[str, str] = {}
    for segment in value.split(";"):
        if not segment.strip():
            continue
        key, sep, field_value = segment.partition("=")
        if not sep or not key.strip():
            raise InvalidArgumentError(f"Malformed connection string segment: {key.strip()!r}")
        fields[key.strip()] = field_value.strip()

    missing = [name for name in _REQUIRED_FIELDS if not fields.get(name)]
    if missing:
        raise InvalidArgumentError(
            f"Connection string is missing required field(s): {', '.join(missing)}"
        )
    return fields


def _sign(key: str, string_to_sign: str) -> str:
    try:
        secret = base64.b64decode(key, validate=True)
    except binascii.Error as exc:
        raise InvalidArgumentError("SharedAccessKey is not valid base64") from exc
    digest = hmac.new(secret, string_to_sign.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def create_shared_access_signature(
    resource_uri: str,
    key_name: str | None,
    key: str,
    expiry: int,
) -> str:
    """
    Build a ``SharedAccessSignature`` token for ``resource_uri``.

    The signed string is the encoded resource URI and the expiry (seconds
    since the epoch) separated by a newline.
    """
    encoded_uri = encode_uri_component_strict(resource_uri)
    signature = _sign(key, f"{encoded_uri}\n{expiry}")
    token = (
        f"SharedAccessSignature sr={encoded_uri}"
        f"&sig={encode_uri_component_strict(signature)}"
        f"&se={expiry}"
    )
    if key_name:
        token += f"&skn={encode_uri_component_strict(key_name)}"
    return token


def credential_from_connection_string(
    value: str | None,
    *,
    ttl_seconds: int,
    clock: Clock = time.time,
) -> tuple[str, str]:
    """Return ``(host, credential)`` derived from a connection string."""
    fields = parse_connection_string(value)
    host = fields[HOST_NAME]
    expiry = int(clock()) + ttl_seconds
    credential = create_shared_access_signature(
        host,
        fields[SHARED_ACCESS_KEY_NAME],
        fields[SHARED_ACCESS_KEY],
        expiry,
    )
    return host, credential
