"""Credential derivation for the provisioning registry."""

from provisioning_service.core.security.sas import (
    Clock,
    create_shared_access_signature,
    credential_from_connection_string,
    parse_connection_string,
)

__all__ = [
    "Clock",
    "create_shared_access_signature",
    "credential_from_connection_string",
    "parse_connection_string",
]
