"""
Pydantic models for provisioning registry payloads.

Field names use snake_case locally and are serialized to the registry's
camelCase wire format via aliases. Unknown wire fields are kept so that
records round-trip through the client without losing provisioning metadata.
Enumerated registry values (status, attestation type) are open strings;
values outside the documented set parse unchanged.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RegistryModel(BaseModel):
    """Base for every registry payload."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the registry's JSON request body."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ---------------------------------------------------------------------------
# Attestation
# ---------------------------------------------------------------------------


class TpmAttestation(RegistryModel):
    """TPM endorsement and storage root keys."""

    endorsement_key: str = Field(alias="endorsementKey")
    storage_root_key: str | None = Field(default=None, alias="storageRootKey")


class AttestationMechanism(RegistryModel):
    """How a device proves its identity, e.g. ``tpm`` or ``x509``."""

    type: str
    tpm: TpmAttestation | None = None
    x509: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Registration status
# ---------------------------------------------------------------------------


class DeviceRegistrationStatus(RegistryModel):
    """Registration state of a single device, as recorded by the registry."""

    registration_id: str | None = Field(default=None, alias="registrationId")
    etag: str | None = None
    device_id: str | None = Field(default=None, alias="deviceId")
    assigned_hub: str | None = Field(default=None, alias="assignedHub")
    # unassigned, assigning, assigned, failed or disabled
    status: str | None = None
    generation_id: str | None = Field(default=None, alias="generationId")
    error_code: int | None = Field(default=None, alias="errorCode")
    error_message: str | None = Field(default=None, alias="errorMessage")
    created_date_time_utc: datetime | None = Field(default=None, alias="createdDateTimeUtc")
    last_updated_date_time_utc: datetime | None = Field(
        default=None, alias="lastUpdatedDateTimeUtc"
    )


# ---------------------------------------------------------------------------
# Enrollments
# ---------------------------------------------------------------------------


class Enrollment(RegistryModel):
    """Individual enrollment of one device."""

    registration_id: str | None = Field(default=None, alias="registrationId")
    etag: str | None = None
    device_id: str | None = Field(default=None, alias="deviceId")
    registration_state: DeviceRegistrationStatus | None = Field(
        default=None, alias="registrationState"
    )
    attestation: AttestationMechanism | None = None
    iot_hub_host_name: str | None = Field(default=None, alias="iotHubHostName")
    initial_twin: dict[str, Any] | None = Field(default=None, alias="initialTwin")
    # "enabled" or "disabled"
    provisioning_status: str | None = Field(default=None, alias="provisioningStatus")
    created_date_time_utc: datetime | None = Field(default=None, alias="createdDateTimeUtc")
    last_updated_date_time_utc: datetime | None = Field(
        default=None, alias="lastUpdatedDateTimeUtc"
    )


class EnrollmentGroup(RegistryModel):
    """Enrollment shared by every device presenting the group's attestation."""

    enrollment_group_id: str | None = Field(default=None, alias="enrollmentGroupId")
    etag: str | None = None
    attestation: AttestationMechanism | None = None
    iot_hub_host_name: str | None = Field(default=None, alias="iotHubHostName")
    initial_twin: dict[str, Any] | None = Field(default=None, alias="initialTwin")
    # "enabled" or "disabled"
    provisioning_status: str | None = Field(default=None, alias="provisioningStatus")
    created_date_time_utc: datetime | None = Field(default=None, alias="createdDateTimeUtc")
    last_updated_date_time_utc: datetime | None = Field(
        default=None, alias="lastUpdatedDateTimeUtc"
    )


# ---------------------------------------------------------------------------
# Bulk operations
# ---------------------------------------------------------------------------


class BulkOperationMode(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    UPDATE_IF_MATCH_ETAG = "updateIfMatchETag"
    DELETE = "delete"


class BulkOperation(RegistryModel):
    """Ordered batch of individual enrollment mutations sharing one mode."""

    mode: BulkOperationMode
    enrollments: list[Enrollment] = Field(default_factory=list)


class DeviceRegistrationOperationError(RegistryModel):
    registration_id: str | None = Field(default=None, alias="registrationId")
    error_code: int | None = Field(default=None, alias="errorCode")
    error_status: str | None = Field(default=None, alias="errorStatus")


class BulkOperationResult(RegistryModel):
    """Outcome of a bulk operation; ``errors`` follows the submission order."""

    is_successful: bool = Field(alias="isSuccessful")
    errors: list[DeviceRegistrationOperationError] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class QuerySpecification(RegistryModel):
    """SQL-like registry query, e.g. ``SELECT * FROM enrollments``."""

    query: str


# ---------------------------------------------------------------------------
# Resource kinds
# ---------------------------------------------------------------------------

ProvisioningEntity = Enrollment | EnrollmentGroup | DeviceRegistrationStatus


class ResourceKind(Enum):
    """
    The three record types held by the registry.

    Each kind is bound to a URL path prefix, to the identifier field read
    from its entities and to its entity model.
    """

    ENROLLMENT = "enrollment"
    ENROLLMENT_GROUP = "enrollmentGroup"
    REGISTRATION_STATUS = "registrationStatus"

    @property
    def prefix(self) -> str:
        return _PREFIXES[self]

    @property
    def id_field(self) -> str:
        return _ID_FIELDS[self]

    @property
    def model(self) -> type[ProvisioningEntity]:
        return _MODELS[self]

    @property
    def supports_create_or_update(self) -> bool:
        return self is not ResourceKind.REGISTRATION_STATUS

    def identifier_of(self, entity: ProvisioningEntity) -> str | None:
        """Read this kind's identifier field from ``entity``."""
        return getattr(entity, self.id_field, None)


_PREFIXES: dict[ResourceKind, str] = {
    ResourceKind.ENROLLMENT: "/enrollments/",
    ResourceKind.ENROLLMENT_GROUP: "/enrollmentGroups/",
    ResourceKind.REGISTRATION_STATUS: "/registrations/",
}

_ID_FIELDS: dict[ResourceKind, str] = {
    ResourceKind.ENROLLMENT: "registration_id",
    ResourceKind.ENROLLMENT_GROUP: "enrollment_group_id",
    ResourceKind.REGISTRATION_STATUS: "registration_id",
}

_MODELS: dict[ResourceKind, type[ProvisioningEntity]] = {
    ResourceKind.ENROLLMENT: Enrollment,
    ResourceKind.ENROLLMENT_GROUP: EnrollmentGroup,
    ResourceKind.REGISTRATION_STATUS: DeviceRegistrationStatus,
}
