"""Enrollment, enrollment group and registration status management."""

from provisioning_service.modules.enrollment.client import ProvisioningServiceClient
from provisioning_service.modules.enrollment.models import (
    AttestationMechanism,
    BulkOperation,
    BulkOperationMode,
    BulkOperationResult,
    DeviceRegistrationOperationError,
    DeviceRegistrationStatus,
    Enrollment,
    EnrollmentGroup,
    QuerySpecification,
    ResourceKind,
    TpmAttestation,
)
from provisioning_service.modules.enrollment.query import QueryCursor, QueryPage
from provisioning_service.modules.enrollment.transport import RestApiClient, ServiceConfig

__all__ = [
    "AttestationMechanism",
    "BulkOperation",
    "BulkOperationMode",
    "BulkOperationResult",
    "DeviceRegistrationOperationError",
    "DeviceRegistrationStatus",
    "Enrollment",
    "EnrollmentGroup",
    "ProvisioningServiceClient",
    "QueryCursor",
    "QueryPage",
    "QuerySpecification",
    "ResourceKind",
    "RestApiClient",
    "ServiceConfig",
    "TpmAttestation",
]
