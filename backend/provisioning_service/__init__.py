"""Management client for a device provisioning registry."""

from provisioning_service._version import __version__
from provisioning_service.core.errors import (
    ArgumentMissingError,
    ConfigurationMissingError,
    InvalidArgumentError,
    InvalidConfigurationError,
    PreconditionFailedError,
    ProvisioningServiceError,
    QueryExhaustedError,
    TransportError,
)
from provisioning_service.modules.enrollment import (
    BulkOperation,
    BulkOperationMode,
    BulkOperationResult,
    DeviceRegistrationStatus,
    Enrollment,
    EnrollmentGroup,
    ProvisioningServiceClient,
    QueryCursor,
    QuerySpecification,
    ServiceConfig,
)

__all__ = [
    "ArgumentMissingError",
    "BulkOperation",
    "BulkOperationMode",
    "BulkOperationResult",
    "ConfigurationMissingError",
    "DeviceRegistrationStatus",
    "Enrollment",
    "EnrollmentGroup",
    "InvalidArgumentError",
    "InvalidConfigurationError",
    "PreconditionFailedError",
    "ProvisioningServiceClient",
    "ProvisioningServiceError",
    "QueryCursor",
    "QuerySpecification",
    "QueryExhaustedError",
    "ServiceConfig",
    "TransportError",
]
