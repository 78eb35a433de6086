"""
Error taxonomy for the provisioning service client.

Argument and configuration errors are raised synchronously before any
request is issued. ``TransportError`` and its subclasses describe failures
reported by the HTTP transport; the dispatcher hands them to completion
handlers instead of raising them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class ProvisioningServiceError(Exception):
    """Base class for every error raised by this package."""


class ArgumentMissingError(ProvisioningServiceError, ValueError):
    """A required argument was not supplied at all."""


class InvalidArgumentError(ProvisioningServiceError, ValueError):
    """An argument was supplied but is empty, malformed or of the wrong shape."""


class ConfigurationMissingError(ArgumentMissingError):
    """The client was constructed without a configuration."""


class InvalidConfigurationError(InvalidArgumentError):
    """The configuration lacks its host or its credential."""


class QueryExhaustedError(ProvisioningServiceError):
    """A query cursor was advanced after the registry reported its last page."""


class TransportError(ProvisioningServiceError, RuntimeError):
    """A request could not be completed or the registry rejected it."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response: httpx.Response | None = None,
        error_code: int | str | None = None,
        tracking_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self.error_code = error_code
        self.tracking_id = tracking_id


class TransportConnectionError(TransportError):
    """The registry could not be reached (DNS, TLS, socket or timeout)."""


class BadRequestError(TransportError):
    pass


class UnauthorizedError(TransportError):
    pass


class ForbiddenError(TransportError):
    pass


class NotFoundError(TransportError):
    pass


class RequestTimeoutError(TransportError):
    pass


class ConflictError(TransportError):
    pass


class PreconditionFailedError(TransportError):
    """The ``If-Match`` entity tag no longer matches the stored record."""


class ThrottlingError(TransportError):
    pass


class InternalServerError(TransportError):
    pass


class BadGatewayError(TransportError):
    pass


class ServiceUnavailableError(TransportError):
    pass


class GatewayTimeoutError(TransportError):
    pass


STATUS_ERRORS: dict[int, type[TransportError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    408: RequestTimeoutError,
    409: ConflictError,
    412: PreconditionFailedError,
    429: ThrottlingError,
    500: InternalServerError,
    502: BadGatewayError,
    503: ServiceUnavailableError,
    504: GatewayTimeoutError,
}
