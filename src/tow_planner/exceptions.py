from __future__ import annotations

from tow_planner.services.types import ErrorKind, ServiceError


class TowPlannerError(Exception):
    """Base exception for trip planning errors."""

    kind = ErrorKind.PROVIDER_ERROR

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status

    def to_error(self) -> ServiceError:
        return ServiceError(kind=self.kind, message=str(self), status=self.status)


class LocationNotFoundError(TowPlannerError):
    """Raised when a place name cannot be resolved to coordinates."""

    kind = ErrorKind.NOT_FOUND


class NoRouteFoundError(TowPlannerError):
    """Raised when a drivable route cannot be generated."""

    kind = ErrorKind.NO_ROUTE


class InvalidLocationError(TowPlannerError):
    """Raised when coordinates fall outside the routable network."""

    kind = ErrorKind.INVALID_LOCATION


class ExternalServiceError(TowPlannerError):
    """Raised when an upstream API returns an error or a malformed body."""

    kind = ErrorKind.PROVIDER_ERROR


class ProviderNetworkError(TowPlannerError):
    """Raised when an upstream API cannot be reached."""

    kind = ErrorKind.NETWORK_ERROR


class ProviderTimeoutError(ProviderNetworkError):
    """Raised when an upstream API does not answer in time."""

    kind = ErrorKind.TIMEOUT


class MissingCredentialError(TowPlannerError):
    """Raised when a provider requires an API key that is not configured."""

    kind = ErrorKind.MISSING_CREDENTIAL
