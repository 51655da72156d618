"""Error taxonomy shared by the services and mapped to HTTP in ``main``."""

import enum


class ServiceError(Exception):
    """Base class for expected failures raised by the service layer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthFailure(str, enum.Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    EXPIRED = "expired"
    UNVERIFIABLE = "unverifiable"


class Unauthenticated(ServiceError):
    """The bearer credential is missing, malformed, expired or unverifiable."""

    def __init__(self, reason: AuthFailure, message: str):
        super().__init__(message)
        self.reason = reason


class InvalidInput(ServiceError):
    pass


class NotFound(ServiceError):
    """Record absent or owned by someone else. The two are never told apart."""


class Conflict(ServiceError):
    """A unique constraint rejected an insert."""


class Unavailable(ServiceError):
    """A backing service (database, key server) cannot be reached."""


class ProviderError(ServiceError):
    """The identity provider's admin API rejected or failed a request."""
