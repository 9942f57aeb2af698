"""Failure taxonomy shared by the services and the HTTP layer."""


class PortalError(Exception):
    """Base class for every expected failure of a portal operation."""

    code = "error"

    def __init__(self, detail: str = "Operation failed"):
        super().__init__(detail)
        self.detail = detail


class ValidationError(PortalError):
    """Malformed or missing field, detected before any mutation."""

    code = "validation_error"


class ConflictError(PortalError):
    """Uniqueness violation or overlapping slot."""

    code = "conflict"


class StateError(PortalError):
    """Invalid status transition or unavailable slot."""

    code = "invalid_state"


class NotFoundError(PortalError):
    code = "not_found"


class AuthenticationFailed(PortalError):
    code = "authentication_failed"

    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(detail)


class InfrastructureError(PortalError):
    """The record store could not be read or written."""

    code = "storage_unavailable"

    def __init__(self, detail: str = "Operation failed, please retry"):
        super().__init__(detail)
