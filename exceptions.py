from typing import Any, Optional


class BrokerDeskError(Exception):
    """Base class for errors that carry an HTTP status and a caller-safe message."""
    status_code = 500

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(BrokerDeskError):
    status_code = 400


class AuthorizationError(BrokerDeskError):
    status_code = 401


class ForbiddenError(BrokerDeskError):
    status_code = 403


class NotFoundError(BrokerDeskError):
    status_code = 404


class ConflictError(BrokerDeskError):
    status_code = 409


class UnprocessableError(BrokerDeskError):
    """The request was well-formed but its content cannot be applied (e.g. no client code matched)."""
    status_code = 422
