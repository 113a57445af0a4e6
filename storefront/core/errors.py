from __future__ import annotations

from typing import Optional


class ServiceError(Exception):
    """Base class for domain failures that map onto an HTTP status.

    ``message`` is what the client sees, so it must never carry internal
    detail. Infrastructure detail belongs in the chained ``__cause__`` and
    the server-side log.
    """

    status_code: int = 400
    message: str = "Bad request"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)
        if message is not None:
            self.message = message


class InvalidCredentials(ServiceError):
    status_code = 401
    message = "Invalid email or password"


class DuplicateUser(ServiceError):
    status_code = 409
    message = "User already exists"


class MissingToken(ServiceError):
    status_code = 401
    message = "No token provided"


class InvalidToken(ServiceError):
    """Bad signature, wrong token class, or expired."""
    status_code = 401
    message = "Invalid token"


class RevokedToken(ServiceError):
    """Signature is fine but the token store no longer holds this token."""
    status_code = 401
    message = "Invalid refresh token"


class Forbidden(ServiceError):
    status_code = 403
    message = "Forbidden"


class NotFound(ServiceError):
    status_code = 404
    message = "Not found"


class StoreUnavailable(ServiceError):
    status_code = 500
    message = "Server error"
