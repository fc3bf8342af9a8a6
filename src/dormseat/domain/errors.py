"""Domain error taxonomy.

Each error carries the HTTP status and a stable `kind` string that clients
can branch on. The API layer translates them in one place (api/errors.py).
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for expected, caller-visible failures."""

    status_code = 500
    kind = "Error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = 400
    kind = "ValidationError"
    default_message = "All reservation fields are required"


class WeakCredentialError(ValidationError):
    kind = "WeakCredential"
    default_message = "Password is too easy to guess"


class AuthenticationError(DomainError):
    status_code = 401
    kind = "AuthenticationError"
    default_message = "Authentication required"


class CredentialMismatchError(AuthenticationError):
    kind = "CredentialMismatch"
    default_message = "Password does not match the reservation"


class AuthorizationError(DomainError):
    status_code = 403
    kind = "AuthorizationError"
    default_message = "Admin privileges required"


class PasswordMismatchError(AuthorizationError):
    kind = "PasswordMismatch"
    default_message = "Password does not match the reservation"


class DeviceMismatchError(AuthorizationError):
    kind = "DeviceMismatch"
    default_message = "Reservation is bound to another device"


class WindowClosedError(DomainError):
    status_code = 403
    kind = "WindowClosed"
    default_message = "Reservations are not open right now"


class NotFoundError(DomainError):
    status_code = 404
    kind = "NotFound"
    default_message = "Reservation not found"


class ConflictError(DomainError):
    status_code = 409
    kind = "Conflict"
    default_message = "Reservation conflicts with an existing one"


class PlacementTakenError(ConflictError):
    kind = "PlacementTaken"
    default_message = "Seat is already reserved"


class IdentityTakenError(ConflictError):
    kind = "IdentityTaken"
    default_message = "This room number and name already hold a reservation"


class DuplicateDetectedError(ConflictError):
    """A concurrent write won the unique index between check and write."""

    kind = "DuplicateDetected"
    default_message = "Reservation was taken by a concurrent request"

    def __init__(self, conflict: str, message: str | None = None) -> None:
        self.conflict = conflict
        super().__init__(message)


class RateLimitedError(DomainError):
    status_code = 429
    kind = "RateLimited"
    default_message = "Too many requests, try again shortly"

    def __init__(self, retry_after: int, message: str | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(message)


class StoreError(DomainError):
    kind = "StoreError"
    default_message = "Server error"


class ServerMisconfiguredError(DomainError):
    kind = "ServerMisconfigured"
    default_message = "Admin password is not configured on the server"
