"""Admin credential extraction from request headers.

Admins send the shared secret as `Authorization: Bearer <secret>` and,
when an admin allow-list is configured, their name in `X-Admin-Name`.
Verification itself happens in the domain (verify_admin).
"""

from __future__ import annotations

from fastapi import Depends, Request

from dormseat.domain.credentials import AdminCredentials
from dormseat.domain.errors import AuthenticationError

ADMIN_NAME_HEADER = "X-Admin-Name"


def _extract_bearer_token(request: Request) -> str | None:
    """Bearer token, None if no Authorization header.

    Raises:
        AuthenticationError: If the header is present but malformed.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Invalid authorization header")

    return parts[1]


def optional_admin(request: Request) -> AdminCredentials | None:
    """FastAPI dependency: admin credentials if supplied, else None."""
    token = _extract_bearer_token(request)
    if token is None:
        return None
    return AdminCredentials(secret=token, name=request.headers.get(ADMIN_NAME_HEADER))


def require_admin_credentials(
    credentials: AdminCredentials | None = Depends(optional_admin),
) -> AdminCredentials:
    """FastAPI dependency: admin credentials, 401 if missing."""
    if credentials is None:
        raise AuthenticationError("Authorization header required")
    return credentials


AdminDep = Depends(require_admin_credentials)
OptionalAdminDep = Depends(optional_admin)
