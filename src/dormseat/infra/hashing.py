"""One-way hashing of reservation passwords (bcrypt).

bcrypt only considers the first 72 bytes of its input, so longer
passwords are refused up front instead of being silently truncated.
"""

import bcrypt

from dormseat.observability.logging import get_logger

logger = get_logger(__name__)

MAX_PASSWORD_BYTES = 72


def password_too_long(plain: str) -> bool:
    return len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_credential(plain: str) -> str:
    """Hash a reservation password with a fresh salt.

    Raises:
        ValueError: If the password exceeds bcrypt's 72-byte limit.
    """
    if password_too_long(plain):
        raise ValueError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
    hashed = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_credential(candidate: str, stored_hash: str) -> bool:
    """Check a candidate password against a stored bcrypt hash.

    A stored value that is not a bcrypt hash never verifies.
    """
    if password_too_long(candidate):
        return False
    try:
        return bcrypt.checkpw(candidate.encode("utf-8"), stored_hash.encode("utf-8"))
    except ValueError:
        logger.warning("stored credential is not a bcrypt hash")
        return False
