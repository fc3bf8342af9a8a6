"""Reservation password policy and admin credential checks.

Provides:
- is_weak_password(): blacklist of guessable patterns
- AdminCredentials: name + shared secret presented by an admin
- verify_admin(): allow-list + shared secret check, fails closed
"""

from __future__ import annotations

import hmac
import re
from dataclasses import dataclass

from dormseat.config import Config

from .errors import ServerMisconfiguredError

_REPEATED = re.compile(r"(.)\1{3,}")

_SEQUENCES = (
    "abcdefghijklmnopqrstuvwxyz",
    "0123456789",
    "1234567890",
    "qwertyuiop",
    "asdfghjkl",
    "zxcvbnm",
)

_RUN_LENGTH = 4


def _same_class(window: str) -> bool:
    return all(c.isdigit() for c in window) or all("a" <= c <= "z" for c in window)


def _is_run(window: str) -> bool:
    steps = {ord(b) - ord(a) for a, b in zip(window, window[1:])}
    return steps == {1} or steps == {-1}


def has_sequential_run(candidate: str, length: int = _RUN_LENGTH) -> bool:
    """True if any `length`-char window is an ascending/descending run."""
    for i in range(len(candidate) - length + 1):
        window = candidate[i:i + length]
        if _same_class(window) and _is_run(window):
            return True
    return False


def is_weak_password(candidate: str) -> bool:
    """Return True if the password matches a guessable pattern.

    Checked case-insensitively: four or more repeats of one character,
    a prefix of the alphabet, a digit sequence or a keyboard row, and any
    four-character ascending or descending run of digits or letters.
    """
    lowered = candidate.casefold()
    if not lowered:
        return True
    if _REPEATED.search(lowered):
        return True
    if any(seq.startswith(lowered) for seq in _SEQUENCES):
        return True
    return has_sequential_run(lowered)


@dataclass(frozen=True)
class AdminCredentials:
    secret: str
    name: str | None = None


def verify_admin(config: Config, credentials: AdminCredentials) -> bool:
    """Check admin credentials against the configured secret and names.

    Raises:
        ServerMisconfiguredError: If no admin secret is configured.
    """
    if not config.admin_secret:
        raise ServerMisconfiguredError()

    secret_ok = hmac.compare_digest(
        credentials.secret.encode("utf-8"), config.admin_secret.encode("utf-8")
    )
    if not config.admin_names:
        return secret_ok
    return secret_ok and credentials.name in config.admin_names
