from __future__ import annotations


class FingerprintError(Exception):
    """Base class for errors raised by the correlation engine."""


class InvalidArgument(FingerprintError):
    """Malformed or missing caller input."""


class NotFound(FingerprintError):
    """A referenced user or entity does not exist."""


class Conflict(FingerprintError):
    """Lost a race on a unique key. Recovered internally, never surfaced."""


def require(value, what: str) -> str:
    """Reject missing or whitespace-only input."""
    if not (value or "").strip():
        raise InvalidArgument(f"{what} is required")
    return value
