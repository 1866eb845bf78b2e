"""Domain error taxonomy.

The scoring model raises nothing. Stores raise ``NotFound`` and
``InfrastructureError``; the scoring service adds ``ValidationError`` and
``InvalidArgument`` for caller input. Transport layers map them to statuses.
"""

from __future__ import annotations


class LivabilityError(Exception):
    """Base class for every error raised by this package."""


class NotFound(LivabilityError):
    """An entity required to exist is absent."""


class ValidationError(LivabilityError):
    """Caller-supplied data violates a precondition."""


class InvalidArgument(ValidationError):
    """A query argument is missing or out of range (e.g. an empty city)."""


class InfrastructureError(LivabilityError):
    """Store communication or (de)serialization failed.

    ``retryable`` is set when the operation was abandoned without touching
    store state (timeouts, contention) so the caller may safely retry.
    """

    def __init__(self, message: str, *, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable
