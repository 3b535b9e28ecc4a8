"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InvalidTransitionError(ValidationError):
    """The requested (current, new) status pair is not an allowed edge."""


class InsufficientInventoryError(ValidationError):
    """One or more outbound movements exceed the available stock."""

    def __init__(self, message: str, issues: list | None = None) -> None:
        super().__init__(message)
        self.issues = list(issues or [])


class StorageError(DomainException):
    """The backing store could not be read or written.

    Aborts the whole operation; the caller is expected to retry.
    """


class ConcurrentModificationError(StorageError):
    """A record changed underneath a read-modify-write cycle."""
