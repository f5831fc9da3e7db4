"""
Error types raised by the persistence layer and domain mutators.

- DecodeError: one entity of a stored document could not be decoded
- DocumentDecodeError: the document as a whole is unreadable (or strict decode)
- StoreIOError: the backing medium failed to read or write
- DomainValidationError: a mutator was asked to break a domain invariant
"""

from typing import List, Optional


class FitAIError(Exception):
    """Base class for all fitai errors."""


class DecodeError(FitAIError):
    """
    Failure to decode a single entity.

    Attributes:
        entity: Entity type name (e.g. "Workout")
        field: Wire field name that failed, or None when the whole entity is malformed
        reason: Human-readable cause
        path: Location of the entity in the document (e.g. "weekPrograms[0].workouts[2]")
    """

    def __init__(
        self,
        entity: str,
        field: Optional[str],
        reason: str,
        *,
        path: str = "",
    ) -> None:
        self.entity = entity
        self.field = field
        self.reason = reason
        self.path = path
        location = f"{entity}.{field}" if field else entity
        where = f" at {path}" if path else ""
        super().__init__(f"{location}{where}: {reason}")


class DocumentDecodeError(FitAIError):
    """Raised when a document cannot be decoded at all."""

    def __init__(self, message: str, errors: Optional[List[DecodeError]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class StoreIOError(FitAIError):
    """Raised when the backing medium is unavailable or a write is interrupted."""


class DomainValidationError(FitAIError, ValueError):
    """Raised by mutators when a change would violate a domain invariant."""
