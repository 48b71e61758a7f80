"""
Domain errors raised by the catalog and circulation layers.

Input validation errors are not defined here: they are raised by the pydantic
schemas (`pydantic.ValidationError`) before any transaction is started.
"""

from typing import Any, Optional


class LibraryError(Exception):
    """Base class for every error raised by LibroGestion."""

    code = "LIBRARY_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(LibraryError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found", {"entity": entity, "id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(LibraryError):
    """A uniqueness rule was violated (ISBN, email, genre/publisher name...)."""

    code = "CONFLICT"


class CapacityExceededError(LibraryError):
    """No lendable copy of the book is left; the caller may reserve instead."""

    code = "CAPACITY_EXCEEDED"


class ReferentialBlockError(LibraryError):
    """Delete rejected because other rows still reference the target."""

    code = "REFERENTIAL_BLOCK"


class IntegrityViolationError(LibraryError):
    code = "INTEGRITY_VIOLATION"

    def __init__(self, rule: str, message: str):
        super().__init__(message, {"rule": rule})
        self.rule = rule


class InvalidTransitionError(LibraryError):
    code = "INVALID_TRANSITION"


class MemberNotActiveError(LibraryError):
    code = "MEMBER_NOT_ACTIVE"
