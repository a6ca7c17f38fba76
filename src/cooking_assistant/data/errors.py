"""
Errors raised by the storage layer.

Lookups that simply find nothing return None; these exceptions cover the
cases a caller has to react to.
"""

from typing import Any, Optional


class RepositoryError(Exception):
    """Base class for storage errors."""


class NotFoundError(RepositoryError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id {entity_id} not found")


class DuplicateError(RepositoryError):
    """A unique field already holds this value."""

    def __init__(self, entity: str, field: str, value: Any):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f"{entity} with {field} '{value}' already exists")


class DatabaseError(RepositoryError):
    """The underlying database failed during an operation."""

    def __init__(self, operation: str, cause: Optional[Exception] = None):
        self.operation = operation
        self.cause = cause
        message = f"database error during {operation}"
        if cause is not None:
            message = f"{message} ({cause})"
        super().__init__(message)
