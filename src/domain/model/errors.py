"""Domain-level exceptions.

Services raise these errors to express business rule violations.
Route handlers catch them and map to appropriate HTTP status codes.

A bare DomainError means an internal failure that is not the caller's fault.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class NotFoundError(DomainError):
    """Requested entity does not exist."""


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""


class ValidationError(DomainError):
    """Input violates a business validation rule."""


class DuplicateUserError(DuplicateError):
    """A user with the same email or username already exists."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"user with this {field} already exists")
