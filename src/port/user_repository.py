from typing import Protocol
from domain.model.user import User


class UserRepositoryError(Exception):
    """Storage failure that is not a missing record."""


class UserRepository(Protocol):
    """Protocol defining the interface for user data access.

    Not-found is signalled by None/False. Any other storage failure
    raises UserRepositoryError.
    """
    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        ...

    def get_by_email(self, email: str) -> User | None:
        """Find a user by email. Return User or None if not found."""
        ...

    def get_by_username(self, username: str) -> User | None:
        """Find a user by username. Return User or None if not found."""
        ...

    def create(self, user: User) -> User:
        """Persist a new user, assigning id and timestamps.

        Raises DuplicateUserError if email or username is already taken.
        """
        ...

    def update(self, user_id: str, user: User) -> User | None:
        """Overwrite the mutable fields of a user. Return the stored User or None if not found."""
        ...

    def delete(self, user_id: str) -> bool:
        """Delete a user. Return False if there was nothing to delete."""
        ...

    def list(self, offset: int, limit: int) -> tuple[list[User], int]:
        """Return one page of users in creation order and the total count."""
        ...
