"""User domain models."""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime


class _Unset:
    """Marker for a field that was not sent in an update request."""

    def __repr__(self) -> str:
        return 'UNSET'


UNSET = _Unset()


@dataclass
class User:
    """Domain model representing a stored user.

    id and timestamps are assigned by the repository on create.
    """
    email: str
    username: str
    password_hash: str
    id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @staticmethod
    def create(
        email: str,
        username: str,
        password_hash: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> 'User':
        """Factory for a new, not yet persisted user."""
        return User(
            email=email,
            username=username,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            is_active=True,
        )


@dataclass(frozen=True)
class UserUpdate:
    """Partial update of the mutable user fields.

    Each field is tri-state:
    - UNSET: field was not sent, keep the stored value
    - None: clear the field (names only)
    - value: overwrite
    """
    first_name: str | None | _Unset = UNSET
    last_name: str | None | _Unset = UNSET
    is_active: bool | _Unset = UNSET

    def apply(self, user: User) -> User:
        """Return a copy of user with the present fields applied."""
        changes = {}
        if self.first_name is not UNSET:
            changes['first_name'] = self.first_name
        if self.last_name is not UNSET:
            changes['last_name'] = self.last_name
        if self.is_active is not UNSET:
            changes['is_active'] = self.is_active
        return replace(user, **changes)

    @property
    def is_empty(self) -> bool:
        return all(
            value is UNSET
            for value in (self.first_name, self.last_name, self.is_active)
        )


@dataclass(frozen=True)
class PublicUser:
    """Caller-safe projection of a User. Has no credential field."""
    id: str
    email: str
    username: str
    first_name: str | None
    last_name: str | None
    is_active: bool
    created_at: datetime | None
    updated_at: datetime | None


def to_public(user: User) -> PublicUser:
    """Project a stored User to its public shape."""
    return PublicUser(
        id=str(user.id),
        email=user.email,
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@dataclass
class UserPage:
    """One page of users plus the numbers needed for pagination metadata."""
    page: int
    limit: int
    total: int
    items: list[PublicUser] = field(default_factory=list)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)
