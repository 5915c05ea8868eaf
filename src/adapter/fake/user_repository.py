"""In-memory implementation of UserRepository for testing."""

import uuid
from dataclasses import replace
from datetime import datetime, timezone

from domain.model.errors import DuplicateUserError
from domain.model.user import User


class FakeUserRepository:
    def __init__(self):
        self.store: dict[str, User] = {}

    # ── write operations ─────────────────────────────────────

    def create(self, user: User) -> User:
        if self.get_by_email(user.email):
            raise DuplicateUserError('email')
        if self.get_by_username(user.username):
            raise DuplicateUserError('username')

        now = datetime.now(timezone.utc)
        stored = replace(user, id=uuid.uuid4().hex, created_at=now, updated_at=now)
        self.store[stored.id] = stored
        return replace(stored)

    def update(self, user_id: str, user: User) -> User | None:
        existing = self.store.get(user_id)
        if not existing:
            return None

        existing.first_name = user.first_name
        existing.last_name = user.last_name
        existing.is_active = user.is_active
        existing.updated_at = datetime.now(timezone.utc)
        return replace(existing)

    def delete(self, user_id: str) -> bool:
        return self.store.pop(user_id, None) is not None

    # ── read operations ──────────────────────────────────────

    def get_by_id(self, user_id: str) -> User | None:
        user = self.store.get(user_id)
        return replace(user) if user else None

    def get_by_email(self, email: str) -> User | None:
        for user in self.store.values():
            if user.email == email:
                return replace(user)
        return None

    def get_by_username(self, username: str) -> User | None:
        for user in self.store.values():
            if user.username == username:
                return replace(user)
        return None

    def list(self, offset: int, limit: int) -> tuple[list[User], int]:
        users = sorted(self.store.values(), key=lambda u: u.created_at)
        page = [replace(u) for u in users[offset:offset + limit]]
        return page, len(users)
