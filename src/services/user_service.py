"""User service: create, read, update, delete and list users.

Pure business logic with no HTTP dependencies.
Raises domain errors that route handlers map to HTTP status codes.
Every returned user goes through to_public(), so password hashes never leave
this module.
"""

import logging

from domain.model.errors import DomainError, DuplicateUserError, NotFoundError, ValidationError
from domain.model.user import PublicUser, User, UserPage, UserUpdate, to_public
from port.user_repository import UserRepository, UserRepositoryError
from utils.password import PasswordHasher, hash_password

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def _fetch_existing(repo: UserRepository, user_id: str) -> User:
    """Load a user or raise NotFoundError / DomainError."""
    if not user_id:
        raise ValidationError("User ID is required")
    try:
        user = repo.get_by_id(user_id)
    except UserRepositoryError as e:
        logger.error("Failed to get user", extra={"userId": user_id, "error": str(e)})
        raise DomainError("failed to get user") from e
    if user is None:
        raise NotFoundError("user not found")
    return user


def _ensure_unique(repo: UserRepository, email: str, username: str) -> None:
    try:
        if repo.get_by_email(email):
            raise DuplicateUserError('email')
        if repo.get_by_username(username):
            raise DuplicateUserError('username')
    except UserRepositoryError as e:
        logger.error("Failed to check user uniqueness", extra={"email": email, "error": str(e)})
        raise DomainError("failed to create user") from e


def create_user(
    repo: UserRepository,
    email: str,
    username: str,
    password: str,
    first_name: str | None = None,
    last_name: str | None = None,
    hasher: PasswordHasher = hash_password,
) -> PublicUser:
    """Create a new active user.

    Raises:
        DuplicateUserError: email or username already taken
        DomainError: password hashing or storage failed
    """
    _ensure_unique(repo, email, username)

    try:
        password_hash = hasher(password)
    except (ValueError, TypeError) as e:
        logger.error("Failed to hash password", extra={"email": email, "error": str(e)})
        raise DomainError("failed to process password") from e

    user = User.create(
        email=email,
        username=username,
        password_hash=password_hash,
        first_name=first_name,
        last_name=last_name,
    )

    try:
        created = repo.create(user)
    except UserRepositoryError as e:
        logger.error("Failed to create user", extra={"email": email, "error": str(e)})
        raise DomainError("failed to create user") from e

    logger.info("User registered", extra={"userId": created.id, "email": email})
    return to_public(created)


def get_user(repo: UserRepository, user_id: str) -> PublicUser:
    """Fetch a single user.

    Raises:
        ValidationError: empty user_id
        NotFoundError: no such user
        DomainError: storage failure
    """
    return to_public(_fetch_existing(repo, user_id))


def update_user(repo: UserRepository, user_id: str, update: UserUpdate) -> PublicUser:
    """Apply a partial update. Fields absent from update are left as stored."""
    user = _fetch_existing(repo, user_id)
    merged = update.apply(user)

    try:
        stored = repo.update(user_id, merged)
    except UserRepositoryError as e:
        logger.error("Failed to update user", extra={"userId": user_id, "error": str(e)})
        raise DomainError("failed to update user") from e

    # Deleted between the read and the write
    if stored is None:
        raise NotFoundError("user not found")
    return to_public(stored)


def delete_user(repo: UserRepository, user_id: str) -> None:
    """Delete a user permanently."""
    _fetch_existing(repo, user_id)

    try:
        deleted = repo.delete(user_id)
    except UserRepositoryError as e:
        logger.error("Failed to delete user", extra={"userId": user_id, "error": str(e)})
        raise DomainError("failed to delete user") from e

    if not deleted:
        raise NotFoundError("user not found")
    logger.info("User deleted", extra={"userId": user_id})


def normalize_page(page: int, limit: int) -> tuple[int, int]:
    """Clamp page to >= 1 and replace an out-of-range limit with the default."""
    if page < 1:
        page = 1
    if limit < 1 or limit > MAX_PAGE_SIZE:
        limit = DEFAULT_PAGE_SIZE
    return page, limit


def list_users(repo: UserRepository, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> UserPage:
    """Return one page of users in creation order."""
    page, limit = normalize_page(page, limit)
    result = UserPage(page=page, limit=limit, total=0)

    try:
        users, total = repo.list(result.offset, limit)
    except UserRepositoryError as e:
        logger.error("Failed to list users", extra={"page": page, "limit": limit, "error": str(e)})
        raise DomainError("failed to list users") from e

    result.total = total
    result.items = [to_public(u) for u in users]
    return result
