"""User API routes.

Endpoints:
- POST   /api/v1/users: Create a user
- GET    /api/v1/users/{user_id}: Get a user
- PUT    /api/v1/users/{user_id}: Partially update a user
- DELETE /api/v1/users/{user_id}: Delete a user
- GET    /api/v1/users: List users with page/limit pagination

Handlers are sync so FastAPI runs them in its threadpool; pymongo and bcrypt
both block.
"""

import logging

from fastapi import APIRouter, Depends, status

from api import response
from api.dependencies import get_password_hasher, get_user_repo
from api.models import CreateUserRequest, UpdateUserRequest, UserResponse
from domain.model.errors import DomainError, ValidationError
from port.user_repository import UserRepository
from services import user_service
from utils.password import PasswordHasher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    request: CreateUserRequest,
    repo: UserRepository = Depends(get_user_repo),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    """Create a new user. The password is stored only as a bcrypt hash."""
    try:
        user = user_service.create_user(
            repo,
            email=request.email,
            username=request.username,
            password=request.password,
            first_name=request.first_name,
            last_name=request.last_name,
            hasher=hasher,
        )
    except DomainError as e:
        logger.warning("Failed to create user", extra={"email": request.email, "error": str(e)})
        return response.domain_error(e, "Failed to create user")

    return response.success(
        status.HTTP_201_CREATED, "User created successfully", UserResponse.from_domain(user)
    )


@router.get("/{user_id}")
def get_user(user_id: str, repo: UserRepository = Depends(get_user_repo)):
    """Get user by ID."""
    try:
        user = user_service.get_user(repo, user_id)
    except DomainError as e:
        return response.domain_error(e, _failure_message(e, "Failed to get user"))

    return response.success(status.HTTP_200_OK, "User retrieved successfully", UserResponse.from_domain(user))


@router.put("/{user_id}")
def update_user(
    user_id: str,
    request: UpdateUserRequest,
    repo: UserRepository = Depends(get_user_repo),
):
    """Update first_name, last_name and/or is_active. Absent fields are kept."""
    try:
        user = user_service.update_user(repo, user_id, request.to_domain())
    except DomainError as e:
        return response.domain_error(e, _failure_message(e, "Failed to update user"))

    logger.info("User updated", extra={"userId": user_id, "fields": sorted(request.model_fields_set)})
    return response.success(status.HTTP_200_OK, "User updated successfully", UserResponse.from_domain(user))


@router.delete("/{user_id}")
def delete_user(user_id: str, repo: UserRepository = Depends(get_user_repo)):
    """Delete user by ID."""
    try:
        user_service.delete_user(repo, user_id)
    except DomainError as e:
        return response.domain_error(e, _failure_message(e, "Failed to delete user"))

    return response.success(status.HTTP_200_OK, "User deleted successfully")


@router.get("")
def list_users(
    page: str | None = None,
    limit: str | None = None,
    repo: UserRepository = Depends(get_user_repo),
):
    """List users. Out-of-range page/limit values are normalized, not rejected."""
    try:
        result = user_service.list_users(
            repo,
            page=_query_int(page, 1),
            limit=_query_int(limit, user_service.DEFAULT_PAGE_SIZE),
        )
    except DomainError as e:
        return response.domain_error(e, "Failed to list users")

    logger.info("Users listed", extra={"page": result.page, "limit": result.limit, "total": result.total})
    return response.paginated(status.HTTP_200_OK, "Users retrieved successfully", result)


def _query_int(value: str | None, default: int) -> int:
    """Parse an integer query value. Unparseable input becomes 0 and is normalized downstream."""
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return 0


def _failure_message(exc: DomainError, default: str) -> str:
    if isinstance(exc, ValidationError):
        return "Invalid user ID"
    return default
