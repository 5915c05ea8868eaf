"""Pydantic models for API request/response."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from domain.model.user import PublicUser, UNSET, UserUpdate

# bcrypt only reads the first 72 bytes; newer releases refuse anything longer
MAX_PASSWORD_BYTES = 72


class CreateUserRequest(BaseModel):
    """Request model for user creation."""
    email: EmailStr
    username: str = Field(..., min_length=1, description="Unique public handle")
    password: str = Field(..., min_length=1, description="Plain text password, hashed before storage")
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator('password')
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode('utf-8')) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class UpdateUserRequest(BaseModel):
    """Request model for partial user update.

    Only fields present in the JSON body are applied. Sending null for a
    name clears it; is_active cannot be null.
    """
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator('is_active')
    @classmethod
    def reject_null_is_active(cls, v):
        if v is None:
            raise ValueError("is_active cannot be null")
        return v

    def to_domain(self) -> UserUpdate:
        """Convert to UserUpdate, keeping absent fields as UNSET."""
        sent = self.model_fields_set
        return UserUpdate(
            first_name=self.first_name if 'first_name' in sent else UNSET,
            last_name=self.last_name if 'last_name' in sent else UNSET,
            is_active=self.is_active if 'is_active' in sent else UNSET,
        )


class UserResponse(BaseModel):
    """Response model for user. Never carries the password hash."""
    id: str = Field(..., description="User ID")
    email: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, user: PublicUser) -> 'UserResponse':
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class Pagination(BaseModel):
    """Pagination metadata for list responses."""
    page: int
    limit: int
    total: int
    total_pages: int


class APIResponse(BaseModel):
    """Envelope for every single-object and error response."""
    success: bool
    message: str
    data: Optional[UserResponse] = None
    error: Optional[str] = None


class PaginatedResponse(BaseModel):
    """Envelope for list responses."""
    success: bool
    message: str
    data: list[UserResponse]
    pagination: Pagination
