"""Pydantic schemas for User API."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from api.v1.schemas.common import PaginationMeta


class UserResponse(BaseModel):
    """Schema for a user's own or admin-visible profile."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "email": "jane@example.com",
                "name": "Jane Doe",
                "avatar_url": None,
                "roles": ["member"],
                "is_active": True,
                "last_login_at": "2026-02-01T10:00:00",
                "created_at": "2026-02-01T10:00:00",
                "updated_at": "2026-02-01T10:00:00",
            }
        },
    )

    id: UUID
    email: str
    name: str
    avatar_url: Optional[str] = None
    roles: list[str]
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class PublicUserResponse(BaseModel):
    """Fields of another user visible to any authenticated caller."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    avatar_url: Optional[str] = None


class UserUpdate(BaseModel):
    """Schema for updating the current user's profile."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    avatar_url: Optional[str] = Field(None, max_length=500)


class UserDetailResponse(BaseModel):
    data: UserResponse


class PublicUserDetailResponse(BaseModel):
    data: PublicUserResponse


class UserListResponse(BaseModel):
    data: list[UserResponse]
    meta: PaginationMeta
