"""Pydantic schemas for Comment API."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from api.v1.schemas.common import PaginationMeta


class CommentCreate(BaseModel):
    """Schema for creating a Comment. Set ``parent_id`` to reply."""

    content: str = Field(..., min_length=1, max_length=2000)
    parent_id: Optional[UUID] = None
    mentions: list[UUID] = Field(default_factory=list, max_length=50)


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    mentions: Optional[list[UUID]] = Field(None, max_length=50)


class ReactionRequest(BaseModel):
    emoji: str = Field(..., min_length=1, max_length=32)


class CommentResponse(BaseModel):
    """Schema for Comment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task_id: UUID
    author_id: UUID
    parent_id: Optional[UUID]
    content: str
    mentions: list[UUID]
    reactions: dict[str, list[UUID]]
    is_edited: bool
    edited_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class CommentListResponse(BaseModel):
    data: list[CommentResponse]
    meta: PaginationMeta


class CommentDetailResponse(BaseModel):
    data: CommentResponse
