"""Pydantic schemas for Task API."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.v1.schemas.common import PaginationMeta, to_naive_utc
from domain.entities.task import Subtask, TaskPriority, TaskStatus


class SubtaskSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str = Field(..., min_length=1, max_length=200)
    completed: bool = False

    def to_entity(self) -> Subtask:
        return Subtask(title=self.title, completed=self.completed)


class AttachmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    filename: str
    url: str
    uploaded_by: UUID
    size: int
    mime_type: Optional[str] = None
    uploaded_at: datetime


class TaskCreate(BaseModel):
    """Schema for creating a Task.

    ``status`` defaults to the project's ``default_task_status``.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Design landing page",
                "priority": "high",
                "labels": ["design"],
                "due_date": "2026-03-01T17:00:00",
            }
        }
    )

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[TaskStatus] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_id: Optional[UUID] = None
    due_date: Optional[datetime] = None
    labels: list[str] = Field(default_factory=list, max_length=20)
    estimated_hours: Optional[float] = Field(None, ge=0)
    subtasks: list[SubtaskSchema] = Field(default_factory=list)

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class TaskUpdate(BaseModel):
    """Schema for updating a Task (partial).

    Send ``assignee_id`` or ``due_date`` as ``null`` to clear them.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assignee_id: Optional[UUID] = None
    due_date: Optional[datetime] = None
    labels: Optional[list[str]] = Field(None, max_length=20)
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    subtasks: Optional[list[SubtaskSchema]] = None

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class TaskPositionUpdate(BaseModel):
    """Board move: destination column and position."""

    status: TaskStatus
    position: int = Field(..., ge=0)


class TaskResponse(BaseModel):
    """Schema for Task response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    title: str
    description: Optional[str]
    status: TaskStatus
    priority: TaskPriority
    assignee_id: Optional[UUID]
    created_by: UUID
    due_date: Optional[datetime]
    labels: list[str]
    estimated_hours: Optional[float]
    actual_hours: Optional[float]
    position: int
    subtasks: list[SubtaskSchema]
    attachments: list[AttachmentResponse]
    watchers: list[UUID]
    is_archived: bool
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class TaskListResponse(BaseModel):
    data: list[TaskResponse]
    meta: PaginationMeta


class TaskBoardResponse(BaseModel):
    """Tasks of one project in board order."""

    data: list[TaskResponse]
    meta: dict[str, int] = Field(default_factory=dict)


class TaskDetailResponse(BaseModel):
    data: TaskResponse
