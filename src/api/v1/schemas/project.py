"""Pydantic schemas for Project API."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from api.v1.schemas.common import PaginationMeta
from domain.entities.project import ProjectRole, ProjectSettings, ProjectStatus
from domain.entities.task import TaskStatus

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class ProjectSettingsSchema(BaseModel):
    """Per-project settings block."""

    model_config = ConfigDict(from_attributes=True)

    is_public: bool = False
    allow_member_invites: bool = False
    default_task_status: TaskStatus = TaskStatus.PENDING
    task_labels: list[str] = Field(default_factory=list, max_length=50)

    def to_entity(self) -> ProjectSettings:
        return ProjectSettings(
            is_public=self.is_public,
            allow_member_invites=self.allow_member_invites,
            default_task_status=self.default_task_status.value,
            task_labels=list(self.task_labels),
        )


class ProjectCreate(BaseModel):
    """Schema for creating a Project."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Website relaunch",
                "description": "Q3 marketing site",
                "color": "#3B82F6",
            }
        }
    )

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    settings: Optional[ProjectSettingsSchema] = None


class ProjectUpdate(BaseModel):
    """Schema for updating a Project (all fields optional)."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    status: Optional[ProjectStatus] = None
    settings: Optional[ProjectSettingsSchema] = None


class ProjectMemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    role: ProjectRole
    joined_at: datetime


class ProjectResponse(BaseModel):
    """Schema for Project response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str]
    color: str
    status: ProjectStatus
    owner_id: UUID
    members: list[ProjectMemberResponse]
    settings: ProjectSettingsSchema
    created_at: datetime
    updated_at: datetime


class ProjectStats(BaseModel):
    total_tasks: int
    tasks_by_status: dict[str, int]


class ProjectDetail(ProjectResponse):
    """Project plus task statistics."""

    stats: ProjectStats


class ProjectListResponse(BaseModel):
    data: list[ProjectResponse]
    meta: PaginationMeta


class ProjectDetailResponse(BaseModel):
    data: ProjectResponse


class ProjectWithStatsResponse(BaseModel):
    data: ProjectDetail


class AddMemberRequest(BaseModel):
    """Owner cannot be granted; the API answers 400 INVALID_ROLE."""

    user_id: UUID
    role: ProjectRole = ProjectRole.MEMBER


class UpdateMemberRoleRequest(BaseModel):
    role: ProjectRole


class ProjectMemberDetailResponse(BaseModel):
    data: ProjectMemberResponse


class ProjectMemberListResponse(BaseModel):
    data: list[ProjectMemberResponse]
    meta: dict[str, int] = Field(default_factory=dict)
