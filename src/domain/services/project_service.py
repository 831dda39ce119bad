"""Project service layer: project lifecycle and membership."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import UUID

import structlog

from core.exceptions import (
    CannotModifyOwnerError,
    InvalidRoleError,
    MemberNotFoundError,
    ProjectNotFoundError,
    UserNotFoundError,
)
from domain.entities.activity import Actions, EntityTypes, RequestContext
from domain.entities.project import (
    Capability,
    Project,
    ProjectMember,
    ProjectRole,
    ProjectSettings,
    ProjectStatus,
)
from domain.repositories.broadcaster import IRealtimeBroadcaster, RealtimeEvents
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import load_project
from domain.services.activity_service import ActivityService

logger = structlog.get_logger()


def _refuse_owner(project: Project, target_user_id: UUID) -> None:
    if target_user_id == project.owner_id:
        raise CannotModifyOwnerError(str(project.id))


@dataclass
class ProjectOverview:
    """A project together with its task statistics."""

    project: Project
    task_counts: dict[str, int] = field(default_factory=dict)

    @property
    def total_tasks(self) -> int:
        return sum(self.task_counts.values())


def _snapshot(project: Project) -> dict[str, Any]:
    return {
        "name": project.name,
        "description": project.description,
        "color": project.color,
        "status": project.status.value,
        "settings": project.settings.to_dict(),
    }


class ProjectService:
    """Service layer for Project business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        activity_service: Optional[ActivityService] = None,
        broadcaster: Optional[IRealtimeBroadcaster] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._activity = activity_service
        self._broadcaster = broadcaster

    async def create(
        self,
        user_id: UUID,
        name: str,
        description: str | None = None,
        color: str | None = None,
        settings: ProjectSettings | None = None,
        context: RequestContext | None = None,
    ) -> Project:
        """Create a project. The creator becomes owner and first member."""
        async with self._uow_factory() as uow:
            project = Project(
                name=name,
                owner_id=user_id,
                description=description,
                settings=settings or ProjectSettings(),
            )
            if color:
                project.color = color
            project.add_member(user_id, ProjectRole.OWNER)

            created = await uow.projects.create(project)

            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=created.id,
                    actor_id=user_id,
                    action=Actions.PROJECT_CREATED,
                    entity_type=EntityTypes.PROJECT,
                    entity_id=created.id,
                    metadata={"name": created.name},
                    context=context,
                )

            await uow.commit()

        logger.info("project_created", project_id=str(created.id), owner_id=str(user_id))
        return created

    async def list_for_user(
        self,
        user_id: UUID,
        status: ProjectStatus | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Project], int]:
        """Projects the user owns or belongs to. Returns (page, total)."""
        async with self._uow_factory() as uow:
            return await uow.projects.list_for_user(  # type: ignore[no-any-return]
                user_id, status=status, offset=(page - 1) * limit, limit=limit
            )

    async def get(self, project_id: UUID, user_id: UUID) -> ProjectOverview:
        """Get a project with task statistics. Requires membership."""
        async with self._uow_factory() as uow:
            project = await load_project(uow, project_id, user_id)
            counts = await uow.tasks.count_by_status(project_id)
            return ProjectOverview(project=project, task_counts=counts)

    async def is_member(self, project_id: UUID, user_id: UUID) -> bool:
        """Membership check that never raises (used by the socket layer)."""
        async with self._uow_factory() as uow:
            project = await uow.projects.get(project_id)
            return bool(project and project.is_member(user_id))

    async def update(
        self,
        project_id: UUID,
        user_id: UUID,
        name: str | None = None,
        description: str | None = None,
        color: str | None = None,
        status: ProjectStatus | None = None,
        settings: ProjectSettings | None = None,
        context: RequestContext | None = None,
    ) -> Project:
        """Update project fields. Requires can_edit."""
        async with self._uow_factory() as uow:
            project = await load_project(uow, project_id, user_id, Capability.EDIT)
            old_state = _snapshot(project)

            if name is not None:
                project.name = name
            if description is not None:
                project.description = description
            if color is not None:
                project.color = color
            if status is not None:
                project.status = status
            if settings is not None:
                project.settings = settings

            project.touch()
            updated = await uow.projects.update(project)

            if self._activity:
                changes = ActivityService.compute_diff(old_state, _snapshot(updated))
                if changes:
                    await self._activity.log(
                        uow=uow,
                        project_id=project_id,
                        actor_id=user_id,
                        action=Actions.PROJECT_UPDATED,
                        entity_type=EntityTypes.PROJECT,
                        entity_id=project_id,
                        changes=changes,
                        context=context,
                    )

            await uow.commit()

        self._publish(RealtimeEvents.PROJECT_UPDATED, {"project": updated}, project_id)
        return updated

    async def delete(
        self, project_id: UUID, user_id: UUID, context: RequestContext | None = None
    ) -> None:
        """Delete a project with its tasks and comments. Requires can_delete."""
        async with self._uow_factory() as uow:
            project = await load_project(uow, project_id, user_id, Capability.DELETE)

            # Logged before the delete; activity rows have no FK to projects
            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=project_id,
                    actor_id=user_id,
                    action=Actions.PROJECT_DELETED,
                    entity_type=EntityTypes.PROJECT,
                    entity_id=project_id,
                    metadata={"name": project.name},
                    context=context,
                )

            deleted = await uow.projects.delete(project_id)
            if not deleted:
                raise ProjectNotFoundError(str(project_id))
            await uow.commit()

        logger.info("project_deleted", project_id=str(project_id), actor_id=str(user_id))
        self._publish(RealtimeEvents.PROJECT_DELETED, {"project_id": project_id}, project_id)
        if self._broadcaster:
            self._broadcaster.evict(project_id)

    # --- Membership ---

    async def get_members(self, project_id: UUID, user_id: UUID) -> list[ProjectMember]:
        """Members of a project, owner first. Requires membership."""
        async with self._uow_factory() as uow:
            project = await load_project(uow, project_id, user_id)

        members = list(project.members)
        if project.find_member(project.owner_id) is None:
            members.insert(
                0,
                ProjectMember(
                    user_id=project.owner_id,
                    role=ProjectRole.OWNER,
                    joined_at=project.created_at,
                ),
            )
        return members

    async def add_member(
        self,
        project_id: UUID,
        user_id: UUID,
        target_user_id: UUID,
        role: ProjectRole = ProjectRole.MEMBER,
        context: RequestContext | None = None,
    ) -> ProjectMember:
        """Add (or re-role) a member. Requires can_invite.

        The owner role cannot be granted and the owner's own entry cannot
        be touched; the target user must exist and be active.
        """
        if role == ProjectRole.OWNER:
            raise InvalidRoleError(role.value)

        async with self._uow_factory() as uow:
            project = await load_project(uow, project_id, user_id, Capability.INVITE)
            _refuse_owner(project, target_user_id)

            target = await uow.users.get(target_user_id)
            if not target or not target.is_active:
                raise UserNotFoundError(str(target_user_id))

            member = project.add_member(target_user_id, role)
            project.touch()
            await uow.projects.update(project)

            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=project_id,
                    actor_id=user_id,
                    action=Actions.PROJECT_MEMBER_ADDED,
                    entity_type=EntityTypes.MEMBER,
                    entity_id=target_user_id,
                    metadata={"role": role.value},
                    context=context,
                )

            await uow.commit()

        logger.info(
            "project_member_added",
            project_id=str(project_id),
            user_id=str(target_user_id),
            role=role.value,
        )
        self._publish(
            RealtimeEvents.MEMBER_ADDED,
            {"project_id": project_id, "member": member},
            project_id,
            user_ids=[target_user_id],
        )
        return member

    async def remove_member(
        self,
        project_id: UUID,
        user_id: UUID,
        target_user_id: UUID,
        context: RequestContext | None = None,
    ) -> None:
        """Remove a member entry. Requires can_invite."""
        async with self._uow_factory() as uow:
            project = await load_project(uow, project_id, user_id, Capability.INVITE)
            _refuse_owner(project, target_user_id)

            existing = project.find_member(target_user_id)
            if existing is None:
                raise MemberNotFoundError(str(target_user_id))
            old_role = existing.role.value

            project.remove_member(target_user_id)
            project.touch()
            await uow.projects.update(project)

            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=project_id,
                    actor_id=user_id,
                    action=Actions.PROJECT_MEMBER_REMOVED,
                    entity_type=EntityTypes.MEMBER,
                    entity_id=target_user_id,
                    metadata={"role": old_role},
                    context=context,
                )

            await uow.commit()

        self._publish(
            RealtimeEvents.MEMBER_REMOVED,
            {"project_id": project_id, "user_id": target_user_id},
            project_id,
            user_ids=[target_user_id],
        )
        if self._broadcaster:
            self._broadcaster.evict(project_id, user_ids=[target_user_id])

    async def update_member_role(
        self,
        project_id: UUID,
        user_id: UUID,
        target_user_id: UUID,
        role: ProjectRole,
        context: RequestContext | None = None,
    ) -> ProjectMember:
        """Change a member's role. Requires can_invite."""
        if role == ProjectRole.OWNER:
            raise InvalidRoleError(role.value)

        async with self._uow_factory() as uow:
            project = await load_project(uow, project_id, user_id, Capability.INVITE)
            _refuse_owner(project, target_user_id)

            member = project.find_member(target_user_id)
            if member is None:
                raise MemberNotFoundError(str(target_user_id))
            old_role = member.role.value

            project.update_member_role(target_user_id, role)
            project.touch()
            await uow.projects.update(project)

            if self._activity:
                await self._activity.log(
                    uow=uow,
                    project_id=project_id,
                    actor_id=user_id,
                    action=Actions.PROJECT_MEMBER_ROLE_CHANGED,
                    entity_type=EntityTypes.MEMBER,
                    entity_id=target_user_id,
                    changes={"role": {"old": old_role, "new": role.value}},
                    context=context,
                )

            await uow.commit()

        self._publish(
            RealtimeEvents.MEMBER_ROLE_CHANGED,
            {"project_id": project_id, "member": member},
            project_id,
        )
        return member

    def _publish(
        self,
        event: str,
        data: dict[str, Any],
        project_id: UUID,
        user_ids: list[UUID] | None = None,
    ) -> None:
        if self._broadcaster:
            self._broadcaster.publish(event, data, project_id=project_id, user_ids=user_ids or [])
