"""Shared project access checks for the service layer."""

from uuid import UUID

from core.exceptions import InsufficientPermissionsError, NotAMemberError, ProjectNotFoundError
from domain.entities.project import Capability, Project
from domain.repositories.unit_of_work import IUnitOfWork


def require_access(
    project: Project, user_id: UUID, capability: Capability | None = None
) -> None:
    """Membership first, then the capability (if one is required)."""
    if not project.is_member(user_id):
        raise NotAMemberError(str(project.id))
    if capability is not None and not project.has_permission(user_id, capability):
        raise InsufficientPermissionsError(capability.value)


async def load_project(
    uow: IUnitOfWork,
    project_id: UUID,
    user_id: UUID,
    capability: Capability | None = None,
) -> Project:
    """Load a project and check the caller's access to it."""
    project = await uow.projects.get(project_id)
    if not project:
        raise ProjectNotFoundError(str(project_id))
    require_access(project, user_id, capability)
    return project
