"""SQLAlchemy implementation of Project repository."""

from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from domain.entities.project import (
    Project,
    ProjectMember,
    ProjectRole,
    ProjectSettings,
    ProjectStatus,
)
from infrastructure.database.models import ProjectMemberModel, ProjectModel


class SQLAlchemyProjectRepository:
    """SQLAlchemy implementation of IProjectRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Project | None:
        """Get a project with its members."""
        model = await self._get_model(id)
        return self._to_entity(model) if model else None

    async def create(self, project: Project) -> Project:
        """Create a project and its member entries."""
        model = self._to_model(project)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def update(self, project: Project) -> Project:
        """Persist project fields and synchronize its member list."""
        model = await self._get_model(project.id)
        if not model:
            raise ValueError(f"Project {project.id} not found")

        model.name = project.name
        model.description = project.description
        model.color = project.color
        model.status = project.status.value
        model.settings = project.settings.to_dict()
        model.updated_at = project.updated_at

        existing = {m.user_id: m for m in model.members}
        wanted = {m.user_id: m for m in project.members}

        for user_id, member_model in existing.items():
            if user_id not in wanted:
                model.members.remove(member_model)
        for user_id, member in wanted.items():
            if user_id in existing:
                existing[user_id].role = member.role.value
            else:
                model.members.append(self._member_to_model(project.id, member))

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete a project (members, tasks and comments cascade)."""
        model = await self._get_model(id)
        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    async def list_for_user(
        self,
        user_id: UUID,
        status: ProjectStatus | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Project], int]:
        """Projects the user owns or belongs to, most recently updated first."""
        conditions = [self._accessible_by(user_id)]
        if status is not None:
            conditions.append(ProjectModel.status == status.value)

        count_stmt = select(func.count()).select_from(ProjectModel).where(*conditions)
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = (
            select(ProjectModel)
            .options(selectinload(ProjectModel.members))
            .where(*conditions)
            .order_by(ProjectModel.updated_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()], total

    async def get_ids_for_user(self, user_id: UUID) -> list[UUID]:
        """IDs of every project the user owns or belongs to."""
        stmt = select(ProjectModel.id).where(self._accessible_by(user_id))
        result = await self._session.execute(stmt)
        return list(result.scalars())

    @staticmethod
    def _accessible_by(user_id: UUID):  # type: ignore[no-untyped-def]
        member_of = select(ProjectMemberModel.project_id).where(
            ProjectMemberModel.user_id == user_id
        )
        return or_(ProjectModel.owner_id == user_id, ProjectModel.id.in_(member_of))

    async def _get_model(self, id: UUID) -> ProjectModel | None:
        stmt = (
            select(ProjectModel)
            .options(selectinload(ProjectModel.members))
            .where(ProjectModel.id == id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: ProjectModel) -> Project:
        """Convert ORM model to domain entity."""
        return Project(
            id=model.id,
            name=model.name,
            description=model.description,
            color=model.color,
            status=ProjectStatus(model.status),
            owner_id=model.owner_id,
            members=[
                ProjectMember(
                    user_id=m.user_id,
                    role=ProjectRole(m.role),
                    joined_at=m.joined_at,
                )
                for m in model.members
            ],
            settings=ProjectSettings.from_dict(model.settings),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Project) -> ProjectModel:
        """Convert domain entity to ORM model."""
        return ProjectModel(
            id=entity.id,
            name=entity.name,
            description=entity.description,
            color=entity.color,
            status=entity.status.value,
            owner_id=entity.owner_id,
            settings=entity.settings.to_dict(),
            members=[self._member_to_model(entity.id, m) for m in entity.members],
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    @staticmethod
    def _member_to_model(project_id: UUID, member: ProjectMember) -> ProjectMemberModel:
        return ProjectMemberModel(
            project_id=project_id,
            user_id=member.user_id,
            role=member.role.value,
            joined_at=member.joined_at,
        )
