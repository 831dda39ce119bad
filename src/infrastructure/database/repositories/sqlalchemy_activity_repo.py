"""SQLAlchemy implementation of Activity Log repository."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.activity import ActivityLog
from infrastructure.database.models import ActivityLogModel


class SQLAlchemyActivityRepository:
    """SQLAlchemy implementation of IActivityRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, activity: ActivityLog) -> ActivityLog:
        """Append an activity log entry."""
        model = self._to_model(activity)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def list_for_project(
        self,
        project_id: UUID,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[ActivityLog], int]:
        """Activity of a project, newest first."""
        condition = ActivityLogModel.project_id == project_id

        count_stmt = select(func.count()).select_from(ActivityLogModel).where(condition)
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = (
            select(ActivityLogModel)
            .where(condition)
            .order_by(ActivityLogModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()], total

    async def list_for_entity(
        self,
        entity_type: str,
        entity_id: UUID,
        limit: int = 50,
    ) -> list[ActivityLog]:
        """Activity of a specific entity, newest first."""
        stmt = (
            select(ActivityLogModel)
            .where(
                ActivityLogModel.entity_type == entity_type,
                ActivityLogModel.entity_id == entity_id,
            )
            .order_by(ActivityLogModel.created_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    def _to_entity(self, model: ActivityLogModel) -> ActivityLog:
        return ActivityLog(
            id=model.id,
            project_id=model.project_id,
            actor_id=model.actor_id,
            action=model.action,
            entity_type=model.entity_type,
            entity_id=model.entity_id,
            changes=model.changes,
            metadata=model.metadata_,
            ip_address=model.ip_address,
            user_agent=model.user_agent,
            created_at=model.created_at,
        )

    def _to_model(self, entity: ActivityLog) -> ActivityLogModel:
        return ActivityLogModel(
            id=entity.id,
            project_id=entity.project_id,
            actor_id=entity.actor_id,
            action=entity.action,
            entity_type=entity.entity_type,
            entity_id=entity.entity_id,
            changes=entity.changes,
            metadata_=entity.metadata,
            ip_address=entity.ip_address,
            user_agent=entity.user_agent,
            created_at=entity.created_at,
        )
