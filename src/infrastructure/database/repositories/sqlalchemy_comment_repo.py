"""SQLAlchemy implementation of Comment repository."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.comment import Comment
from infrastructure.database.models import CommentModel


class SQLAlchemyCommentRepository:
    """SQLAlchemy implementation of ICommentRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Comment | None:
        """Get a comment by ID."""
        stmt = select(CommentModel).where(CommentModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, comment: Comment) -> Comment:
        """Create a new comment."""
        model = self._to_model(comment)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, comment: Comment) -> Comment:
        """Update content, reactions and deletion state."""
        stmt = select(CommentModel).where(CommentModel.id == comment.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Comment {comment.id} not found")

        model.content = comment.content
        model.mentions = [str(m) for m in comment.mentions]
        model.reactions = self._reactions_to_json(comment.reactions)
        model.is_edited = comment.is_edited
        model.edited_at = comment.edited_at
        model.is_deleted = comment.is_deleted
        model.deleted_at = comment.deleted_at
        model.updated_at = comment.updated_at

        await self._session.flush()
        return self._to_entity(model)

    async def list_for_task(
        self, task_id: UUID, offset: int = 0, limit: int = 20
    ) -> tuple[list[Comment], int]:
        """Top-level comments of a task, oldest first."""
        return await self._page(
            [
                CommentModel.task_id == task_id,
                CommentModel.parent_id.is_(None),
                CommentModel.is_deleted.is_(False),
            ],
            offset,
            limit,
        )

    async def list_replies(
        self, parent_id: UUID, offset: int = 0, limit: int = 20
    ) -> tuple[list[Comment], int]:
        """Replies to a comment, oldest first."""
        return await self._page(
            [CommentModel.parent_id == parent_id, CommentModel.is_deleted.is_(False)],
            offset,
            limit,
        )

    async def _page(
        self, conditions: list, offset: int, limit: int
    ) -> tuple[list[Comment], int]:
        count_stmt = select(func.count()).select_from(CommentModel).where(*conditions)
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = (
            select(CommentModel)
            .where(*conditions)
            .order_by(CommentModel.created_at.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()], total

    @staticmethod
    def _reactions_to_json(reactions: dict[str, list[UUID]]) -> dict[str, list[str]]:
        return {emoji: [str(u) for u in users] for emoji, users in reactions.items()}

    def _to_entity(self, model: CommentModel) -> Comment:
        """Convert ORM model to domain entity."""
        return Comment(
            id=model.id,
            task_id=model.task_id,
            author_id=model.author_id,
            parent_id=model.parent_id,
            content=model.content,
            mentions=[UUID(str(m)) for m in model.mentions or []],
            reactions={
                emoji: [UUID(str(u)) for u in users]
                for emoji, users in (model.reactions or {}).items()
            },
            is_edited=model.is_edited,
            edited_at=model.edited_at,
            is_deleted=model.is_deleted,
            deleted_at=model.deleted_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Comment) -> CommentModel:
        """Convert domain entity to ORM model."""
        return CommentModel(
            id=entity.id,
            task_id=entity.task_id,
            author_id=entity.author_id,
            parent_id=entity.parent_id,
            content=entity.content,
            mentions=[str(m) for m in entity.mentions],
            reactions=self._reactions_to_json(entity.reactions),
            is_edited=entity.is_edited,
            edited_at=entity.edited_at,
            is_deleted=entity.is_deleted,
            deleted_at=entity.deleted_at,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
