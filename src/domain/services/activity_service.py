"""Activity service layer for logging and querying project activity."""

from collections.abc import Callable
from typing import Any
from uuid import UUID

from domain.entities.activity import ActivityLog, RequestContext
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import load_project


class ActivityService:
    """Service layer for activity logging and retrieval."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def log(
        self,
        uow: IUnitOfWork,
        project_id: UUID,
        actor_id: UUID,
        action: str,
        entity_type: str,
        entity_id: UUID,
        changes: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
        context: RequestContext | None = None,
    ) -> ActivityLog:
        """Log an activity within an existing UoW transaction.

        The entry is committed together with the caller's mutation, so a
        failure here rolls the whole operation back.

        Args:
            uow: The active Unit of Work (caller manages commit).
            project_id: The project where the activity occurred.
            actor_id: The user who performed the action.
            action: The action string (use Actions constants).
            entity_type: The type of entity affected.
            entity_id: The ID of the entity affected.
            changes: Optional before/after diff {field: {old, new}}.
            metadata: Optional additional metadata.
            context: Optional request metadata (IP address, user agent).

        Returns:
            The created ActivityLog entry.
        """
        activity = ActivityLog(
            project_id=project_id,
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            changes=changes,
            metadata=metadata,
            ip_address=context.ip_address if context else None,
            user_agent=context.user_agent if context else None,
        )
        return await uow.activities.create(activity)

    async def get_project_activity(
        self,
        project_id: UUID,
        user_id: UUID,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[ActivityLog], int]:
        """Get the activity feed for a project. Requires membership.

        Returns:
            (entries newest first, total count)
        """
        async with self._uow_factory() as uow:
            await load_project(uow, project_id, user_id)
            return await uow.activities.list_for_project(  # type: ignore[no-any-return]
                project_id, offset=(page - 1) * limit, limit=limit
            )

    async def get_entity_history(
        self,
        project_id: UUID,
        user_id: UUID,
        entity_type: str,
        entity_id: UUID,
        limit: int = 50,
    ) -> list[ActivityLog]:
        """Get activity history for a specific entity. Requires membership."""
        async with self._uow_factory() as uow:
            await load_project(uow, project_id, user_id)
            entries = await uow.activities.list_for_entity(entity_type, entity_id, limit=limit)
            # Entity ids are unique, but never leak entries scoped to another project
            return [e for e in entries if e.project_id == project_id]

    @staticmethod
    def compute_diff(
        old_dict: dict[str, Any], new_dict: dict[str, Any]
    ) -> dict[str, dict[str, Any]]:
        """Compute field-level diff between two dictionaries.

        Returns:
            Dict of changed fields: {field_name: {"old": old_val, "new": new_val}}
        """
        diff: dict[str, dict[str, Any]] = {}
        all_keys = set(old_dict.keys()) | set(new_dict.keys())

        for key in all_keys:
            old_val = old_dict.get(key)
            new_val = new_dict.get(key)
            if old_val != new_val:
                diff[key] = {"old": old_val, "new": new_val}

        return diff
