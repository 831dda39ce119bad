"""User service layer: profiles and platform-admin account management."""

from collections.abc import Callable
from typing import Optional
from uuid import UUID

import structlog

from core.exceptions import AuthorizationError, CannotDeactivateAdminError, UserNotFoundError
from domain.entities.user import User
from domain.repositories.token_store import ITokenStore
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class UserService:
    """Service layer for User business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        token_store: Optional[ITokenStore] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._tokens = token_store

    async def get_profile(self, user_id: UUID) -> User:
        async with self._uow_factory() as uow:
            return await self._get(uow, user_id)

    async def get_user(self, user_id: UUID) -> User:
        """Public lookup of another user by id."""
        async with self._uow_factory() as uow:
            return await self._get(uow, user_id)

    async def update_profile(
        self,
        user_id: UUID,
        name: str | None = None,
        avatar_url: str | None = None,
    ) -> User:
        async with self._uow_factory() as uow:
            user = await self._get(uow, user_id)
            if name is not None:
                user.name = name
            if avatar_url is not None:
                user.avatar_url = avatar_url
            user.touch()
            updated = await uow.users.update(user)
            await uow.commit()
            return updated

    async def list_users(
        self,
        actor_id: UUID,
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[User], int]:
        """All users, newest first. Platform admins only."""
        async with self._uow_factory() as uow:
            await self._require_admin(uow, actor_id)
            return await uow.users.find(  # type: ignore[no-any-return]
                search=search,
                is_active=is_active,
                offset=(page - 1) * limit,
                limit=limit,
            )

    async def deactivate_user(self, actor_id: UUID, user_id: UUID) -> User:
        """Deactivate an account and revoke its refresh tokens.

        Platform admins only; admins themselves cannot be deactivated.
        """
        async with self._uow_factory() as uow:
            await self._require_admin(uow, actor_id)
            user = await self._get(uow, user_id)
            if user.is_admin:
                raise CannotDeactivateAdminError()

            user.deactivate()
            updated = await uow.users.update(user)
            await uow.commit()

        if self._tokens:
            await self._tokens.revoke_all(user_id)
        logger.info("user_deactivated", user_id=str(user_id), actor_id=str(actor_id))
        return updated

    async def activate_user(self, actor_id: UUID, user_id: UUID) -> User:
        """Reactivate an account. Platform admins only."""
        async with self._uow_factory() as uow:
            await self._require_admin(uow, actor_id)
            user = await self._get(uow, user_id)
            user.activate()
            updated = await uow.users.update(user)
            await uow.commit()

        logger.info("user_activated", user_id=str(user_id), actor_id=str(actor_id))
        return updated

    @staticmethod
    async def _get(uow: IUnitOfWork, user_id: UUID) -> User:
        user = await uow.users.get(user_id)
        if not user:
            raise UserNotFoundError(str(user_id))
        return user

    @staticmethod
    async def _require_admin(uow: IUnitOfWork, actor_id: UUID) -> None:
        # Roles are read from the store, not the token, so demotions apply at once
        actor = await uow.users.get(actor_id)
        if not actor or not actor.is_admin:
            raise AuthorizationError("Administrator access required")
