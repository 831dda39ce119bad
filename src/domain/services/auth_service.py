"""Authentication service: registration, login and refresh-token rotation."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.exceptions import (
    AccountDeactivatedError,
    DuplicateKeyError,
    InvalidCredentialsError,
    InvalidCurrentPasswordError,
    InvalidRefreshTokenError,
    UserNotFoundError,
    ValidationFailedError,
)
from domain.entities.user import User
from domain.repositories.token_store import ITokenStore
from domain.repositories.unit_of_work import IUnitOfWork
from infrastructure.auth.password import PasswordHasher, password_problems
from infrastructure.auth.provider import IAuthProvider, TokenPair, TokenUser

logger = structlog.get_logger()


@dataclass
class AuthResult:
    """A user together with a freshly issued token pair."""

    user: User
    tokens: TokenPair


def _token_user(user: User) -> TokenUser:
    return TokenUser(id=user.id, email=user.email, name=user.name, roles=list(user.roles))


def _check_strength(password: str, field: str = "password") -> None:
    problems = password_problems(password)
    if problems:
        raise ValidationFailedError([{"field": field, "message": p} for p in problems])


class AuthService:
    """Service layer for credentials and token lifecycle.

    Refresh tokens are tracked by ``jti`` in the token store; a refresh
    token is only accepted while its ``jti`` is live there, and every
    successful refresh rotates it.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        auth_provider: IAuthProvider,
        token_store: ITokenStore,
        password_hasher: PasswordHasher,
    ) -> None:
        self._uow_factory = uow_factory
        self._auth = auth_provider
        self._tokens = token_store
        self._hasher = password_hasher

    async def register(self, email: str, password: str, name: str) -> AuthResult:
        """Create an account and sign it in."""
        _check_strength(password)

        async with self._uow_factory() as uow:
            if await uow.users.get_by_email(email):
                raise DuplicateKeyError("email", email.strip().lower())

            password_hash = await asyncio.to_thread(self._hasher.hash, password)
            user = User(email=email, name=name, password_hash=password_hash)
            try:
                created = await uow.users.create(user)
                await uow.commit()
            except IntegrityError as exc:
                # Lost a race with a concurrent registration of the same email
                await uow.rollback()
                raise DuplicateKeyError("email", user.email) from exc

        logger.info("user_registered", user_id=str(created.id))
        return AuthResult(user=created, tokens=await self._issue_tokens(created))

    async def login(self, email: str, password: str) -> AuthResult:
        """Verify credentials and issue a token pair."""
        async with self._uow_factory() as uow:
            user = await uow.users.get_by_email(email)
            if user is None:
                # Same bcrypt cost as a known email
                valid = await asyncio.to_thread(self._hasher.verify_dummy, password)
            else:
                valid = await asyncio.to_thread(
                    self._hasher.verify, password, user.password_hash
                )
            if not valid:
                logger.info("login_failed", email=email.strip().lower())
                raise InvalidCredentialsError()
            if not user.is_active:
                raise AccountDeactivatedError()

            user.record_login()
            user = await uow.users.update(user)
            await uow.commit()

        logger.info("user_logged_in", user_id=str(user.id))
        return AuthResult(user=user, tokens=await self._issue_tokens(user))

    async def refresh(self, refresh_token: str) -> AuthResult:
        """Exchange a live refresh token for a new pair, revoking the old one."""
        claims = self._auth.decode_refresh_token(refresh_token)
        if claims is None or not await self._tokens.exists(claims.user_id, claims.jti):
            raise InvalidRefreshTokenError()

        async with self._uow_factory() as uow:
            user = await uow.users.get(claims.user_id)
        if not user or not user.is_active:
            await self._tokens.revoke(claims.user_id, claims.jti)
            raise InvalidRefreshTokenError()

        await self._tokens.revoke(claims.user_id, claims.jti)
        return AuthResult(user=user, tokens=await self._issue_tokens(user))

    async def logout(self, user_id: UUID, refresh_token: str | None = None) -> None:
        """Revoke one refresh token, or all of the user's when none is given."""
        if refresh_token is None:
            await self._tokens.revoke_all(user_id)
            return

        claims = self._auth.decode_refresh_token(refresh_token)
        if claims is not None and claims.user_id == user_id:
            await self._tokens.revoke(user_id, claims.jti)

    async def change_password(
        self, user_id: UUID, current_password: str, new_password: str
    ) -> None:
        """Change the password and sign out every session."""
        async with self._uow_factory() as uow:
            user = await uow.users.get(user_id)
            if not user:
                raise UserNotFoundError(str(user_id))
            if not await asyncio.to_thread(
                self._hasher.verify, current_password, user.password_hash
            ):
                raise InvalidCurrentPasswordError()
            _check_strength(new_password, field="new_password")

            user.password_hash = await asyncio.to_thread(self._hasher.hash, new_password)
            user.touch()
            await uow.users.update(user)
            await uow.commit()

        await self._tokens.revoke_all(user_id)
        logger.info("password_changed", user_id=str(user_id))

    async def _issue_tokens(self, user: User) -> TokenPair:
        pair = self._auth.create_token_pair(_token_user(user))
        await self._tokens.save(user.id, pair.refresh_jti, self._auth.refresh_ttl_seconds)
        return pair
