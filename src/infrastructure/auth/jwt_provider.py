"""JWT authentication provider implementation.

Access and refresh tokens are HS256-signed JWTs issued by this service.

Payload structure:
    {
        "sub": "user-uuid",
        "email": "user@example.com",
        "name": "Jane",
        "roles": ["member"],
        "type": "access" | "refresh",
        "jti": "token-id",
        "iss": "task-manager-api",
        "aud": "task-manager-client",
        "exp": 1234567890
    }
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID, uuid4

from jose import JWTError, jwt

from core.config import settings
from infrastructure.auth.provider import RefreshClaims, TokenPair, TokenUser

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class JWTAuthProvider:
    """JWT-based authentication provider."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.access_token_expire_minutes,
        refresh_expire_days: int = settings.refresh_token_expire_days,
        issuer: str = settings.jwt_issuer,
        audience: str = settings.jwt_audience,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes
        self._refresh_expire_days = refresh_expire_days
        self._issuer = issuer
        self._audience = audience

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """
        Validate an access token and extract user info.

        Args:
            token: The JWT to validate

        Returns:
            TokenUser if valid, None if invalid, expired or not an access token
        """
        payload = self._decode(token)
        if payload is None or payload.get("type") != ACCESS_TOKEN_TYPE:
            return None

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            return None

        try:
            return TokenUser(
                id=UUID(user_id),
                email=email,
                name=payload.get("name"),
                roles=list(payload.get("roles") or []),
            )
        except ValueError:
            return None

    def decode_refresh_token(self, token: str) -> Optional[RefreshClaims]:
        """Verify a refresh token's signature, expiry and type."""
        payload = self._decode(token)
        if payload is None or payload.get("type") != REFRESH_TOKEN_TYPE:
            return None

        user_id = payload.get("sub")
        jti = payload.get("jti")
        if not user_id or not jti:
            return None

        try:
            return RefreshClaims(user_id=UUID(user_id), jti=jti)
        except ValueError:
            return None

    def create_token(self, user: TokenUser) -> str:
        """
        Create an access token for a user.

        Args:
            user: The user to create a token for

        Returns:
            The generated JWT string
        """
        expire = datetime.utcnow() + timedelta(minutes=self._expire_minutes)
        payload: dict[str, Any] = {
            "sub": str(user.id),
            "email": user.email,
            "name": user.name,
            "roles": list(user.roles),
            "type": ACCESS_TOKEN_TYPE,
            "jti": uuid4().hex,
            "iss": self._issuer,
            "aud": self._audience,
            "exp": expire,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def create_refresh_token(self, user: TokenUser) -> tuple[str, str]:
        """Create a refresh token. Returns (token, jti)."""
        jti = uuid4().hex
        expire = datetime.utcnow() + timedelta(days=self._refresh_expire_days)
        payload: dict[str, Any] = {
            "sub": str(user.id),
            "type": REFRESH_TOKEN_TYPE,
            "jti": jti,
            "iss": self._issuer,
            "aud": self._audience,
            "exp": expire,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm), jti

    def create_token_pair(self, user: TokenUser) -> TokenPair:
        refresh_token, jti = self.create_refresh_token(user)
        return TokenPair(
            access_token=self.create_token(user),
            refresh_token=refresh_token,
            refresh_jti=jti,
            expires_in=self._expire_minutes * 60,
        )

    @property
    def refresh_ttl_seconds(self) -> int:
        return self._refresh_expire_days * 24 * 60 * 60

    def _decode(self, token: str) -> Optional[dict[str, Any]]:
        try:
            return jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
            )
        except JWTError as exc:
            logger.debug("Rejected JWT: %s", exc)
            return None
