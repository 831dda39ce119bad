"""Password hashing with passlib (bcrypt)."""

import re
import secrets
from functools import cached_property

from passlib.context import CryptContext

from core.config import settings

MIN_PASSWORD_LENGTH = 8


class PasswordHasher:
    """Thin wrapper around a passlib CryptContext."""

    def __init__(self, rounds: int = settings.bcrypt_rounds) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        if not password_hash:
            return False
        try:
            return self._context.verify(password, password_hash)
        except ValueError:
            # Malformed or unknown hash
            return False

    def verify_dummy(self, password: str) -> bool:
        """Spend one verification on a throwaway hash; always False."""
        self.verify(password, self._dummy_hash)
        return False

    @cached_property
    def _dummy_hash(self) -> str:
        return self._context.hash(secrets.token_urlsafe(16))


def password_problems(password: str) -> list[str]:
    """Return the strength rules a password breaks (empty when it is acceptable)."""
    problems = []
    if len(password) < MIN_PASSWORD_LENGTH:
        problems.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not re.search(r"[a-z]", password):
        problems.append("Password must contain a lowercase letter")
    if not re.search(r"[A-Z]", password):
        problems.append("Password must contain an uppercase letter")
    if not re.search(r"\d", password):
        problems.append("Password must contain a number")
    return problems
