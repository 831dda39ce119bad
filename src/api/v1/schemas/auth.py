"""Pydantic schemas for Auth API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from api.v1.schemas.user import UserResponse


class RegisterRequest(BaseModel):
    """Schema for account registration."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "jane@example.com",
                "password": "Sup3rSecret",
                "name": "Jane Doe",
            }
        }
    )

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=100)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class LogoutRequest(BaseModel):
    """Omit ``refresh_token`` to sign out of every session."""

    refresh_token: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


class TokenResponse(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class AuthData(BaseModel):
    user: UserResponse
    tokens: TokenResponse


class AuthResponse(BaseModel):
    """Schema for register/login/refresh responses."""

    data: AuthData
