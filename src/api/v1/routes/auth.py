"""Authentication API routes."""

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_auth_service
from api.v1.schemas.auth import (
    AuthData,
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from api.v1.schemas.common import MessageResponse
from api.v1.schemas.user import UserResponse
from core.rate_limit import limiter
from domain.services.auth_service import AuthResult, AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        data=AuthData(
            user=UserResponse.model_validate(result.user),
            tokens=TokenResponse(
                access_token=result.tokens.access_token,
                refresh_token=result.tokens.refresh_token,
                token_type=result.tokens.token_type,
                expires_in=result.tokens.expires_in,
            ),
        )
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    responses={
        201: {"description": "Account created and signed in"},
        400: {"description": "Password too weak"},
        409: {"description": "Email already registered"},
    },
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def register(
    request: Request,
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Create an account. Passwords need 8+ characters with upper, lower and a digit."""
    result = await service.register(email=body.email, password=body.password, name=body.name)
    return _auth_response(result)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Sign in",
    responses={401: {"description": "Invalid credentials or deactivated account"}},
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def login(
    request: Request,
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await service.login(email=body.email, password=body.password)
    return _auth_response(result)


@router.post(
    "/refresh",
    response_model=AuthResponse,
    summary="Rotate a refresh token",
    responses={401: {"description": "Refresh token invalid, expired or revoked"}},
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def refresh(
    request: Request,
    body: RefreshRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Exchange a refresh token for a new pair. The old refresh token stops working."""
    result = await service.refresh(body.refresh_token)
    return _auth_response(result)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Sign out",
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def logout(
    request: Request,
    body: LogoutRequest,
    user: CurrentUser,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Revoke the given refresh token, or every session when none is sent."""
    await service.logout(user.id, body.refresh_token)
    return MessageResponse(message="Logged out")


@router.post(
    "/change-password",
    response_model=MessageResponse,
    summary="Change password",
    responses={
        400: {"description": "New password too weak"},
        401: {"description": "Current password is incorrect"},
    },
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def change_password(
    request: Request,
    body: ChangePasswordRequest,
    user: CurrentUser,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Change the password. All refresh tokens are revoked."""
    await service.change_password(user.id, body.current_password, body.new_password)
    return MessageResponse(message="Password changed")
