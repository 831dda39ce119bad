"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_DEACTIVATED = "ACCOUNT_DEACTIVATED"
    INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"
    INVALID_CURRENT_PASSWORD = "INVALID_CURRENT_PASSWORD"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    ACCESS_DENIED = "ACCESS_DENIED"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    CANNOT_DEACTIVATE_ADMIN = "CANNOT_DEACTIVATE_ADMIN"
    CANNOT_MODIFY_OWNER = "CANNOT_MODIFY_OWNER"

    # Not found errors (404)
    USER_NOT_FOUND = "USER_NOT_FOUND"
    PROJECT_NOT_FOUND = "PROJECT_NOT_FOUND"
    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    COMMENT_NOT_FOUND = "COMMENT_NOT_FOUND"
    PARENT_COMMENT_NOT_FOUND = "PARENT_COMMENT_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ASSIGNEE = "INVALID_ASSIGNEE"
    INVALID_ROLE = "INVALID_ROLE"

    # Conflict errors (409)
    DUPLICATE_KEY = "DUPLICATE_KEY"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            error_code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=403,
        )


class InvalidCredentialsError(AuthenticationError):
    """Email or password did not match."""

    def __init__(self) -> None:
        super().__init__(
            message="Invalid email or password",
            error_code=ErrorCode.INVALID_CREDENTIALS,
        )


class AccountDeactivatedError(AuthenticationError):
    """The account exists but has been deactivated."""

    def __init__(self) -> None:
        super().__init__(
            message="Account has been deactivated",
            error_code=ErrorCode.ACCOUNT_DEACTIVATED,
        )


class InvalidRefreshTokenError(AuthenticationError):
    """Refresh token is malformed, expired or revoked."""

    def __init__(self) -> None:
        super().__init__(
            message="Invalid or expired refresh token",
            error_code=ErrorCode.INVALID_REFRESH_TOKEN,
        )


class InvalidCurrentPasswordError(AuthenticationError):
    """Current password supplied on password change is wrong."""

    def __init__(self) -> None:
        super().__init__(
            message="Current password is incorrect",
            error_code=ErrorCode.INVALID_CURRENT_PASSWORD,
        )


class UserNotFoundError(AppException):
    """User not found."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.USER_NOT_FOUND,
            message=f"User not found: {user_id}",
            status_code=404,
            details={"user_id": user_id},
        )


class ProjectNotFoundError(AppException):
    """Project not found."""

    def __init__(self, project_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.PROJECT_NOT_FOUND,
            message=f"Project not found: {project_id}",
            status_code=404,
            details={"project_id": project_id},
        )


class MemberNotFoundError(AppException):
    """User has no explicit membership entry in the project."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.MEMBER_NOT_FOUND,
            message="User is not a member of this project",
            status_code=404,
            details={"user_id": user_id},
        )


class TaskNotFoundError(AppException):
    """Task not found."""

    def __init__(self, task_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.TASK_NOT_FOUND,
            message=f"Task not found: {task_id}",
            status_code=404,
            details={"task_id": task_id},
        )


class CommentNotFoundError(AppException):
    """Comment not found."""

    def __init__(self, comment_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.COMMENT_NOT_FOUND,
            message=f"Comment not found: {comment_id}",
            status_code=404,
            details={"comment_id": comment_id},
        )


class ParentCommentNotFoundError(AppException):
    """Reply target does not exist on the same task."""

    def __init__(self, parent_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.PARENT_COMMENT_NOT_FOUND,
            message=f"Parent comment not found: {parent_id}",
            status_code=404,
            details={"parent_id": parent_id},
        )


class NotAMemberError(AppException):
    """User is not a member of the project."""

    def __init__(self, project_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ACCESS_DENIED,
            message="You are not a member of this project",
            status_code=403,
            details={"project_id": project_id},
        )


class InsufficientPermissionsError(AppException):
    """Member lacks the capability required for the operation."""

    def __init__(self, required: str = "can_edit") -> None:
        super().__init__(
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            message=f"Insufficient permissions. Required: {required}",
            status_code=403,
            details={"required": required},
        )


class CannotDeactivateAdminError(AppException):
    """Platform administrators cannot be deactivated."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.CANNOT_DEACTIVATE_ADMIN,
            message="Cannot deactivate an administrator account",
            status_code=403,
        )


class CannotModifyOwnerError(AppException):
    """The project owner's membership is fixed."""

    def __init__(self, project_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.CANNOT_MODIFY_OWNER,
            message="The project owner's membership cannot be changed",
            status_code=403,
            details={"project_id": project_id},
        )


class InvalidAssigneeError(AppException):
    """Assignee is not a member of the task's project."""

    def __init__(self, assignee_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_ASSIGNEE,
            message="Assignee must be a member of the project",
            status_code=400,
            details={"assignee_id": assignee_id},
        )


class InvalidRoleError(AppException):
    """Role cannot be granted through this operation."""

    def __init__(self, role: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_ROLE,
            message=f"Role cannot be assigned: {role}",
            status_code=400,
            details={"role": role},
        )


class ValidationFailedError(AppException):
    """Field-level validation failure raised by the service layer."""

    def __init__(self, errors: list[dict[str, str]]) -> None:
        super().__init__(
            error_code=ErrorCode.VALIDATION_ERROR,
            message="Validation failed",
            status_code=400,
            details=errors,
        )

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationFailedError":
        return cls([{"field": field, "message": message}])


class DuplicateKeyError(AppException):
    """Unique-constraint violation."""

    def __init__(self, field: str, value: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.DUPLICATE_KEY,
            message=f"{field} already exists",
            status_code=409,
            details={"field": field, "value": value},
        )
