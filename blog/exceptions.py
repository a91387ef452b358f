"""
Custom Exception Classes for the Blog Platform

This module defines custom exceptions for better error handling and
consistent error responses across the application.
"""

from enum import Enum
from typing import Any

from fastapi import status


class ErrorCode(str, Enum):
    """Machine-readable error codes returned alongside error messages."""

    AUTH_FAILED = "AUTH_FAILED"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_PERMISSION_DENIED = "AUTH_PERMISSION_DENIED"
    AUTH_USER_BANNED = "AUTH_USER_BANNED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_POST_NOT_FOUND = "RESOURCE_POST_NOT_FOUND"
    RESOURCE_USER_NOT_FOUND = "RESOURCE_USER_NOT_FOUND"
    RESOURCE_COMMENT_NOT_FOUND = "RESOURCE_COMMENT_NOT_FOUND"
    RESOURCE_CATEGORY_NOT_FOUND = "RESOURCE_CATEGORY_NOT_FOUND"
    RESOURCE_TAG_NOT_FOUND = "RESOURCE_TAG_NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    VALIDATION_DUPLICATE_RESOURCE = "VALIDATION_DUPLICATE_RESOURCE"
    OPERATION_NOT_ALLOWED = "OPERATION_NOT_ALLOWED"
    DATABASE_ERROR = "DATABASE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class BlogError(Exception):
    """Base exception class for all blog-related exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(BlogError):
    """Raised when authentication fails"""

    def __init__(self, message: str = "You must be signed in to do this"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code=ErrorCode.AUTH_FAILED,
        )


class InvalidCredentialsError(BlogError):
    """Raised when login credentials are invalid"""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code=ErrorCode.AUTH_INVALID_CREDENTIALS,
        )


class AuthorizationError(BlogError):
    """Raised when user lacks permission for an action"""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code=ErrorCode.AUTH_PERMISSION_DENIED,
        )


class UserBannedError(BlogError):
    """Raised when a banned user tries to act"""

    def __init__(self, message: str = "This account has been banned"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code=ErrorCode.AUTH_USER_BANNED,
        )


# ============================================================================
# Resource Not Found Exceptions
# ============================================================================


class ResourceNotFoundError(BlogError):
    """Base class for resource not found errors"""

    error_code = ErrorCode.RESOURCE_NOT_FOUND

    def __init__(self, resource_type: str, resource_id: Any | None = None):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code=type(self).error_code,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class PostNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.RESOURCE_POST_NOT_FOUND

    def __init__(self, post_ref: Any | None = None):
        super().__init__(resource_type="Post", resource_id=post_ref)


class UserNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.RESOURCE_USER_NOT_FOUND

    def __init__(self, user_id: Any | None = None):
        super().__init__(resource_type="User", resource_id=user_id)


class CommentNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.RESOURCE_COMMENT_NOT_FOUND

    def __init__(self, comment_id: Any | None = None):
        super().__init__(resource_type="Comment", resource_id=comment_id)


class CategoryNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.RESOURCE_CATEGORY_NOT_FOUND

    def __init__(self, category_ref: Any | None = None):
        super().__init__(resource_type="Category", resource_id=category_ref)


class TagNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.RESOURCE_TAG_NOT_FOUND

    def __init__(self, tag_ref: Any | None = None):
        super().__init__(resource_type="Tag", resource_id=tag_ref)


# ============================================================================
# Validation & Business Logic Exceptions
# ============================================================================


class ValidationError(BlogError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=ErrorCode.VALIDATION_FAILED,
            details={"field": field} if field else {},
        )


class DuplicateResourceError(BlogError):
    """Raised when attempting to create a duplicate resource"""

    def __init__(self, resource_type: str, field: str, value: Any):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            status_code=status.HTTP_409_CONFLICT,
            error_code=ErrorCode.VALIDATION_DUPLICATE_RESOURCE,
            details={"resource_type": resource_type, "field": field, "value": value},
        )


class OperationNotAllowedError(BlogError):
    """Raised when an operation is refused for the current resource state"""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code=ErrorCode.OPERATION_NOT_ALLOWED,
        )


class PostNotPublishedError(OperationNotAllowedError):
    def __init__(self, action: str = "interact with"):
        super().__init__(f"You can only {action} published posts")


class ReactionsDisabledError(OperationNotAllowedError):
    def __init__(self):
        super().__init__("Likes are disabled for this post")


class CommentsDisabledError(OperationNotAllowedError):
    def __init__(self):
        super().__init__("Comments are closed for this post")


# ============================================================================
# Database & Service Exceptions
# ============================================================================


class DatabaseError(BlogError):
    """Raised when a database operation fails"""

    def __init__(self, message: str = "A database error occurred", operation: str | None = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code=ErrorCode.DATABASE_ERROR,
            details={"operation": operation} if operation else {},
        )


class ServiceUnavailableError(BlogError):
    """Raised when a backing service (session store) cannot be reached"""

    def __init__(self, message: str = "Service temporarily unavailable", service: str | None = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code=ErrorCode.SERVICE_UNAVAILABLE,
            details={"service": service} if service else {},
        )
