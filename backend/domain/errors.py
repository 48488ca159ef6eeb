"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to the `{success: false, error, details?}`
envelope by the exception handlers in main.py.
"""
from typing import Any

from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Any = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message
        self.details = details


class NotFoundError(DomainError):
    """Resource not found (404)."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class ValidationError(DomainError):
    """Validation error (400)."""
    def __init__(self, message: str = "Validation failed", details: Any = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class UnauthorizedError(DomainError):
    """Unauthorized access (401)."""
    def __init__(self, message: str = "Unauthorized", details: Any = None):
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED, details=details)


class PermissionDeniedError(DomainError):
    """Permission denied (403)."""
    def __init__(self, message: str = "Access denied", details: Any = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class RateLimitError(DomainError):
    """Rate limit exceeded (429)."""
    def __init__(
        self,
        message: str = "Too many requests, please try again later",
        details: Any = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message, status_code=status.HTTP_429_TOO_MANY_REQUESTS, details=details, headers=headers)


class GatewayError(DomainError):
    """Upstream provider (Supabase, Paystack) failure (502)."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(message, status_code=status.HTTP_502_BAD_GATEWAY, details=details)
