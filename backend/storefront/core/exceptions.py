"""Custom exception classes for the application"""

from typing import Optional, Dict, Any


class BaseAPIException(Exception):
    """Base exception for all API errors"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# Authentication Errors
class AuthenticationError(BaseAPIException):
    """Base authentication error (401)"""
    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(message, status_code=401)


class InvalidCredentialsError(AuthenticationError):
    """Unknown email or wrong password - deliberately indistinguishable"""
    def __init__(self):
        super().__init__("Invalid authentication credentials")


class TokenExpiredOrInvalidError(AuthenticationError):
    """Refresh token expired, superseded, revoked or forged"""
    def __init__(self, message: str = "Token expired or invalid"):
        super().__init__(message)


# Authorization Errors
class AuthorizationError(BaseAPIException):
    """Insufficient permissions"""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403)


class InactiveAccountError(AuthorizationError):
    """Account exists but has not been activated"""
    def __init__(self):
        super().__init__("Your user account must be activated to access this resource")


# Resource Errors
class ResourceNotFoundError(BaseAPIException):
    """Resource not found"""
    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", status_code=404)


class EditConflictError(BaseAPIException):
    """Concurrent update lost the race"""
    def __init__(self, message: str = "Unable to update the record due to an edit conflict, please try again"):
        super().__init__(message, status_code=409)


# Validation Errors
class ValidationFailedError(BaseAPIException):
    """Field-level validation failure; ``errors`` maps field name to message"""
    def __init__(self, errors: Dict[str, str], message: str = "Validation failed"):
        self.errors = dict(errors)
        super().__init__(message, status_code=422, details=self.errors)


class DuplicateEmailError(ValidationFailedError):
    """Email unique constraint violated"""
    def __init__(self):
        super().__init__({"email": "a user with this email address already exists"})


# System Errors
class DatabaseError(BaseAPIException):
    """Database operation failed"""
    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message, status_code=500)


class HashingError(BaseAPIException):
    """Password hashing primitive failed"""
    def __init__(self, message: str = "Unable to process password"):
        super().__init__(message, status_code=500)


class RateLimitExceededError(BaseAPIException):
    """Rate limit exceeded"""
    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message, status_code=429)
