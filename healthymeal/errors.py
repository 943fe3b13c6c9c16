"""
Custom exceptions and error codes for the HealthyMeal application.

This module provides:
- Structured error codes for categorized error handling
- Custom exception classes for specific failure scenarios
- JSON error bodies in the shape the web client consumes ({error, message, ...})
"""
from enum import Enum
from typing import Optional, Dict, Any, List
from pydantic import BaseModel
from fastapi.responses import JSONResponse


class ErrorCode(str, Enum):
    """
    Application-wide error codes for categorized error handling.

    Format: CATEGORY_SPECIFIC_ERROR
    Categories:
    - RECIPE_*: Recipe related errors
    - PREFERENCES_*: Dietary preference errors
    - AI_*: AI preview generation errors
    - AUTH_*: Authentication errors
    - VALIDATION_*: Input validation errors
    - DATABASE_*: Database operation errors
    """

    # Recipe-related errors
    RECIPE_NOT_FOUND = "RECIPE_NOT_FOUND"
    RECIPE_PARENT_NOT_FOUND = "RECIPE_PARENT_NOT_FOUND"

    # Preference-related errors
    PREFERENCES_NOT_FOUND = "PREFERENCES_NOT_FOUND"
    PREFERENCES_MISSING = "PREFERENCES_MISSING"

    # AI preview errors
    AI_SERVICE_ERROR = "AI_SERVICE_ERROR"
    AI_RATE_LIMITED = "AI_RATE_LIMITED"

    # Auth errors
    AUTH_EMAIL_REGISTERED = "AUTH_EMAIL_REGISTERED"

    # Validation errors
    VALIDATION_INVALID_FORMAT = "VALIDATION_INVALID_FORMAT"

    # Database errors
    DATABASE_QUERY_ERROR = "DATABASE_QUERY_ERROR"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Error body returned by every failing API route."""
    error: str
    message: str
    details: Optional[List[str]] = None


class HealthyMealError(Exception):
    """
    Base exception for all HealthyMeal application errors.

    Provides structured error information for consistent error handling.
    """

    error_label = "Internal server error"

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """Convert exception to a JSON error response."""
        return error_response(self.status_code, self.error_label, self.message)


class RecipeNotFoundError(HealthyMealError):
    """Raised when a recipe does not exist or belongs to another user."""

    error_label = "Not found"

    def __init__(self, recipe_id: str, message: str = None):
        super().__init__(
            message=message or "Recipe not found or you don't have access to it",
            error_code=ErrorCode.RECIPE_NOT_FOUND,
            details={"recipe_id": recipe_id},
            status_code=404,
        )


class ParentRecipeNotFoundError(HealthyMealError):
    """Raised when a new recipe references a parent the user cannot see."""

    error_label = "Not Found"

    def __init__(self, parent_recipe_id: str):
        super().__init__(
            message="Parent recipe not found or you don't have access to it",
            error_code=ErrorCode.RECIPE_PARENT_NOT_FOUND,
            details={"parent_recipe_id": parent_recipe_id},
            status_code=404,
        )


class DietaryPreferencesNotFoundError(HealthyMealError):
    """Raised when a user has no dietary preferences row."""

    error_label = "Not Found"

    def __init__(self, user_id: str):
        super().__init__(
            message="Dietary preferences not found for user",
            error_code=ErrorCode.PREFERENCES_NOT_FOUND,
            details={"user_id": user_id},
            status_code=404,
        )


class NoDietaryPreferencesError(HealthyMealError):
    """Raised when an AI preview is requested but no preference is set."""

    error_label = "No dietary preferences"
    action = "Navigate to profile settings to add dietary preferences"

    def __init__(self, user_id: str):
        super().__init__(
            message="Please set your dietary preferences before modifying recipes.",
            error_code=ErrorCode.PREFERENCES_MISSING,
            details={"user_id": user_id},
            status_code=400,
        )

    def to_response(self) -> JSONResponse:
        return error_response(
            self.status_code, self.error_label, self.message, action=self.action
        )


class AIServiceError(HealthyMealError):
    """Raised when the AI provider fails or returns an unusable response."""

    error_label = "AI service unavailable"

    def __init__(self, reason: str, details: Dict[str, Any] = None):
        base_details = {"reason": reason}
        if details:
            base_details.update(details)
        super().__init__(
            message="The AI service is temporarily unavailable. Please try again later.",
            error_code=ErrorCode.AI_SERVICE_ERROR,
            details=base_details,
            status_code=503,
        )
        self.reason = reason


class DatabaseError(HealthyMealError):
    """Raised when a database operation fails."""

    error_label = "Internal server error"

    def __init__(self, operation: str, details: Dict[str, Any] = None):
        base_details = {"operation": operation}
        if details:
            base_details.update(details)
        super().__init__(
            message="Database error occurred. Please try again.",
            error_code=ErrorCode.DATABASE_QUERY_ERROR,
            details=base_details,
            status_code=500,
        )


class EmailAlreadyRegisteredError(HealthyMealError):
    """Raised when registering with an email that already has an account."""

    error_label = "Conflict"

    def __init__(self, email: str):
        super().__init__(
            message="Email already registered",
            error_code=ErrorCode.AUTH_EMAIL_REGISTERED,
            details={"email": email},
            status_code=409,
        )


# ============================================================================
# Response helpers
# ============================================================================

RATE_LIMIT_MESSAGE = "You've made too many AI modification requests. Please wait before trying again."


def error_response(status_code: int, error: str, message: str, **extra: Any) -> JSONResponse:
    """Build a JSON error response with the standard {error, message} body."""
    body: Dict[str, Any] = {"error": error, "message": message}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


def validation_error_response(message: str, details: Optional[List[str]] = None) -> JSONResponse:
    """400 response for malformed input."""
    if details:
        return error_response(400, "Invalid input", message, details=details)
    return error_response(400, "Invalid input", message)


def rate_limit_response(retry_after: int) -> JSONResponse:
    """429 response with both the retry_after field and the Retry-After header."""
    response = error_response(
        429,
        "Rate limit exceeded",
        RATE_LIMIT_MESSAGE,
        retry_after=retry_after,
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


def internal_error_response(message: str = None) -> JSONResponse:
    """500 response for unexpected failures."""
    return error_response(
        500,
        "Internal server error",
        message or "An unexpected error occurred. Please try again.",
    )
