"""
Custom exception hierarchy for the application.
All exceptions inherit from AppException for unified handling.
"""

from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        status_code: HTTP status code for API responses
        details: Additional error details
    """

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# === Not Found Errors ===

class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, entity: str, identifier: str = None):
        message = f"{entity} not found"
        if identifier:
            message = f"{entity} '{identifier}' not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404
        )


class GemstoneNotFoundError(NotFoundError):
    def __init__(self, gemstone_id: str):
        super().__init__("Gemstone", gemstone_id)


# === Validation Errors ===

class ValidationError(AppException):
    """Input validation failed."""

    def __init__(self, message: str, field: str = None, code: str = "VALIDATION_ERROR"):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code=code,
            status_code=422,
            details=details
        )


# === Database Errors ===

class DatabaseError(AppException):
    """Database operation failed."""

    def __init__(self, message: str, operation: str = None):
        details = {"operation": operation} if operation else {}
        super().__init__(
            message=f"Database error: {message}",
            code="DATABASE_ERROR",
            status_code=500,
            details=details
        )


class PersistenceError(DatabaseError):
    """Writing a consolidated analysis failed. The whole record must be retried."""

    def __init__(self, message: str, gemstone_id: str = None, operation: str = None):
        super().__init__(message, operation=operation)
        self.code = "PERSISTENCE_ERROR"
        if gemstone_id:
            self.details["gemstone_id"] = gemstone_id


# === Analysis Errors ===

class AnalysisError(AppException):
    """Image analysis step failed for one gemstone."""

    def __init__(
        self,
        message: str,
        code: str = "ANALYSIS_ERROR",
        status_code: int = 502,
        step: str = None,
        gemstone_id: str = None,
    ):
        details = {}
        if step:
            details["step"] = step
        if gemstone_id:
            details["gemstone_id"] = gemstone_id
        super().__init__(
            message=message,
            code=code,
            status_code=status_code,
            details=details
        )
        self.step = step
        self.gemstone_id = gemstone_id


class InsufficientInputError(AnalysisError):
    """No images to analyze. Precondition failure, never retried."""

    def __init__(self, message: str = "At least one image is required", step: str = None, gemstone_id: str = None):
        super().__init__(
            message=message,
            code="INSUFFICIENT_INPUT",
            status_code=422,
            step=step,
            gemstone_id=gemstone_id,
        )


class MalformedDetectionError(AnalysisError):
    """Model returned a structurally invalid attribute detection."""

    def __init__(self, reason: str, step: str = None, gemstone_id: str = None):
        super().__init__(
            message=f"Malformed detection response: {reason}",
            code="MALFORMED_DETECTION",
            step=step,
            gemstone_id=gemstone_id,
        )


class MalformedSelectionError(AnalysisError):
    """Model returned a structurally invalid primary image selection."""

    def __init__(self, reason: str, gemstone_id: str = None):
        super().__init__(
            message=f"Malformed selection response: {reason}",
            code="MALFORMED_SELECTION",
            step="select_primary",
            gemstone_id=gemstone_id,
        )


class MalformedContentError(AnalysisError):
    """Model returned structurally invalid marketing content."""

    def __init__(self, reason: str, gemstone_id: str = None):
        super().__init__(
            message=f"Malformed content response: {reason}",
            code="MALFORMED_CONTENT",
            step="generate_content",
            gemstone_id=gemstone_id,
        )


class AnalysisTimeoutError(AnalysisError):
    """External model call exceeded its time budget."""

    def __init__(self, step: str, timeout: float, gemstone_id: str = None):
        super().__init__(
            message=f"{step} exceeded {timeout:.0f}s time budget",
            code="TIMEOUT",
            status_code=504,
            step=step,
            gemstone_id=gemstone_id,
        )
        self.timeout = timeout
        self.details["timeout_seconds"] = timeout


class ModelServiceError(AnalysisError):
    """External model service call failed (transport, auth, rate limit)."""

    def __init__(self, message: str, step: str = None, gemstone_id: str = None):
        super().__init__(
            message=f"Model service error: {message}",
            code="MODEL_SERVICE_ERROR",
            step=step,
            gemstone_id=gemstone_id,
        )
