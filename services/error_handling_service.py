"""
Error Handling Service
Centralized error taxonomy, structured error logging and JSON error responses.
"""

import logging
import traceback
from datetime import datetime
from typing import Any, Optional


logger = logging.getLogger(__name__)


class ErrorCategory:
    """Error categories for classification."""
    SYSTEM = "SYSTEM"
    DATA = "DATA"
    API = "API"
    VALIDATION = "VALIDATION"
    CONFIGURATION = "CONFIGURATION"


class QueryError(Exception):
    """
    Base class for failures surfaced by the query surface.

    Every subclass carries the HTTP status it maps to and a public message that
    is safe to return to a caller.
    """
    status_code: int = 500
    category: str = ErrorCategory.SYSTEM
    public_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        if message:
            self.public_message = message


class InvalidInputError(QueryError):
    """Bad or missing request field."""
    status_code = 400
    category = ErrorCategory.VALIDATION
    public_message = "Query is required"


class MethodNotAllowedError(QueryError):
    status_code = 405
    category = ErrorCategory.VALIDATION
    public_message = "Method not allowed"


class ConfigurationMissingError(QueryError):
    """A required Azure OpenAI setting is absent. Fatal for the request only."""
    status_code = 500
    category = ErrorCategory.CONFIGURATION
    public_message = "Azure OpenAI configuration missing"

    def __init__(self, missing: Optional[list[str]] = None):
        super().__init__()
        # Names of the settings, never their values
        self.missing = list(missing or [])


class UpstreamError(QueryError):
    """The model endpoint answered with a non-success status."""
    status_code = 500
    category = ErrorCategory.API

    def __init__(self, upstream_status: int):
        self.upstream_status = upstream_status
        super().__init__(f"Azure OpenAI API error: {upstream_status}")


class InternalError(QueryError):
    status_code = 500
    category = ErrorCategory.SYSTEM
    public_message = "Internal server error"


class InvalidParameterError(ValueError):
    """Scenario parameter outside its meaningful range."""
    status_code = 400
    category = ErrorCategory.VALIDATION


class DatasetValidationError(ValueError):
    """The metrics resource is malformed or breaks a dataset invariant."""
    category = ErrorCategory.DATA


class ErrorHandlingService:
    """Service for centralized error handling and processing."""

    @staticmethod
    def process_error(
        error: Exception,
        context: str = "",
        category: Optional[str] = None,
        details: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Process and structure an error for logging.

        Args:
            error: The exception that occurred
            context: Context where error occurred (e.g., "ask")
            category: Error category; defaults to the exception's own category
            details: Additional error details (must not contain secrets)

        Returns:
            Dictionary with error information
        """
        category = category or getattr(error, "category", ErrorCategory.SYSTEM)
        stack_trace = ""
        if error.__traceback__ is not None:
            stack_trace = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )

        return {
            "message": str(error),
            "type": type(error).__name__,
            "context": context,
            "category": category,
            "timestamp": datetime.now().isoformat(),
            "details": details or {},
            "stack_trace": stack_trace,
        }

    @staticmethod
    def log_error(
        error_info: dict[str, Any] | str | Exception,
        category: str = ErrorCategory.SYSTEM,
        log_level: int = logging.ERROR
    ) -> None:
        """
        Log error information.

        Args:
            error_info: Error dictionary from process_error, or error message string, or Exception
            category: Error category (if error_info is string/Exception)
            log_level: Logging level
        """
        if isinstance(error_info, Exception):
            error_info = ErrorHandlingService.process_error(
                error_info,
                context="unknown",
                category=category
            )
        elif isinstance(error_info, str):
            error_info = {
                "message": error_info,
                "type": "Error",
                "context": "unknown",
                "category": category,
                "timestamp": datetime.now().isoformat(),
                "details": {},
                "stack_trace": ""
            }

        logger.log(
            log_level,
            "[%s] %s: %s",
            error_info["category"],
            error_info["context"],
            error_info["message"],
        )
        if error_info.get("details"):
            logger.log(log_level, "Details: %s", error_info["details"])
        if error_info.get("stack_trace"):
            logger.debug("Stack trace:\n%s", error_info["stack_trace"])

    @staticmethod
    def to_response(error: Exception) -> tuple[int, dict[str, str]]:
        """
        Convert an error into a (status, JSON body) pair.

        Unknown exceptions collapse to a generic 500 so nothing internal leaks.
        """
        if isinstance(error, (QueryError, InvalidParameterError)):
            message = getattr(error, "public_message", None) or str(error)
            return error.status_code, {"error": message}
        return InternalError.status_code, {"error": InternalError.public_message}

