# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for Flowgraph.

All exceptions inherit from FlowgraphError for consistent error handling.
Graph validation findings and connection rejections are returned as data,
never raised; these exceptions cover the fail-fast cases only.
"""

from typing import Optional


class FlowgraphError(Exception):
    """Base exception for all Flowgraph errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[dict] = None
    ):
        """
        Initialize Flowgraph error.

        Args:
            message: Human-readable error message
            status_code: HTTP status code used when surfaced through the API
            details: Additional error details
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for API response."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details
        }


class NotFoundError(FlowgraphError):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str, details: Optional[dict] = None):
        """
        Initialize not found error.

        Args:
            resource: Type of resource (e.g., "Node", "Edge")
            identifier: Resource identifier
            details: Additional error details
        """
        message = f"{resource} not found: {identifier}"
        super().__init__(message, status_code=404, details=details)
        self.resource = resource
        self.identifier = identifier


class ValidationError(FlowgraphError):
    """Input failed validation (bad snapshot, refused node addition)."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, status_code=400, details=details)
        self.field = field


class InvalidGraphError(ValidationError):
    """Graph model integrity violated (dangling edge, duplicate id, self loop)."""
    pass


class ConfigurationError(FlowgraphError):
    """Configuration error."""

    def __init__(self, message: str, config_file: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, status_code=500, details=details)
        self.config_file = config_file


class SchemaError(FlowgraphError):
    """
    Programming error: unknown node kind, missing port schema or executor.

    Not user-correctable, so it is never converted into a validation issue.
    """

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message, status_code=500)
        self.kind = kind


# Error Message Utilities

def sanitize_error_for_user(error: Exception, include_type: bool = False) -> str:
    """
    Sanitize error messages for user display.
    Removes tracebacks and keeps messages short enough for a status overlay.

    Args:
        error: The exception to sanitize
        include_type: Whether to include exception type

    Returns:
        User-friendly error message
    """
    error_msg = str(error).strip() or error.__class__.__name__

    # Limit message length
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."

    if include_type:
        return f"{error.__class__.__name__}: {error_msg}"

    return error_msg
