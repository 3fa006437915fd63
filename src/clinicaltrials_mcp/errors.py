"""
Structured errors surfaced to MCP callers.

Every failure leaving a tool handler is an ``McpToolError`` carrying a
machine-readable code, a message and optional details, so the caller can
tell a query that is too broad (narrow it) from an upstream outage (retry
later).
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import ValidationError

from clinicaltrials_mcp.data_sources.base_client import DataSourceError


class ErrorCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class McpToolError(Exception):
    """Base exception for errors reported back through a tool result."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        """Error envelope rendered into the tool's text content."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class StudyLimitExceededError(McpToolError):
    """Raised when a trend analysis query matches more studies than allowed."""

    def __init__(self, total_studies: int, limit: int):
        self.total_studies = total_studies
        self.limit = limit
        super().__init__(
            ErrorCode.INVALID_INPUT,
            f"The query returned {total_studies} studies, which exceeds the "
            f"limit of {limit} for analysis. Please provide a more specific query.",
            {"totalStudies": total_studies, "limit": limit},
        )


def to_tool_error(exc: Exception) -> McpToolError:
    """Map any exception raised by tool logic onto an McpToolError."""
    if isinstance(exc, McpToolError):
        return exc
    if isinstance(exc, ValidationError):
        return McpToolError(
            ErrorCode.VALIDATION_ERROR,
            "Invalid input parameters.",
            {"issues": exc.errors(include_url=False, include_context=False)},
        )
    if isinstance(exc, DataSourceError):
        if exc.status_code == 404:
            return McpToolError(
                ErrorCode.NOT_FOUND, str(exc), {"status": exc.status_code}
            )
        return McpToolError(
            ErrorCode.SERVICE_UNAVAILABLE, str(exc), {"status": exc.status_code}
        )
    return McpToolError(
        ErrorCode.INTERNAL_ERROR,
        "An unexpected error occurred.",
        {"originalError": str(exc)},
    )
