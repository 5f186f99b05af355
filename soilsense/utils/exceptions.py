"""
Custom exceptions for the soil telemetry pipeline.

Each type maps to one result status, so the HTTP layer can pick a status
code without inspecting messages.
"""

from typing import List, Optional


class PipelineError(Exception):
    """Base exception for all pipeline-related errors."""
    pass


class RequestValidationError(PipelineError):
    """Raised when a request parameter is missing or invalid."""
    pass


class ConfigurationError(PipelineError):
    """Raised when configuration is invalid or a credential is missing."""
    pass


class UpstreamError(PipelineError):
    """Raised when the upstream telemetry API cannot be fetched."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NoDataError(PipelineError):
    """Raised when the upstream data holds nothing usable."""

    def __init__(self, message: str, header: Optional[List[str]] = None):
        super().__init__(message)
        self.header = header


class ColumnDetectionError(NoDataError):
    """Raised when no sensor-depth columns are recognized in the header."""
    pass


class PipelineCancelledError(PipelineError):
    """Raised when the caller's deadline expires or cancellation is requested."""
    pass
