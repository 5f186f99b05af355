"""Utility modules for the soil telemetry pipeline."""

from .logging import setup_logging, get_logger
from .exceptions import (
    PipelineError,
    RequestValidationError,
    ConfigurationError,
    UpstreamError,
    NoDataError,
    ColumnDetectionError,
    PipelineCancelledError,
)
from .deadline import Deadline

__all__ = [
    "setup_logging",
    "get_logger",
    "PipelineError",
    "RequestValidationError",
    "ConfigurationError",
    "UpstreamError",
    "NoDataError",
    "ColumnDetectionError",
    "PipelineCancelledError",
    "Deadline",
]
