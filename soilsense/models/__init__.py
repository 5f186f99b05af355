"""Data models for the soil telemetry pipeline."""

from .data import (
    ColumnDescriptor,
    Reading,
    ReadingSet,
    SeriesPoint,
    TimedValue,
    DailyStats,
    TrendSummary,
    AggregateResult,
    DepthSummary,
    MoistureReport,
    TemperatureReport,
    PeekSample,
    PeekReport,
    PipelineRequest,
    PipelineResult,
    ResultStatus,
)

__all__ = [
    "ColumnDescriptor",
    "Reading",
    "ReadingSet",
    "SeriesPoint",
    "TimedValue",
    "DailyStats",
    "TrendSummary",
    "AggregateResult",
    "DepthSummary",
    "MoistureReport",
    "TemperatureReport",
    "PeekSample",
    "PeekReport",
    "PipelineRequest",
    "PipelineResult",
    "ResultStatus",
]
