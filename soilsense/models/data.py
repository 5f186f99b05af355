"""
Pydantic models for data structures used throughout the pipeline.

These models ensure type safety and validation for data flowing between components.
"""

import math
from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator


ChannelType = Literal["moisture", "temperature"]

ResultStatus = Literal[
    "ok",
    "no_data",
    "invalid_request",
    "configuration_error",
    "upstream_error",
    "cancelled",
    "internal_error",
]


class ColumnDescriptor(BaseModel):
    """A header cell recognized as a depth-coded sensor channel."""
    column_index: int = Field(..., ge=0, description="Position of the column in each row")
    physical_depth: float = Field(..., gt=0, description="Installation depth in inches")
    label: str = Field("", description="Header text the column was recognized from")
    channel: Optional[int] = Field(None, description="Channel number, when the header carries one")


class Reading(BaseModel):
    """One CSV row with a resolved timestamp and its numeric column values."""
    timestamp: datetime = Field(..., description="Absolute instant (UTC)")
    values: Dict[int, float] = Field(..., description="Raw value per column index")


class ReadingSet(BaseModel):
    """Readings in input row order plus the detected unit-scale factor."""
    readings: List[Reading] = Field(default_factory=list)
    unit_factor: float = Field(1.0, description="Multiplier applied to every series value")


class SeriesPoint(BaseModel):
    """One unit-scaled sample of a single column."""
    timestamp: datetime
    value: float


class TimedValue(BaseModel):
    """A reported value with its instant and zone-local clock time."""
    value: float
    time: str = Field(..., description="Local clock time, e.g. 2:05 PM")
    timestamp: datetime


class DailyStats(BaseModel):
    """Calendar-day statistics; high/low/average are None when the day is empty."""
    high: Optional[SeriesPoint] = None
    low: Optional[SeriesPoint] = None
    average: Optional[float] = None
    count: int = 0


class TrendSummary(BaseModel):
    """Rolling-window mean and the latest value's distance from it."""
    days: int
    average: float
    delta: float
    count: int


class AggregateResult(BaseModel):
    """Aggregates for one requested depth."""
    requested_depth: float
    mapped_depth: float
    latest: Optional[SeriesPoint] = None
    high: Optional[SeriesPoint] = None
    low: Optional[SeriesPoint] = None
    average: Optional[float] = None
    sample_count: int = 0
    window_average: Optional[float] = None
    trends: Dict[int, TrendSummary] = Field(default_factory=dict)

    @property
    def trend_7d(self) -> Optional[TrendSummary]:
        return self.trends.get(7)

    @property
    def trend_30d(self) -> Optional[TrendSummary]:
        return self.trends.get(30)


class DepthSummary(BaseModel):
    """Moisture result for one requested depth."""
    depth_requested: float
    latest_value: Optional[float] = None
    window_average: Optional[float] = None
    mapped_depth: float


class MoistureReport(BaseModel):
    """Moisture (% VWC) summary across requested depths."""
    kind: Literal["moisture"] = "moisture"
    name: str
    tz: str
    days: int
    depths: List[DepthSummary] = Field(default_factory=list)


class TemperatureReport(BaseModel):
    """Soil temperature summary for one requested depth."""
    kind: Literal["temperature"] = "temperature"
    name: str
    tz: str
    depth_requested: float
    depth_mapped: float
    current: Optional[TimedValue] = None
    high: Optional[TimedValue] = None
    low: Optional[TimedValue] = None
    average: Optional[float] = None
    count: int = 0
    trend_7d: Optional[TrendSummary] = None
    trend_30d: Optional[TrendSummary] = None
    note: Optional[str] = None


class PeekSample(BaseModel):
    """A raw reading rendered for debugging."""
    utc_iso: str
    local: str
    values: Dict[int, float]


class PeekReport(BaseModel):
    """Header, mapped columns and recent readings, for diagnosing new loggers."""
    kind: Literal["peek"] = "peek"
    header: List[str]
    mapped_columns: List[ColumnDescriptor]
    sample: List[PeekSample]


Report = Annotated[
    Union[MoistureReport, TemperatureReport, PeekReport],
    Field(discriminator="kind"),
]


class PipelineRequest(BaseModel):
    """Typed request handed to the pipeline by the HTTP layer or CLI."""
    sensor_name: Optional[str] = Field(None, description="Logger name at IrriMAX Live")
    channel: ChannelType = Field("moisture", description="Channel type to summarize")
    timezone: Optional[str] = Field(None, description="IANA zone; config default when omitted")
    depths: Optional[List[float]] = Field(None, description="Requested depths in inches")
    days: Optional[int] = Field(None, description="Lookback window in days")
    peek: bool = Field(False, description="Return a diagnostic dump instead of a summary")

    @field_validator('days')
    @classmethod
    def clamp_days(cls, v):
        """Lookback windows shorter than a day are raised to one day."""
        if v is None:
            return v
        return max(1, v)

    @field_validator('depths')
    @classmethod
    def finite_positive_depths(cls, v):
        """Drop depths that are not finite positive numbers."""
        if v is None:
            return v
        return [d for d in v if math.isfinite(d) and d > 0]


class PipelineResult(BaseModel):
    """Overall result of one pipeline run, discriminated by status."""
    status: ResultStatus = Field(..., description="Outcome category")
    report: Optional[Report] = Field(None, description="Summary for ok results")
    note: Optional[str] = Field(None, description="Explanation for no_data results")
    error: Optional[str] = Field(None, description="Error message for failed runs")
    header: Optional[List[str]] = Field(None, description="CSV header, when useful for diagnosis")
    upstream_status: Optional[int] = Field(None, description="Upstream HTTP status on upstream_error")
    upstream_body: Optional[str] = Field(None, description="Upstream body snippet on upstream_error")
    execution_time_seconds: float = Field(0.0, description="Total execution time")

    @property
    def success(self) -> bool:
        return self.status in ("ok", "no_data")
