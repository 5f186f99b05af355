"""
Pydantic models for pipeline configuration.

These models provide type-safe parsing and validation of the YAML configuration file.
The upstream credential is part of the configuration and is injected by the
caller; nothing in the pipeline reads the process environment.
"""

from pathlib import Path
from typing import Dict, List, Optional, Union
import yaml
from pydantic import BaseModel, Field, field_validator, ConfigDict

from soilsense.utils.exceptions import ConfigurationError


class PipelineInfo(BaseModel):
    """Basic pipeline metadata."""
    name: str = Field("soilsense", description="Pipeline name")
    version: str = Field("1.0.0", description="Pipeline version")


class UpstreamSettings(BaseModel):
    """IrriMAX Live API access."""
    base_url: str = Field("https://www.irrimaxlive.com/api/", description="Readings endpoint")
    api_key: Optional[str] = Field(None, description="IrriMAX Live API key", repr=False)
    timeout_seconds: float = Field(30.0, gt=0, description="HTTP timeout for the readings fetch")
    max_error_body_chars: int = Field(2000, ge=0, description="Upstream error body kept for diagnosis")


class DefaultSettings(BaseModel):
    """Request defaults applied when the caller leaves a parameter out."""
    timezone: str = Field("America/Chicago", description="IANA zone used to read wall-clock stamps")
    moisture_depths: List[float] = Field(default_factory=lambda: [6.0, 22.0], description="Depths in inches")
    moisture_days: int = Field(30, ge=1, description="Moisture lookback window in days")
    temperature_depth: float = Field(4.0, gt=0, description="Temperature depth in inches")
    temperature_days: int = Field(30, ge=1, description="Temperature lookback window in days")


class AggregationSettings(BaseModel):
    """Window aggregation parameters."""
    trend_windows_days: List[int] = Field(default_factory=lambda: [7, 30], description="Rolling trend windows")
    peek_sample_size: int = Field(6, ge=1, description="Readings returned in peek mode")

    @field_validator('trend_windows_days')
    @classmethod
    def positive_windows(cls, v):
        """Rolling windows must be at least one day long."""
        if any(days < 1 for days in v):
            raise ValueError("trend windows must be >= 1 day")
        return v


class ChannelSpec(BaseModel):
    """How to recognize one channel type (moisture or temperature) in a CSV header."""
    type_letters: List[str] = Field(..., min_length=1, description="Header prefixes such as A or T")
    keywords: List[str] = Field(default_factory=list, description="Free-text labels for the fallback rule")
    channel_depth_inches: Dict[int, float] = Field(
        default_factory=dict,
        description="Depth lookup for plain channel labels without an embedded depth"
    )
    detect_units: bool = Field(True, description="Scale fractional (0..1) values to percent")
    match_inch_labels: bool = Field(False, description="Also accept labels such as '4 inches'")


class ChannelSettings(BaseModel):
    """Header recognition per channel type."""
    moisture: ChannelSpec = Field(
        default_factory=lambda: ChannelSpec(
            type_letters=["A"],
            keywords=["apparent", "water content", "moisture", "vwc", "theta", "θ"],
        )
    )
    temperature: ChannelSpec = Field(
        default_factory=lambda: ChannelSpec(
            type_letters=["T"],
            keywords=["temperature", "temp"],
            detect_units=False,
            match_inch_labels=True,
        )
    )


class PipelineConfig(BaseModel):
    """Complete pipeline configuration model."""
    model_config = ConfigDict(extra='forbid')

    pipeline: PipelineInfo = Field(default_factory=PipelineInfo, description="Pipeline metadata")
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings, description="Upstream API settings")
    defaults: DefaultSettings = Field(default_factory=DefaultSettings, description="Request defaults")
    aggregation: AggregationSettings = Field(default_factory=AggregationSettings, description="Aggregation settings")
    channels: ChannelSettings = Field(default_factory=ChannelSettings, description="Header recognition rules")

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "PipelineConfig":
        """Load configuration from YAML file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        return cls(**config_data)

    def with_api_key(self, api_key: Optional[str]) -> "PipelineConfig":
        """Return a copy carrying the given upstream credential."""
        upstream = self.upstream.model_copy(update={"api_key": api_key})
        return self.model_copy(update={"upstream": upstream})

    def get_channel(self, channel: str) -> ChannelSpec:
        """Get header recognition rules for a channel type."""
        if channel == "moisture":
            return self.channels.moisture
        if channel == "temperature":
            return self.channels.temperature
        raise ConfigurationError(f"Unknown channel type: {channel}")
