"""Configuration models for the soil telemetry pipeline."""

from .models import (
    PipelineConfig,
    PipelineInfo,
    UpstreamSettings,
    DefaultSettings,
    AggregationSettings,
    ChannelSpec,
    ChannelSettings,
)

__all__ = [
    "PipelineConfig",
    "PipelineInfo",
    "UpstreamSettings",
    "DefaultSettings",
    "AggregationSettings",
    "ChannelSpec",
    "ChannelSettings",
]
