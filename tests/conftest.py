"""
Pytest configuration and shared fixtures for testing.

Provides common test fixtures and setup for all test modules.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from soilsense.components import (
    CsvNormalizationComponent,
    IngestionComponent,
    WindowAggregationComponent,
)
from soilsense.config import PipelineConfig
from soilsense.main import SoilReportPipeline


# 2024-06-15 20:00 CDT; "today" in America/Chicago is June 15
FIXED_NOW = datetime(2024, 6, 16, 1, 0, 0, tzinfo=timezone.utc)

MOISTURE_CSV = (
    "Date Time,V1,A1(15),A2(57),T1(15),S1(15)\r\n"
    "2024-06-13 10:00:00,3.9,0.30,0.50,70.1,1.2\r\n"
    "2024-06-14 10:00:00,3.9,0.29,0.52,71.0,1.2\r\n"
    "2024-06-15 10:00:00,3.9,0.31,0.55,72.3,1.2\r\n"
)

TEMPERATURE_CSV = (
    "Date Time,T1(10),T2(30)\n"
    "2024-06-01 12:00:00,60.0,58.0\n"
    "2024-06-10 12:00:00,64.0,60.0\n"
    "2024-06-15 10:00:00,70.0,65.0\n"
    "2024-06-15 14:00:00,85.0,66.0\n"
    "2024-06-15 18:00:00,60.0,67.0\n"
)


class StaticIngestionComponent(IngestionComponent):
    """Ingestion stand-in that returns fixed CSV text and records calls."""

    def __init__(self, config: PipelineConfig, csv_text: str = ""):
        super().__init__(config)
        self.csv_text = csv_text
        self.calls = []

    def execute(self, sensor_name: str, since: datetime, deadline: Optional[object] = None) -> str:
        self.calls.append((sensor_name, since))
        if deadline is not None:
            deadline.check("upstream fetch")
        return self.csv_text


@pytest.fixture
def fixed_now():
    """Reference instant used for window calculations."""
    return FIXED_NOW


@pytest.fixture
def sample_config():
    """Create a test configuration with an injected credential."""
    config_data = {
        "pipeline": {"name": "test_soil_pipeline", "version": "1.0.0"},
        "upstream": {
            "base_url": "https://irrimax.example/api/",
            "api_key": "test-key",
            "timeout_seconds": 10,
            "max_error_body_chars": 50,
        },
        "defaults": {
            "timezone": "America/Chicago",
            "moisture_depths": [6, 22],
            "moisture_days": 30,
            "temperature_depth": 4,
            "temperature_days": 30,
        },
        "aggregation": {"trend_windows_days": [7, 30], "peek_sample_size": 2},
    }
    return PipelineConfig(**config_data)


@pytest.fixture
def moisture_csv():
    """Sentek-style export with fractional VWC in A#(cm) columns."""
    return MOISTURE_CSV


@pytest.fixture
def temperature_csv():
    """Temperature export with three readings on the fixed 'today'."""
    return TEMPERATURE_CSV


@pytest.fixture
def make_pipeline(sample_config):
    """Factory for a pipeline whose upstream returns the given CSV text."""

    def _make(csv_text: str, config: Optional[PipelineConfig] = None) -> SoilReportPipeline:
        cfg = config or sample_config
        pipeline = SoilReportPipeline(cfg)
        pipeline.set_components(
            StaticIngestionComponent(cfg, csv_text),
            CsvNormalizationComponent(cfg),
            WindowAggregationComponent(cfg),
        )
        return pipeline

    return _make
