"""
Abstract base classes for pipeline components.

These define the interfaces that all pipeline components must implement,
ensuring consistency and enabling easy testing through dependency injection.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Optional

from soilsense.config import PipelineConfig
from soilsense.models import ColumnDescriptor, ReadingSet
from soilsense.utils import Deadline


class PipelineComponent(ABC):
    """Base class for all pipeline components."""

    def __init__(self, config: PipelineConfig):
        """Initialize component with pipeline configuration."""
        self.config = config

    @abstractmethod
    def execute(self, *args, **kwargs) -> Any:
        """Execute the component's main functionality."""
        pass


class IngestionComponent(PipelineComponent):
    """Abstract base for upstream fetch components."""

    @abstractmethod
    def execute(
        self,
        sensor_name: str,
        since: datetime,
        deadline: Optional[Deadline] = None
    ) -> str:
        """
        Fetch raw CSV text for a sensor.

        Args:
            sensor_name: Logger name at the upstream service
            since: Earliest instant to request
            deadline: Optional caller deadline bounding the fetch

        Returns:
            Raw CSV text
        """
        pass


class TransformationComponent(PipelineComponent):
    """Abstract base for CSV-to-readings normalization components."""

    @abstractmethod
    def execute(self, csv_text: str, channel: str, tz_name: str) -> "NormalizedTable":
        """
        Normalize raw CSV into recognized columns and readings.

        Args:
            csv_text: Raw CSV from ingestion
            channel: Channel type (moisture or temperature)
            tz_name: IANA zone used to read wall-clock stamps

        Returns:
            Header, recognized columns and readings
        """
        pass


class AggregationComponent(PipelineComponent):
    """Abstract base for window aggregation components."""

    @abstractmethod
    def execute(self, *args, **kwargs) -> Any:
        """Aggregate normalized readings into per-depth results."""
        pass


class NormalizedTable:
    """Output of the transformation step."""

    def __init__(self, header: List[str], columns: List[ColumnDescriptor], reading_set: ReadingSet):
        self.header = header
        self.columns = columns
        self.reading_set = reading_set
