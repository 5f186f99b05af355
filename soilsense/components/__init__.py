"""Pipeline components for soil telemetry processing."""

from .base import (
    PipelineComponent,
    IngestionComponent,
    TransformationComponent,
    AggregationComponent,
    NormalizedTable,
)

from .ingestion import IrrimaxIngestionComponent
from .transformation import CsvNormalizationComponent
from .aggregation import WindowAggregationComponent

__all__ = [
    "PipelineComponent",
    "IngestionComponent",
    "TransformationComponent",
    "AggregationComponent",
    "NormalizedTable",
    "IrrimaxIngestionComponent",
    "CsvNormalizationComponent",
    "WindowAggregationComponent",
]
