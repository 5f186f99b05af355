"""
CSV normalization component for the soil telemetry pipeline.

Turns the raw readings export into recognized depth columns and timestamped
readings: parse -> identify columns -> resolve timestamps -> build readings.
"""

from soilsense.components.base import NormalizedTable, TransformationComponent
from soilsense.components.columns import identify_columns
from soilsense.components.csv_parser import parse_csv
from soilsense.components.readings import build_readings
from soilsense.config import PipelineConfig
from soilsense.utils import get_logger, NoDataError


class CsvNormalizationComponent(TransformationComponent):
    """Concrete implementation of transformation component for IrriMAX CSV exports."""

    def __init__(self, config: PipelineConfig):
        """
        Initialize transformation component.

        Args:
            config: Pipeline configuration
        """
        super().__init__(config)
        self.logger = get_logger(__name__)
        self._reset_stats()

    def _reset_stats(self) -> None:
        self.stats = {
            "input_rows": 0,
            "columns_recognized": 0,
            "rows_seen": 0,
            "rows_kept": 0,
            "rows_bad_timestamp": 0,
            "rows_without_values": 0,
            "cells_skipped": 0,
        }

    def execute(self, csv_text: str, channel: str, tz_name: str) -> NormalizedTable:
        """
        Normalize raw CSV text.

        Args:
            csv_text: Raw CSV from ingestion
            channel: Channel type (moisture or temperature)
            tz_name: IANA zone used to read wall-clock stamps

        Returns:
            Header, recognized columns and readings

        Raises:
            NoDataError: If the CSV is empty or holds no parseable readings
            ColumnDetectionError: If no sensor column is recognized
        """
        self._reset_stats()
        self.logger.info(f"Starting {channel} CSV normalization")

        rows = parse_csv(csv_text)
        self.stats["input_rows"] = len(rows)
        if not rows:
            self.logger.warning("Upstream returned an empty CSV")
            raise NoDataError("No data (empty CSV)")

        header = [str(h or '').strip() for h in rows[0]]
        spec = self.config.get_channel(channel)

        columns = identify_columns(header, spec)
        self.stats["columns_recognized"] = len(columns)

        reading_set = build_readings(
            rows,
            columns,
            tz_name,
            date_index=0,
            detect_units=spec.detect_units,
            stats=self.stats,
        )

        self._log_transformation_summary()

        if not reading_set.readings:
            self.logger.warning(f"No {channel} readings parsed from {len(rows) - 1} data rows")
            raise NoDataError(f"No {channel} readings parsed.", header=header)

        return NormalizedTable(header=header, columns=columns, reading_set=reading_set)

    def _log_transformation_summary(self) -> None:
        """Log comprehensive transformation statistics."""
        self.logger.info("=== Normalization Summary ===")
        for key, value in self.stats.items():
            self.logger.info(f"{key.replace('_', ' ').title()}: {value}")

        if self.stats["rows_seen"] > 0:
            retention = (self.stats["rows_kept"] / self.stats["rows_seen"]) * 100
            self.logger.info(f"Row Retention Rate: {retention:.1f}%")
