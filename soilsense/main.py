"""
Main pipeline orchestrator for soil telemetry summaries.

This module coordinates the execution of all pipeline components:
ingestion -> normalization -> aggregation -> report
"""

import argparse
import os
import sys
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from soilsense.components import (
    CsvNormalizationComponent,
    IngestionComponent,
    IrrimaxIngestionComponent,
    TransformationComponent,
    WindowAggregationComponent,
)
from soilsense.components.readings import parse_number
from soilsense.components.reporting import (
    build_moisture_report,
    build_peek_report,
    build_temperature_report,
)
from soilsense.components.timestamps import get_zone
from soilsense.config import PipelineConfig
from soilsense.models import PipelineRequest, PipelineResult
from soilsense.utils import (
    ConfigurationError,
    Deadline,
    NoDataError,
    PipelineCancelledError,
    RequestValidationError,
    UpstreamError,
    get_logger,
    setup_logging,
)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "default.yaml"


def parse_depth_list(text: Optional[str]) -> Optional[List[float]]:
    """
    Parse a comma-separated depth list such as ``"6,22"``.

    Tokens that are not positive numbers are dropped. Returns None for
    missing input so the configured default applies.
    """
    if text is None or not str(text).strip():
        return None
    depths = []
    for token in str(text).split(","):
        value = parse_number(token.strip())
        if value is not None and value > 0:
            depths.append(value)
    return depths


class SoilReportPipeline:
    """Main pipeline orchestrator that coordinates all components."""

    def __init__(self, config: PipelineConfig):
        """
        Initialize pipeline with configuration.

        Args:
            config: Pipeline configuration, credential included
        """
        self.config = config
        self.logger = get_logger(__name__)

        # Components will be injected (dependency injection pattern)
        self.ingestion: Optional[IngestionComponent] = None
        self.transformation: Optional[TransformationComponent] = None
        self.aggregation: Optional[WindowAggregationComponent] = None

    @classmethod
    def with_default_components(cls, config: PipelineConfig) -> "SoilReportPipeline":
        """Build a pipeline wired to IrriMAX Live."""
        pipeline = cls(config)
        pipeline.set_components(
            IrrimaxIngestionComponent(config),
            CsvNormalizationComponent(config),
            WindowAggregationComponent(config),
        )
        return pipeline

    def set_components(
        self,
        ingestion: IngestionComponent,
        transformation: TransformationComponent,
        aggregation: WindowAggregationComponent
    ):
        """
        Set pipeline components (dependency injection).

        Args:
            ingestion: Upstream fetch component
            transformation: CSV normalization component
            aggregation: Window aggregation component
        """
        self.ingestion = ingestion
        self.transformation = transformation
        self.aggregation = aggregation

    def execute(
        self,
        request: PipelineRequest,
        now: Optional[datetime] = None,
        deadline: Optional[Deadline] = None
    ) -> PipelineResult:
        """
        Execute the complete pipeline for one request.

        Args:
            request: Typed request parameters
            now: Reference instant for windows; defaults to the current time
            deadline: Optional caller deadline / cancellation signal

        Returns:
            Result whose status tells success, empty data and each error kind apart
        """
        start_time = time.time()

        try:
            if not all([self.ingestion, self.transformation, self.aggregation]):
                raise ConfigurationError("All pipeline components must be set before execution")

            report = self._run(request, now, deadline)
            return PipelineResult(
                status="ok",
                report=report,
                execution_time_seconds=time.time() - start_time,
            )

        except RequestValidationError as e:
            return self._failure("invalid_request", e, start_time)
        except ConfigurationError as e:
            return self._failure("configuration_error", e, start_time)
        except UpstreamError as e:
            return self._failure(
                "upstream_error", e, start_time,
                upstream_status=e.status_code,
                upstream_body=e.body,
            )
        except PipelineCancelledError as e:
            return self._failure("cancelled", e, start_time)
        except NoDataError as e:
            self.logger.warning(f"No data for {request.sensor_name}: {e}")
            return PipelineResult(
                status="no_data",
                note=str(e),
                header=e.header,
                execution_time_seconds=time.time() - start_time,
            )
        except Exception as e:
            self.logger.exception(f"Unexpected failure for {request.sensor_name}")
            return PipelineResult(
                status="internal_error",
                error=f"Pipeline execution failed: {e}",
                execution_time_seconds=time.time() - start_time,
            )

    def _failure(self, status: str, error: Exception, start_time: float, **extra) -> PipelineResult:
        self.logger.error(f"Pipeline execution failed ({status}): {error}")
        return PipelineResult(
            status=status,
            error=str(error),
            execution_time_seconds=time.time() - start_time,
            **extra,
        )

    def _run(self, request: PipelineRequest, now: Optional[datetime], deadline: Optional[Deadline]):
        defaults = self.config.defaults
        if not request.sensor_name:
            raise RequestValidationError("Missing ?name=LOGGER_NAME")

        tz_name = request.timezone or defaults.timezone
        get_zone(tz_name)

        channel = request.channel
        if channel == "moisture":
            depths = request.depths if request.depths is not None else list(defaults.moisture_depths)
            days = request.days or defaults.moisture_days
        else:
            depths = request.depths[:1] if request.depths is not None else [defaults.temperature_depth]
            days = request.days or defaults.temperature_days
        if not depths:
            raise RequestValidationError("No valid depths requested; depths must be positive numbers")

        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        since = now - timedelta(days=days)
        fetch_days = days
        if channel == "temperature":
            # trends need their full windows even when the lookback is shorter
            fetch_days = max([days] + list(self.config.aggregation.trend_windows_days))

        self.logger.info(f"Starting pipeline: {self.config.pipeline.name} ({channel}, {request.sensor_name})")

        # Step 1: Upstream fetch
        csv_text = self.ingestion.execute(request.sensor_name, now - timedelta(days=fetch_days), deadline)

        # Step 2: Normalization
        if deadline is not None:
            deadline.check("normalization")
        table = self.transformation.execute(csv_text, channel, tz_name)

        if request.peek:
            return build_peek_report(
                table.header,
                table.columns,
                table.reading_set,
                tz_name,
                sample_size=self.config.aggregation.peek_sample_size,
            )

        # Step 3: Aggregation
        if deadline is not None:
            deadline.check("aggregation")
        results = self.aggregation.execute(
            table.reading_set,
            table.columns,
            depths,
            tz_name,
            now=now,
            since=since,
        )

        # Step 4: Report
        if channel == "moisture":
            return build_moisture_report(request.sensor_name, tz_name, days, results)
        return build_temperature_report(request.sensor_name, tz_name, results[0])


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point: summarize one logger and print the result as JSON."""
    parser = argparse.ArgumentParser(description="Summarize IrriMAX Live soil probe readings")
    parser.add_argument("--name", required=True, help="Logger name at IrriMAX Live")
    parser.add_argument("--channel", choices=["moisture", "temperature"], default="moisture")
    parser.add_argument("--tz", default=None, help="IANA time zone of the site")
    parser.add_argument("--depths", default=None, help="Comma-separated depths in inches")
    parser.add_argument("--days", type=int, default=None, help="Lookback window in days")
    parser.add_argument("--peek", action="store_true", help="Dump header, columns and recent rows")
    parser.add_argument("--timeout", type=float, default=None, help="Overall deadline in seconds")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH)
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")
    args = parser.parse_args(argv)

    setup_logging(args.log_level, log_file=args.log_file)

    try:
        config = PipelineConfig.from_yaml(args.config) if args.config.exists() else PipelineConfig()
    except (ConfigurationError, ValidationError) as e:
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        return 2
    config = config.with_api_key(os.environ.get("IRRIMAX_API_KEY") or config.upstream.api_key)

    request = PipelineRequest(
        sensor_name=args.name,
        channel=args.channel,
        timezone=args.tz,
        depths=parse_depth_list(args.depths),
        days=args.days,
        peek=args.peek,
    )
    deadline = Deadline(timeout_seconds=args.timeout) if args.timeout else None

    pipeline = SoilReportPipeline.with_default_components(config)
    result = pipeline.execute(request, deadline=deadline)

    print(result.model_dump_json(indent=2, exclude_none=True))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
