"""
End-to-end tests for the pipeline orchestrator with a stubbed upstream.
"""

import threading
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from soilsense.components import (
    CsvNormalizationComponent,
    IrrimaxIngestionComponent,
    WindowAggregationComponent,
)
from soilsense.main import SoilReportPipeline, parse_depth_list
from soilsense.models import PipelineRequest
from soilsense.utils import Deadline


class TestParseDepthList:
    @pytest.mark.parametrize("text,expected", [
        (None, None),
        ("", None),
        ("  ", None),
        ("6,22", [6.0, 22.0]),
        ("6, x, -3, 0, 12in", [6.0, 12.0]),
        ("x", []),
    ])
    def test_parse(self, text, expected):
        assert parse_depth_list(text) == expected


class TestMoistureRuns:
    def test_default_depths(self, make_pipeline, moisture_csv, fixed_now):
        pipeline = make_pipeline(moisture_csv)
        result = pipeline.execute(PipelineRequest(sensor_name="25x4gcityw"), now=fixed_now)

        assert result.status == "ok"
        assert result.success
        report = result.report
        assert report.kind == "moisture"
        assert report.name == "25x4gcityw"
        assert report.tz == "America/Chicago"
        assert report.days == 30

        shallow, deep = report.depths
        assert shallow.depth_requested == 6
        assert shallow.mapped_depth == 5.9
        assert shallow.latest_value == 31.0
        assert shallow.window_average == 30.0
        assert deep.depth_requested == 22
        assert deep.mapped_depth == 22.4
        assert deep.latest_value == 55.0
        assert deep.window_average == 52.3

    def test_requests_lookback_from_upstream(self, make_pipeline, moisture_csv, fixed_now):
        pipeline = make_pipeline(moisture_csv)
        pipeline.execute(PipelineRequest(sensor_name="logger", days=7), now=fixed_now)

        name, since = pipeline.ingestion.calls[0]
        assert name == "logger"
        assert since == fixed_now - timedelta(days=7)

    def test_short_window_drops_older_rows(self, make_pipeline, moisture_csv, fixed_now):
        pipeline = make_pipeline(moisture_csv)
        request = PipelineRequest(sensor_name="logger", depths=[6], days=2)
        result = pipeline.execute(request, now=fixed_now)

        # 06-14 10:00 CDT and 06-15 10:00 CDT fall within two days of FIXED_NOW
        assert result.report.depths[0].window_average == 30.0

    def test_days_clamped_to_one(self, make_pipeline, moisture_csv, fixed_now):
        pipeline = make_pipeline(moisture_csv)
        result = pipeline.execute(PipelineRequest(sensor_name="logger", days=0), now=fixed_now)

        assert result.report.days == 1

    def test_latest_value_outside_lookback(self, make_pipeline, moisture_csv, fixed_now):
        pipeline = make_pipeline(moisture_csv)
        request = PipelineRequest(sensor_name="logger", depths=[6], days=1)
        result = pipeline.execute(request, now=fixed_now + timedelta(days=5))

        depth = result.report.depths[0]
        assert depth.latest_value == 31.0
        assert depth.window_average is None

    def test_out_of_range_row_skipped(self, make_pipeline, fixed_now):
        csv_text = "Date Time,A1(15)\n0001-01-01 00:00:00,0.30\n2024-06-15 10:00:00,0.31\n"
        result = make_pipeline(csv_text).execute(PipelineRequest(sensor_name="logger", depths=[6]), now=fixed_now)

        assert result.status == "ok"
        assert result.report.depths[0].latest_value == 31.0
        assert result.report.depths[0].window_average == 31.0

    def test_peek(self, make_pipeline, moisture_csv, fixed_now):
        pipeline = make_pipeline(moisture_csv)
        result = pipeline.execute(PipelineRequest(sensor_name="logger", peek=True), now=fixed_now)

        assert result.status == "ok"
        report = result.report
        assert report.kind == "peek"
        assert report.header[2] == "A1(15)"
        assert [c.column_index for c in report.mapped_columns] == [2, 3]
        assert len(report.sample) == 2
        assert report.sample[-1].utc_iso == "2024-06-15T15:00:00Z"
        assert report.sample[-1].local == "6/15/24, 10:00 AM"
        assert report.sample[-1].values == {2: 0.31, 3: 0.55}

    def test_idempotent(self, make_pipeline, moisture_csv, fixed_now):
        pipeline = make_pipeline(moisture_csv)
        request = PipelineRequest(sensor_name="logger", depths=[6, 22, 40])

        first = pipeline.execute(request, now=fixed_now)
        second = pipeline.execute(request, now=fixed_now)

        exclude = {"execution_time_seconds"}
        assert first.model_dump(exclude=exclude) == second.model_dump(exclude=exclude)


class TestTemperatureRuns:
    def test_today_and_trends(self, make_pipeline, temperature_csv, fixed_now):
        pipeline = make_pipeline(temperature_csv)
        request = PipelineRequest(sensor_name="logger", channel="temperature")
        result = pipeline.execute(request, now=fixed_now)

        assert result.status == "ok"
        report = result.report
        assert report.kind == "temperature"
        assert report.depth_requested == 4
        assert report.depth_mapped == 3.9

        assert report.current.value == 60.0
        assert report.current.time == "6:00 PM"
        assert report.high.value == 85.0
        assert report.high.time == "2:00 PM"
        assert report.low.value == 60.0
        assert report.low.time == "6:00 PM"
        assert report.average == 71.7
        assert report.count == 3
        assert report.note is None

        assert report.trend_7d.average == 69.8
        assert report.trend_7d.delta == -9.7
        assert report.trend_7d.count == 4
        assert report.trend_30d.average == 67.8
        assert report.trend_30d.delta == -7.8
        assert report.trend_30d.count == 5

    def test_deeper_column_selected(self, make_pipeline, temperature_csv, fixed_now):
        pipeline = make_pipeline(temperature_csv)
        request = PipelineRequest(sensor_name="logger", channel="temperature", depths=[12])
        result = pipeline.execute(request, now=fixed_now)

        assert result.report.depth_mapped == 11.8
        assert result.report.current.value == 67.0

    def test_short_lookback_keeps_full_trend_windows(self, make_pipeline, temperature_csv, fixed_now):
        pipeline = make_pipeline(temperature_csv)
        request = PipelineRequest(sensor_name="logger", channel="temperature", days=1)
        result = pipeline.execute(request, now=fixed_now)

        _, since = pipeline.ingestion.calls[0]
        assert since == fixed_now - timedelta(days=30)
        report = result.report
        assert report.average == 71.7
        assert report.trend_7d.average == 69.8
        assert report.trend_7d.count == 4
        assert report.trend_30d.average == 67.8
        assert report.trend_30d.delta == -7.8
        assert report.trend_30d.count == 5

    def test_current_reading_older_than_lookback(self, make_pipeline, temperature_csv, fixed_now):
        pipeline = make_pipeline(temperature_csv)
        request = PipelineRequest(sensor_name="logger", channel="temperature", days=1)
        result = pipeline.execute(request, now=fixed_now + timedelta(days=3))

        report = result.report
        assert report.current.value == 60.0
        assert report.current.time == "6:00 PM"
        assert report.count == 0
        assert report.note == "No readings today yet"
        assert report.trend_7d.average == 71.7
        assert report.trend_7d.delta == -11.7
        assert report.trend_7d.count == 3

    def test_no_readings_today(self, make_pipeline, temperature_csv, fixed_now):
        pipeline = make_pipeline(temperature_csv)
        request = PipelineRequest(sensor_name="logger", channel="temperature")
        result = pipeline.execute(request, now=fixed_now + timedelta(days=1))

        assert result.status == "ok"
        assert result.report.count == 0
        assert result.report.high is None
        assert result.report.current.value == 60.0
        assert result.report.note == "No readings today yet"


class TestNoData:
    def test_empty_csv(self, make_pipeline, fixed_now):
        result = make_pipeline("").execute(PipelineRequest(sensor_name="logger"), now=fixed_now)

        assert result.status == "no_data"
        assert result.success
        assert result.note == "No data (empty CSV)"
        assert result.report is None

    def test_no_columns_carries_header(self, make_pipeline, fixed_now):
        csv_text = "Date Time,V1,S1(15)\n2024-06-15 10:00:00,3.9,1.2\n"
        result = make_pipeline(csv_text).execute(PipelineRequest(sensor_name="logger"), now=fixed_now)

        assert result.status == "no_data"
        assert "No A#(cm) sensor columns detected" in result.note
        assert result.header == ["Date Time", "V1", "S1(15)"]


class TestErrors:
    def test_missing_name(self, make_pipeline, moisture_csv):
        pipeline = make_pipeline(moisture_csv)
        result = pipeline.execute(PipelineRequest())

        assert result.status == "invalid_request"
        assert not result.success
        assert "name" in result.error
        assert pipeline.ingestion.calls == []

    def test_unknown_time_zone(self, make_pipeline, moisture_csv):
        pipeline = make_pipeline(moisture_csv)
        result = pipeline.execute(PipelineRequest(sensor_name="logger", timezone="Mars/Olympus"))

        assert result.status == "invalid_request"
        assert pipeline.ingestion.calls == []

    def test_no_valid_depths(self, make_pipeline, moisture_csv):
        pipeline = make_pipeline(moisture_csv)
        result = pipeline.execute(PipelineRequest(sensor_name="logger", depths=[-1, 0]))

        assert result.status == "invalid_request"

    def test_components_not_set(self, sample_config):
        result = SoilReportPipeline(sample_config).execute(PipelineRequest(sensor_name="logger"))

        assert result.status == "configuration_error"

    def test_missing_api_key(self, sample_config):
        pipeline = SoilReportPipeline.with_default_components(sample_config.with_api_key(None))
        result = pipeline.execute(PipelineRequest(sensor_name="logger"))

        assert result.status == "configuration_error"
        assert "IRRIMAX_API_KEY" in result.error

    def test_upstream_failure(self, sample_config):
        pipeline = SoilReportPipeline(sample_config)
        pipeline.set_components(
            IrrimaxIngestionComponent(sample_config),
            CsvNormalizationComponent(sample_config),
            WindowAggregationComponent(sample_config),
        )
        mock_resp = MagicMock(status_code=401, ok=False, text="invalid key")

        with patch("soilsense.components.ingestion.requests.get", return_value=mock_resp):
            result = pipeline.execute(PipelineRequest(sensor_name="logger"))

        assert result.status == "upstream_error"
        assert result.upstream_status == 401
        assert result.upstream_body == "invalid key"
        assert "test-key" not in result.model_dump_json()

    def test_unexpected_failure(self, make_pipeline, moisture_csv):
        pipeline = make_pipeline(moisture_csv)
        pipeline.transformation.execute = MagicMock(side_effect=RuntimeError("disk on fire"))

        result = pipeline.execute(PipelineRequest(sensor_name="logger"))

        assert result.status == "internal_error"
        assert not result.success
        assert "disk on fire" in result.error

    def test_cancelled(self, make_pipeline, moisture_csv):
        cancel = threading.Event()
        cancel.set()
        pipeline = make_pipeline(moisture_csv)
        result = pipeline.execute(PipelineRequest(sensor_name="logger"), deadline=Deadline(cancel_event=cancel))

        assert result.status == "cancelled"
        assert result.report is None
