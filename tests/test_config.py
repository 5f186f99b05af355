"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from soilsense.config import PipelineConfig
from soilsense.main import DEFAULT_CONFIG_PATH
from soilsense.utils.exceptions import ConfigurationError


class TestPipelineConfig:
    def test_load_shipped_yaml(self):
        config = PipelineConfig.from_yaml(DEFAULT_CONFIG_PATH)

        assert config.upstream.base_url == "https://www.irrimaxlive.com/api/"
        assert config.upstream.api_key is None
        assert config.defaults.moisture_depths == [6, 22]
        assert config.defaults.temperature_depth == 4
        assert config.aggregation.trend_windows_days == [7, 30]
        assert config.channels.temperature.match_inch_labels
        assert not config.channels.moisture.match_inch_labels

    def test_defaults_without_file(self):
        config = PipelineConfig()

        assert config.defaults.timezone == "America/Chicago"
        assert config.channels.moisture.type_letters == ["A"]
        assert not config.channels.temperature.detect_units

    def test_with_api_key_copies(self):
        config = PipelineConfig()
        keyed = config.with_api_key("secret")

        assert keyed.upstream.api_key == "secret"
        assert config.upstream.api_key is None

    def test_api_key_not_in_repr(self):
        keyed = PipelineConfig().with_api_key("secret")
        assert "secret" not in repr(keyed)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            PipelineConfig.from_yaml(tmp_path / "absent.yaml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert PipelineConfig.from_yaml(path) == PipelineConfig()

    def test_partial_override(self, tmp_path):
        path = tmp_path / "site.yaml"
        path.write_text("defaults:\n  timezone: Asia/Kolkata\n  moisture_days: 14\n")

        config = PipelineConfig.from_yaml(path)
        assert config.defaults.timezone == "Asia/Kolkata"
        assert config.defaults.moisture_days == 14
        assert config.defaults.moisture_depths == [6, 22]

    def test_unknown_section_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(reporting={"format": "xml"})

    def test_invalid_trend_window(self):
        with pytest.raises(ValidationError):
            PipelineConfig(aggregation={"trend_windows_days": [0]})

    def test_unknown_channel(self):
        with pytest.raises(ConfigurationError):
            PipelineConfig().get_channel("salinity")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("defaults: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            PipelineConfig.from_yaml(path)
