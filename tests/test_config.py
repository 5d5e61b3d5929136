"""
Configuration Tests
===================
"""

import pytest
from pydantic import ValidationError

from telemetry_stream.config import (
    AggregationConfig,
    Settings,
    StreamConfig,
    load_config,
)
from telemetry_stream.main import apply_args, build_parser
from telemetry_stream.models.variant import MetadataMode, Variant
from telemetry_stream.signals.aggregator import RssiReduction


class TestDefaults:
    """Tests for default configuration values."""
    
    def test_stream_defaults(self):
        """Defaults match the radio link's usual setup."""
        stream = StreamConfig()
        assert stream.variant == Variant.TIMESTAMPED_CSV
        assert stream.line_terminator == "\r\n"
        assert stream.read_timeout_ms == 100
        assert stream.max_buffer_size == 4096
    
    def test_aggregation_defaults(self):
        """10-sample window at 10Hz."""
        aggregation = AggregationConfig()
        assert aggregation.window_size == 10
        assert aggregation.emit_interval_ms == 100
        assert aggregation.rssi_reduction == RssiReduction.MEAN
    
    @pytest.mark.parametrize(
        "variant,expected",
        [
            (Variant.TIMESTAMPED_CSV, MetadataMode.LINES),
            (Variant.KEY_VALUE, MetadataMode.INLINE),
            (Variant.CSV_INLINE_RSSI, MetadataMode.INLINE),
        ],
    )
    def test_metadata_mode_follows_variant(self, variant, expected):
        """Metadata mode defaults per variant."""
        assert StreamConfig(variant=variant).resolved_metadata_mode() == expected
    
    def test_metadata_mode_override(self):
        """An explicit metadata mode wins."""
        stream = StreamConfig(variant=Variant.KEY_VALUE, metadata_mode="lines")
        assert stream.resolved_metadata_mode() == MetadataMode.LINES
    
    def test_validation(self):
        """Out-of-range values are rejected."""
        with pytest.raises(ValidationError):
            AggregationConfig(window_size=0)
        with pytest.raises(ValidationError):
            StreamConfig(variant="binary")


class TestLoadConfig:
    """Tests for load_config()."""
    
    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in (
            "TELEMETRY_VARIANT",
            "TELEMETRY_WINDOW_SIZE",
            "TELEMETRY_EMIT_INTERVAL_MS",
            "TELEMETRY_SERIAL_PORT",
        ):
            monkeypatch.delenv(name, raising=False)
    
    def test_yaml_file(self, tmp_path):
        """Values come from the YAML file."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "stream:\n"
            "  variant: csv_inline_rssi\n"
            "aggregation:\n"
            "  window_size: 5\n"
            "  rssi_reduction: mode\n"
        )
        
        settings = load_config(str(path))
        
        assert settings.stream.variant == Variant.CSV_INLINE_RSSI
        assert settings.aggregation.window_size == 5
        assert settings.aggregation.rssi_reduction == RssiReduction.MODE
        assert settings.aggregation.emit_interval_ms == 100
    
    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        """Environment variables take precedence."""
        path = tmp_path / "config.yaml"
        path.write_text("aggregation:\n  window_size: 5\n")
        monkeypatch.setenv("TELEMETRY_WINDOW_SIZE", "20")
        monkeypatch.setenv("TELEMETRY_SERIAL_PORT", "/dev/ttyUSB1")
        
        settings = load_config(str(path))
        
        assert settings.aggregation.window_size == 20
        assert settings.serial.port == "/dev/ttyUSB1"
    
    def test_missing_file(self, tmp_path):
        """A missing file falls back to defaults."""
        settings = load_config(str(tmp_path / "absent.yaml"))
        assert settings.aggregation.window_size == 10


class TestCommandLine:
    """Tests for command line overrides."""
    
    def test_args_override_settings(self):
        """Flags win over loaded settings."""
        args = build_parser().parse_args(
            ["--port", "COM5", "--variant", "key_value", "--interval-ms", "0"]
        )
        
        settings = apply_args(Settings(), args)
        
        assert settings.serial.port == "COM5"
        assert settings.stream.variant == Variant.KEY_VALUE
        assert settings.aggregation.emit_interval_ms == 0
        assert settings.aggregation.window_size == 10
