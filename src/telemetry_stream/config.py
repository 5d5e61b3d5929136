"""
telemetry-stream Configuration
==============================

This module handles configuration loading for stream sessions.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    TELEMETRY_VARIANT           -> stream.variant
    TELEMETRY_READ_TIMEOUT_MS   -> stream.read_timeout_ms
    TELEMETRY_MAX_BUFFER_SIZE   -> stream.max_buffer_size
    TELEMETRY_WINDOW_SIZE       -> aggregation.window_size
    TELEMETRY_EMIT_INTERVAL_MS  -> aggregation.emit_interval_ms
    TELEMETRY_SERIAL_PORT       -> serial.port
    TELEMETRY_BAUD_RATE         -> serial.baud_rate
    TELEMETRY_JSONL_PATH        -> output.jsonl_path
    TELEMETRY_LOG_LEVEL         -> logging.level

Example:
    from telemetry_stream.config import settings

    print(settings.stream.variant)
    print(settings.aggregation.window_size)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from telemetry_stream.models.variant import MetadataMode, Variant, default_metadata_mode
from telemetry_stream.signals.aggregator import RssiReduction


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class StreamConfig(BaseModel):
    """Byte source and framing configuration."""

    variant: Variant = Field(
        default=Variant.TIMESTAMPED_CSV,
        description="Active wire-format variant",
    )
    metadata_mode: Optional[MetadataMode] = Field(
        default=None,
        description="'lines' or 'inline' (None = variant default)",
    )
    line_terminator: str = Field(
        default="\r\n",
        min_length=1,
        description="Terminator for line-delimited frames",
    )
    read_timeout_ms: int = Field(
        default=100,
        ge=1,
        description="Byte source read timeout in milliseconds",
    )
    read_chunk_size: int = Field(
        default=1024,
        ge=1,
        description="Maximum bytes requested per read",
    )
    idle_backoff_ms: int = Field(
        default=10,
        ge=0,
        description="Sleep after a read timeout before retrying",
    )
    max_buffer_size: int = Field(
        default=4096,
        ge=64,
        description="Maximum buffered characters before forced resynchronization",
    )

    def resolved_metadata_mode(self) -> MetadataMode:
        """Metadata mode in effect for this stream."""
        return self.metadata_mode or default_metadata_mode(self.variant)


class AggregationConfig(BaseModel):
    """Windowed aggregation configuration."""

    window_size: int = Field(
        default=10,
        ge=1,
        description="Aggregation window capacity (samples)",
    )
    emit_interval_ms: int = Field(
        default=100,
        ge=0,
        description="Minimum time between emitted records (100ms = 10Hz)",
    )
    rssi_reduction: RssiReduction = Field(
        default=RssiReduction.MEAN,
        description="Reduction for rssi: 'mean' (rounded) or 'mode'",
    )
    log_every_n_records: int = Field(
        default=100,
        ge=1,
        description="Log a summary every N emitted records",
    )


class SerialConfig(BaseModel):
    """Serial port configuration (used by the command line entry point)."""

    port: Optional[str] = Field(default=None, description="Serial device path")
    baud_rate: int = Field(default=115200, ge=1, description="Baud rate")


class OutputConfig(BaseModel):
    """Record delivery configuration."""

    jsonl_path: Optional[str] = Field(
        default=None,
        description="Append records to this JSON lines file",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for telemetry-stream.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    stream: StreamConfig = Field(default_factory=StreamConfig)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    serial: SerialConfig = Field(default_factory=SerialConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Stream settings
    if env_variant := os.environ.get("TELEMETRY_VARIANT"):
        config_data.setdefault("stream", {})["variant"] = env_variant
    if env_timeout := os.environ.get("TELEMETRY_READ_TIMEOUT_MS"):
        config_data.setdefault("stream", {})["read_timeout_ms"] = int(env_timeout)
    if env_buffer := os.environ.get("TELEMETRY_MAX_BUFFER_SIZE"):
        config_data.setdefault("stream", {})["max_buffer_size"] = int(env_buffer)

    # Aggregation settings
    if env_window := os.environ.get("TELEMETRY_WINDOW_SIZE"):
        config_data.setdefault("aggregation", {})["window_size"] = int(env_window)
    if env_interval := os.environ.get("TELEMETRY_EMIT_INTERVAL_MS"):
        config_data.setdefault("aggregation", {})["emit_interval_ms"] = int(env_interval)

    # Serial settings
    if env_port := os.environ.get("TELEMETRY_SERIAL_PORT"):
        config_data.setdefault("serial", {})["port"] = env_port
    if env_baud := os.environ.get("TELEMETRY_BAUD_RATE"):
        config_data.setdefault("serial", {})["baud_rate"] = int(env_baud)

    # Output settings
    if env_jsonl := os.environ.get("TELEMETRY_JSONL_PATH"):
        config_data.setdefault("output", {})["jsonl_path"] = env_jsonl

    # Logging settings
    if env_log := os.environ.get("TELEMETRY_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
