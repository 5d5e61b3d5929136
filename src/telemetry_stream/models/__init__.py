"""
Data Models
===========

Data models for telemetry-stream.

Models:
    Internal:
        - Sample: Typed telemetry reading (frozen dataclass)
        - Variant, MetadataMode: Wire-format selection
        - DropReason: Why stream input was discarded
    
    Output:
        - OutputRecord: Consumer-facing record (pydantic)
"""

from telemetry_stream.models.sample import (
    CONTINUOUS_FIELDS,
    DISCRETE_FIELDS,
    SAMPLE_FIELDS,
    Sample,
)
from telemetry_stream.models.variant import MetadataMode, Variant, default_metadata_mode
from telemetry_stream.models.drops import DropReason
from telemetry_stream.models.output import OutputRecord

__all__ = [
    # Internal
    "Sample",
    "CONTINUOUS_FIELDS",
    "DISCRETE_FIELDS",
    "SAMPLE_FIELDS",
    "Variant",
    "MetadataMode",
    "default_metadata_mode",
    "DropReason",
    # Output
    "OutputRecord",
]
