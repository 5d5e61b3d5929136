"""
Decoding Module
===============

Wire-format decoding and metadata correlation.

    - FrameDecoder: Variant strategy (create_decoder() picks one per session)
    - MetadataCorrelator: Joins "Message: ", "RSSI: " and "Snr: " lines
"""

from telemetry_stream.decoding.decoders import (
    FrameDecoder,
    InlineRssiCsvDecoder,
    KeyValueDecoder,
    TimestampedCsvDecoder,
    create_decoder,
)
from telemetry_stream.decoding.correlator import CorrelatorState, MetadataCorrelator


__all__ = [
    "FrameDecoder",
    "TimestampedCsvDecoder",
    "KeyValueDecoder",
    "InlineRssiCsvDecoder",
    "create_decoder",
    "CorrelatorState",
    "MetadataCorrelator",
]
