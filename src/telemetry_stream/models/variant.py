"""
Wire-Format Variants
====================

Closed set of frame encodings observed on the telemetry link.

The active variant is chosen per session at configuration time; it is
never auto-detected from the stream.
"""

from enum import Enum


class Variant(str, Enum):
    """
    Supported wire-format encodings.
    
    Attributes:
        TIMESTAMPED_CSV: "[2024/12/22 (Sunday) 15:34:09] f1,...,f18"
        KEY_VALUE: "[accel_x:0.1,gps_satellites:7,...]"
        CSV_INLINE_RSSI: "[123456:f1,...,f14],rssi:-70"
    """
    
    TIMESTAMPED_CSV = "timestamped_csv"
    KEY_VALUE = "key_value"
    CSV_INLINE_RSSI = "csv_inline_rssi"


class MetadataMode(str, Enum):
    """
    Where signal-quality metadata travels.
    
    Attributes:
        LINES: Separate "Message: ", "RSSI: " and "Snr: " lines after the
            body; frames are line-delimited and go through the correlator
        INLINE: Metadata (if any) inside the bracketed frame itself;
            frames are bracket-delimited and decoded directly
    """
    
    LINES = "lines"
    INLINE = "inline"


def default_metadata_mode(variant: Variant) -> MetadataMode:
    """Metadata mode used by a variant unless configured otherwise."""
    if variant == Variant.TIMESTAMPED_CSV:
        return MetadataMode.LINES
    return MetadataMode.INLINE
