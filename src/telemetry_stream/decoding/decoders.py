"""
Frame Decoders
==============

Convert one frame body (plus correlated metadata) into a typed Sample.

One decoder class per wire-format variant, selected once per session via
create_decoder(). Decoders never raise on bad input: a frame that fails
to decode yields None and the stream carries on.

Variants:
    TimestampedCsvDecoder:
        "[2024/12/22 (Sunday) 15:34:09] f1,f2,...,f18"
        Exactly 18 fields, every one must parse. Strict.
    KeyValueDecoder:
        "[accel_x:0.1,gps_satellites:7,...]"
        Unknown keys ignored, missing keys keep their defaults. Lenient,
        devices may omit sensors.
    InlineRssiCsvDecoder:
        "[123456:f1,...,f14]" optionally followed by ",rssi:-70"
        Missing suffix means rssi = -100.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from telemetry_stream.models.sample import DISCRETE_FIELDS, SAMPLE_FIELDS, U8_MAX, Sample
from telemetry_stream.models.variant import Variant


logger = logging.getLogger(__name__)


# Field order of the 18-value Timestamped-CSV payload
TIMESTAMPED_CSV_FIELDS: Tuple[str, ...] = (
    "accel_x",
    "accel_y",
    "accel_z",
    "gyro_x",
    "gyro_y",
    "gyro_z",
    "imu_temp",
    "bme_temp",
    "bme_pressure",
    "bme_altitude",
    "bme_humidity",
    "gps_fix",
    "gps_fix_quality",
    "gps_lat",
    "gps_lon",
    "gps_speed",
    "gps_altitude",
    "gps_satellites",
)

# Field order of the 14-value payload following the tick in CSV-with-inline-RSSI
INLINE_CSV_FIELDS: Tuple[str, ...] = (
    "accel_x",
    "accel_y",
    "accel_z",
    "gyro_x",
    "gyro_y",
    "gyro_z",
    "imu_temp",
    "bme_temp",
    "bme_pressure",
    "bme_altitude",
    "bme_humidity",
    "gps_lat",
    "gps_lon",
    "gps_satellites",
)

# Signal strength reported when a frame carries no rssi suffix
MISSING_RSSI = -100

_INT_FIELDS = frozenset(DISCRETE_FIELDS) | {"rssi"}


def parse_field(name: str, raw: str):
    """
    Parse one Sample channel value.

    Raises:
        ValueError: If the value does not parse, or a discrete channel
            is outside 0..255
    """
    text = raw.strip()
    if name in _INT_FIELDS:
        value = int(text)
        if name in DISCRETE_FIELDS and not 0 <= value <= U8_MAX:
            raise ValueError(f"{name}={value} outside 0..{U8_MAX}")
        return value
    return float(text)


class FrameDecoder(ABC):
    """
    Base class for variant decoders.

    Attributes:
        variant: Wire-format variant handled by this decoder
        decoded_count: Frames decoded into a Sample
        failed_count: Frames rejected
    """

    variant: Variant

    def __init__(self) -> None:
        self.decoded_count: int = 0
        self.failed_count: int = 0

    def decode(
        self,
        body: str,
        rssi: Optional[int] = None,
        snr: Optional[float] = None,
    ) -> Optional[Sample]:
        """
        Decode a frame body.

        Args:
            body: Frame text
            rssi: Correlated signal strength, if it arrived on its own line
            snr: Correlated signal-to-noise ratio, if it arrived on its own line

        Returns:
            Sample, or None if the frame is malformed
        """
        try:
            sample = self._decode(body.strip(), rssi, snr)
        except (ValueError, IndexError) as e:
            self.failed_count += 1
            logger.debug(f"{self.variant.value}: dropped frame {body[:60]!r}: {e}")
            return None

        self.decoded_count += 1
        return sample

    @abstractmethod
    def _decode(
        self,
        body: str,
        rssi: Optional[int],
        snr: Optional[float],
    ) -> Sample:
        """Decode or raise ValueError."""


class TimestampedCsvDecoder(FrameDecoder):
    """Decoder for "[<date> (<weekday>) <time>] <18 fields>" frames."""

    variant = Variant.TIMESTAMPED_CSV

    def _decode(
        self,
        body: str,
        rssi: Optional[int],
        snr: Optional[float],
    ) -> Sample:
        parts = body.split("] ")
        if len(parts) != 2:
            raise ValueError("missing '] ' timestamp delimiter")

        # "[2024/12/22 (Sunday) 15:34:09"
        ts_parts = parts[0].lstrip("[").split(" ")
        if len(ts_parts) < 3:
            raise ValueError(f"bad timestamp {parts[0]!r}")
        date = ts_parts[0].replace("/", "-")
        time_of_day = ts_parts[2]
        timestamp = f"{date}T{time_of_day}Z"

        values = parts[1].split(",")
        if len(values) != len(TIMESTAMPED_CSV_FIELDS):
            raise ValueError(
                f"expected {len(TIMESTAMPED_CSV_FIELDS)} fields, got {len(values)}"
            )

        channels = {
            name: parse_field(name, raw)
            for name, raw in zip(TIMESTAMPED_CSV_FIELDS, values)
        }
        return Sample(
            timestamp=timestamp,
            rssi=rssi if rssi is not None else 0,
            snr=snr if snr is not None else 0.0,
            **channels,
        )


class KeyValueDecoder(FrameDecoder):
    """
    Decoder for "[k1:v1,k2:v2,...]" frames.

    Keys are Sample field names, plus "tick" for an integer timestamp.
    Correlated rssi/snr (separate metadata lines) win over inline keys.
    """

    variant = Variant.KEY_VALUE

    def _decode(
        self,
        body: str,
        rssi: Optional[int],
        snr: Optional[float],
    ) -> Sample:
        if not (body.startswith("[") and body.endswith("]")):
            raise ValueError("missing brackets")

        values: dict = {}
        for pair in body[1:-1].split(","):
            key, sep, raw = pair.partition(":")
            key = key.strip()
            if not sep:
                continue
            if key == "timestamp":
                values["timestamp"] = raw.strip()
            elif key == "tick":
                values["timestamp"] = int(raw.strip())
            elif key in SAMPLE_FIELDS:
                values[key] = parse_field(key, raw)

        if not values:
            raise ValueError("no recognized keys")

        if rssi is not None:
            values["rssi"] = rssi
        if snr is not None:
            values["snr"] = snr
        return Sample(**values)


class InlineRssiCsvDecoder(FrameDecoder):
    """Decoder for "[<tick>:<14 fields>]" frames with an optional ",rssi:<int>" suffix."""

    variant = Variant.CSV_INLINE_RSSI

    SUFFIX_KEY = "rssi"

    def _decode(
        self,
        body: str,
        rssi: Optional[int],
        snr: Optional[float],
    ) -> Sample:
        if not body.startswith("["):
            raise ValueError("missing '['")
        close = body.find("]")
        if close == -1:
            raise ValueError("missing ']'")

        inline_rssi = MISSING_RSSI
        suffix = body[close + 1:].strip()
        if suffix:
            key, sep, raw = suffix.lstrip(",").partition(":")
            if not sep or key.strip() != self.SUFFIX_KEY:
                raise ValueError(f"bad suffix {suffix!r}")
            inline_rssi = int(raw.strip())

        tick_text, sep, payload = body[1:close].partition(":")
        if not sep:
            raise ValueError("missing tick delimiter")
        tick = int(tick_text.strip())

        values = payload.split(",")
        if len(values) != len(INLINE_CSV_FIELDS):
            raise ValueError(
                f"expected {len(INLINE_CSV_FIELDS)} fields, got {len(values)}"
            )

        channels = {
            name: parse_field(name, raw)
            for name, raw in zip(INLINE_CSV_FIELDS, values)
        }
        return Sample(
            timestamp=tick,
            rssi=rssi if rssi is not None else inline_rssi,
            snr=snr if snr is not None else 0.0,
            **channels,
        )


_DECODERS = {
    Variant.TIMESTAMPED_CSV: TimestampedCsvDecoder,
    Variant.KEY_VALUE: KeyValueDecoder,
    Variant.CSV_INLINE_RSSI: InlineRssiCsvDecoder,
}


def create_decoder(variant: Variant) -> FrameDecoder:
    """
    Create the decoder for a wire-format variant.

    Raises:
        ValueError: If the variant is unknown
    """
    try:
        return _DECODERS[Variant(variant)]()
    except (KeyError, ValueError):
        raise ValueError(f"Unknown variant: {variant}") from None
