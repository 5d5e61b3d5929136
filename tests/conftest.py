"""
Test Configuration
==================

Pytest fixtures and test doubles for telemetry-stream.
"""

from typing import Iterable, List

import pytest

from telemetry_stream.errors import ByteSourceError
from telemetry_stream.stream.source import ByteSource


VALID_FIELDS = [
    "0.01", "0.02", "9.81",         # accel
    "1.5", "-2.5", "3.25",          # gyro
    "30.5",                         # imu_temp
    "21.0", "1013.25", "120.5", "40.0",  # bme
    "1", "2",                       # gps fix, fix quality
    "45.5017", "-73.5673",          # lat, lon
    "3.2", "118.0",                 # speed, gps altitude
    "7",                            # satellites
]

VALID_MESSAGE = "[2024/12/22 (Sunday) 15:34:09] " + ",".join(VALID_FIELDS)


def radio_lines(message: str, rssi: str = "-60", snr: str = "10.0") -> bytes:
    """The three CRLF lines the radio module prints per received packet."""
    return (
        f"Message: {message}\r\n"
        f"RSSI: {rssi}\r\n"
        f"Snr: {snr}\r\n"
    ).encode()


class ScriptedByteSource(ByteSource):
    """
    Byte source replaying a fixed list of reads.

    Each entry is returned by one read(). An empty bytes entry is a
    timeout. Once the script is exhausted every read times out, or raises
    ByteSourceError if fail_at_end is set.
    """

    def __init__(self, chunks: Iterable[bytes], fail_at_end: bool = False) -> None:
        self.chunks: List[bytes] = list(chunks)
        self.fail_at_end = fail_at_end
        self.reads: int = 0
        self.closed: bool = False

    def read(self, max_bytes: int, timeout: float) -> bytes:
        self.reads += 1
        if self.chunks:
            return self.chunks.pop(0)[:max_bytes]
        if self.fail_at_end:
            raise ByteSourceError("device disconnected")
        return b""

    def close(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Provide a fake clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def valid_message():
    """Provide a well-formed Timestamped-CSV message body."""
    return VALID_MESSAGE


@pytest.fixture
def valid_fields():
    """Provide the 18 raw field strings of valid_message."""
    return list(VALID_FIELDS)


@pytest.fixture
def scripted_source():
    """Factory for scripted byte sources."""
    def _make(chunks: Iterable[bytes], fail_at_end: bool = False) -> ScriptedByteSource:
        return ScriptedByteSource(chunks, fail_at_end=fail_at_end)
    return _make
