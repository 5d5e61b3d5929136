"""
Stream Module
=============

Byte ingestion, frame extraction and session lifecycle.

This module provides the ingestion layer for telemetry-stream:
    - ByteSource / SerialByteSource: Blocking-with-timeout byte sources
    - Frame: Extracted protocol frame
    - FrameAccumulator: Buffer that cuts frames out of chunked input
    - StreamController: The read/decode/aggregate/emit loop
    - StreamSession / Connection: Background worker and session guard

Example:
    from telemetry_stream.stream import Connection, SerialByteSource
    from telemetry_stream.sinks import RecordQueue
    
    records = RecordQueue(maxsize=100)
    connection = Connection(SerialByteSource.open("/dev/ttyUSB0", 115200))
    session = connection.start_session(sink=records)
    
    while True:
        record = records.get(timeout=1.0)
        if record is not None:
            display(record)
"""

from telemetry_stream.stream.frame import Frame
from telemetry_stream.stream.source import ByteSource, SerialByteSource
from telemetry_stream.stream.accumulator import (
    BracketFraming,
    FrameAccumulator,
    FramingStrategy,
    LineFraming,
)
from telemetry_stream.stream.controller import StreamController, StreamMetrics, create_framing
from telemetry_stream.stream.session import Connection, StreamSession


__all__ = [
    "Frame",
    "ByteSource",
    "SerialByteSource",
    "FramingStrategy",
    "LineFraming",
    "BracketFraming",
    "FrameAccumulator",
    "StreamController",
    "StreamMetrics",
    "create_framing",
    "StreamSession",
    "Connection",
]
