"""
telemetry-stream
================

Streaming frame parser and windowed aggregator for radio/serial telemetry links.

This package turns an unbounded byte stream carrying periodic telemetry frames
into a steady-rate sequence of normalized, sequence-numbered records.

Components:
    - stream: byte sources, frame accumulation, session/controller loop
    - decoding: wire-format variants and metadata correlation
    - signals: windowed aggregation, sequencing, record projection
    - sinks: record delivery (callback, queue, log, JSON lines file)

Example:
    from telemetry_stream.stream import Connection, SerialByteSource
    from telemetry_stream.sinks import LoggingSink
    
    connection = Connection(SerialByteSource.open("/dev/ttyUSB0", 115200))
    session = connection.start_session(sink=LoggingSink())
    ...
    session.stop()
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
