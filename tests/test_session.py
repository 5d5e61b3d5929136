"""
Stream Session Tests
====================

Background worker lifecycle, cancellation and the one-session guard.
"""

import threading
import time

import pytest

from conftest import radio_lines
from telemetry_stream.config import AggregationConfig, StreamConfig
from telemetry_stream.errors import ByteSourceError, SessionActiveError
from telemetry_stream.sinks import RecordQueue
from telemetry_stream.stream.session import Connection
from telemetry_stream.stream.source import ByteSource


EVERY_SAMPLE = AggregationConfig(window_size=1, emit_interval_ms=0)


class BlockingByteSource(ByteSource):
    """Source whose reads block for the full timeout, like an idle serial port."""

    def __init__(self, payload: bytes = b"") -> None:
        self.payload = payload
        self.closed = False
        self.reads = 0

    def read(self, max_bytes: int, timeout: float) -> bytes:
        self.reads += 1
        if self.payload:
            data, self.payload = self.payload[:max_bytes], self.payload[max_bytes:]
            return data
        time.sleep(timeout)
        return b""

    def close(self) -> None:
        self.closed = True


class TestConnection:
    """Tests for Connection and StreamSession."""
    
    def test_start_returns_immediately(self):
        """Starting does not wait for data."""
        connection = Connection(BlockingByteSource())
        
        started = time.monotonic()
        session = connection.start_session(
            sink=RecordQueue(),
            stream=StreamConfig(read_timeout_ms=500),
        )
        elapsed = time.monotonic() - started
        
        assert elapsed < 0.25
        assert session.is_running
        assert connection.streaming
        connection.close(timeout=2.0)
    
    def test_second_session_rejected(self):
        """Only one session may stream on a connection."""
        connection = Connection(BlockingByteSource())
        connection.start_session(sink=RecordQueue())
        
        with pytest.raises(SessionActiveError):
            connection.start_session(sink=RecordQueue())
        
        connection.close(timeout=1.0)
    
    def test_stop_within_one_read_timeout(self):
        """Cancellation is observed after at most one read timeout."""
        source = BlockingByteSource()
        connection = Connection(source)
        session = connection.start_session(
            sink=RecordQueue(),
            stream=StreamConfig(read_timeout_ms=50, idle_backoff_ms=0),
        )
        time.sleep(0.1)
        
        session.stop()
        
        assert session.join(timeout=0.5)
        assert not session.is_running
        assert session.error is None
        assert connection.session is None
    
    def test_no_emission_after_stop(self, valid_message):
        """Records stop once the session has exited."""
        records = RecordQueue(maxsize=100)
        source = BlockingByteSource(radio_lines(valid_message) * 3)
        connection = Connection(source)
        session = connection.start_session(
            sink=records,
            stream=StreamConfig(read_timeout_ms=20),
            aggregation=EVERY_SAMPLE,
        )
        
        deadline = time.monotonic() + 2.0
        while records.total_put < 3 and time.monotonic() < deadline:
            time.sleep(0.01)
        session.stop()
        assert session.join(timeout=1.0)
        
        source.payload = radio_lines(valid_message)
        time.sleep(0.1)
        
        assert [r.id for r in records.drain()] == [1, 2, 3]
    
    def test_fatal_error_surfaces(self, scripted_source):
        """A dead link ends the session and reaches the error callback."""
        errors = []
        released = threading.Event()
        
        def on_error(error):
            errors.append(error)
            released.set()
        
        connection = Connection(scripted_source([], fail_at_end=True), on_error=on_error)
        session = connection.start_session(sink=RecordQueue())
        
        assert released.wait(timeout=2.0)
        with pytest.raises(ByteSourceError):
            session.join(timeout=1.0)
        assert isinstance(errors[0], ByteSourceError)
        assert connection.session is None
    
    def test_restart_after_stop(self):
        """A stopped connection accepts a new session."""
        connection = Connection(BlockingByteSource())
        first = connection.start_session(
            sink=RecordQueue(),
            stream=StreamConfig(read_timeout_ms=20),
        )
        first.stop()
        assert first.join(timeout=1.0)
        
        second = connection.start_session(sink=RecordQueue())
        
        assert second is not first
        assert second.controller.sequencer.current == 0
        connection.close(timeout=1.0)
    
    def test_close_releases_source(self):
        """close() stops streaming and closes the byte source."""
        source = BlockingByteSource()
        connection = Connection(source)
        connection.start_session(sink=RecordQueue(), stream=StreamConfig(read_timeout_ms=20))
        
        connection.close(timeout=1.0)
        
        assert source.closed
        assert not connection.streaming
    
    def test_session_cannot_start_twice(self):
        """A session object is single-use."""
        connection = Connection(BlockingByteSource())
        session = connection.start_session(sink=RecordQueue(), stream=StreamConfig(read_timeout_ms=20))
        
        with pytest.raises(RuntimeError):
            session.start()
        
        connection.close(timeout=1.0)
