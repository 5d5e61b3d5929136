"""
Frame Accumulator Tests
=======================

Frame extraction across arbitrary read boundaries, resynchronization
and the buffer size cap.
"""

import pytest

from telemetry_stream.stream.accumulator import BracketFraming, FrameAccumulator, LineFraming
from telemetry_stream.stream.frame import Frame


class TestLineFraming:
    """Tests for CRLF line-delimited frames."""
    
    def test_single_read(self):
        """A complete line yields one stripped frame."""
        acc = FrameAccumulator(LineFraming())
        assert acc.feed(b"RSSI: -60\r\n") == [Frame(text="RSSI: -60")]
        assert acc.buffered == 0
    
    def test_split_frame_matches_single_read(self):
        """A 40-byte frame split 10/5/25 gives the same single frame."""
        payload = b"Message: " + b"A" * 29 + b"\r\n"
        assert len(payload) == 40
        
        whole = FrameAccumulator(LineFraming()).feed(payload)
        
        acc = FrameAccumulator(LineFraming())
        frames = []
        frames += acc.feed(payload[:10])
        frames += acc.feed(payload[10:15])
        assert frames == []
        frames += acc.feed(payload[15:])
        
        assert len(frames) == 1
        assert frames == whole
    
    def test_terminator_split_across_reads(self):
        """CR and LF arriving in different reads still close the line."""
        acc = FrameAccumulator(LineFraming())
        assert acc.feed(b"Snr: 9.5\r") == []
        assert acc.feed(b"\n") == [Frame(text="Snr: 9.5")]
    
    def test_multiple_frames_one_read(self):
        """Extraction runs to fixpoint and keeps the remainder."""
        acc = FrameAccumulator(LineFraming())
        frames = acc.feed(b"a\r\nb\r\nc\r\npartial")
        assert [f.text for f in frames] == ["a", "b", "c"]
        assert acc.buffered == len("partial")
    
    def test_blank_lines_skipped(self):
        """Empty lines produce no frames."""
        acc = FrameAccumulator(LineFraming())
        assert acc.feed(b"\r\n\r\nRSSI: -1\r\n") == [Frame(text="RSSI: -1")]
    
    def test_multibyte_character_split(self):
        """A UTF-8 character split across reads is reassembled."""
        acc = FrameAccumulator(LineFraming())
        data = "temp 21°C\r\n".encode("utf-8")
        split = data.index(b"\xb0")  # second byte of the degree sign
        assert acc.feed(data[:split]) == []
        assert acc.feed(data[split:]) == [Frame(text="temp 21°C")]
    
    def test_overflow_resynchronizes(self):
        """An unterminated line past the cap is discarded and counted."""
        acc = FrameAccumulator(LineFraming(), max_buffer_size=64)
        assert acc.feed(b"x" * 100) == []
        assert acc.overflow_count == 1
        assert acc.buffered == 0
        
        # Stream recovers on the next well-formed line
        assert acc.feed(b"RSSI: -50\r\n") == [Frame(text="RSSI: -50")]
    
    def test_invalid_max_buffer_size(self):
        """max_buffer_size must be positive."""
        with pytest.raises(ValueError):
            FrameAccumulator(LineFraming(), max_buffer_size=0)


class TestBracketFraming:
    """Tests for bracket-delimited frames."""
    
    def test_plain_bracket_frame(self):
        """Frames end at the closing bracket when no suffix is allowed."""
        acc = FrameAccumulator(BracketFraming())
        frames = acc.feed(b"[accel_x:1.0][accel_x:2.0]")
        assert [f.text for f in frames] == ["[accel_x:1.0]", "[accel_x:2.0]"]
    
    def test_leading_noise_discarded(self):
        """Bytes before the first '[' are dropped as line noise."""
        acc = FrameAccumulator(BracketFraming())
        assert acc.feed(b"garbage\r\n[a:1]") == [Frame(text="[a:1]")]
        assert acc.discarded_count == 0
    
    def test_unterminated_frame_dropped_on_new_open(self):
        """A frame reopened before closing is dropped and counted."""
        acc = FrameAccumulator(BracketFraming())
        frames = acc.feed(b"[a:1,b:[c:2]")
        assert frames == [Frame(text="[c:2]")]
        assert acc.discarded_count == 1
    
    def test_suffix_until_line_break(self):
        """An inline rssi suffix runs to the line break."""
        acc = FrameAccumulator(BracketFraming(allow_suffix=True))
        frames = acc.feed(b"[100:1,2],rssi:-70\r\n")
        assert frames == [Frame(text="[100:1,2],rssi:-70")]
    
    def test_suffix_until_next_frame(self):
        """An inline suffix also ends where the next frame opens."""
        acc = FrameAccumulator(BracketFraming(allow_suffix=True))
        frames = acc.feed(b"[100:1],rssi:-70[200:2],rssi:-71\n")
        assert [f.text for f in frames] == ["[100:1],rssi:-70", "[200:2],rssi:-71"]
    
    def test_suffix_waits_for_terminator(self):
        """A suffix without its terminator is retained for the next feed."""
        acc = FrameAccumulator(BracketFraming(allow_suffix=True))
        assert acc.feed(b"[100:1],rs") == []
        assert acc.feed(b"si:-70\r\n") == [Frame(text="[100:1],rssi:-70")]
    
    def test_frame_without_suffix(self):
        """A closing bracket followed by a line break is a frame with no suffix."""
        acc = FrameAccumulator(BracketFraming(allow_suffix=True))
        assert acc.feed(b"[100:1]\r\n") == [Frame(text="[100:1]")]
    
    def test_unclosed_frame_overflows(self):
        """An opened frame that never closes is capped."""
        acc = FrameAccumulator(BracketFraming(), max_buffer_size=64)
        assert acc.feed(b"[" + b"1," * 100) == []
        assert acc.overflow_count == 1
        assert acc.buffered == 0
    
    def test_metrics(self):
        """Metrics reflect extraction counters."""
        acc = FrameAccumulator(BracketFraming())
        acc.feed(b"[a:1][b:2][c")
        metrics = acc.metrics()
        assert metrics["frames_extracted"] == 2
        assert metrics["buffered"] == 2
        assert metrics["overflow_count"] == 0
