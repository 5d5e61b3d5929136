"""
Frame Accumulator
=================

Bounded text buffer that cuts complete frames out of an arbitrarily
chunked byte stream.

This module provides the FrameAccumulator class, which sits between the
byte source and the decoders. The transport may split a frame over any
number of reads; the accumulator keeps the incomplete remainder until the
rest arrives.

Design Rules:
    - Extraction runs to fixpoint after every feed
    - Only the unconsumed remainder is kept
    - Fixed maximum size (drops buffer and resynchronizes on overflow)
    - Does NOT interpret frame contents

Framing strategies:
    - LineFraming: "<text>\\r\\n" lines (separate metadata lines)
    - BracketFraming: "[...]" frames, optionally followed by an inline
      ",rssi:<int>" suffix ending at a line break or the next "["
"""

import codecs
import logging
from abc import ABC, abstractmethod
from typing import List, NamedTuple, Optional

from telemetry_stream.stream.frame import Frame


logger = logging.getLogger(__name__)


class Cut(NamedTuple):
    """
    One extraction step.

    Attributes:
        end: Number of buffered characters consumed by this step
        text: Frame text, or None when the consumed characters are discarded
        dropped: True when the discarded characters were an unterminated frame
    """

    end: int
    text: Optional[str]
    dropped: bool = False


class FramingStrategy(ABC):
    """Finds the next frame boundary in a text buffer."""

    @abstractmethod
    def scan(self, buffer: str) -> Optional[Cut]:
        """
        Locate the next cut at the start of buffer.

        Returns:
            Cut to apply, or None if more data is needed.
        """


class LineFraming(FramingStrategy):
    """Frames terminated by a fixed line terminator (default CRLF)."""

    def __init__(self, terminator: str = "\r\n") -> None:
        if not terminator:
            raise ValueError("terminator must not be empty")
        self.terminator = terminator

    def scan(self, buffer: str) -> Optional[Cut]:
        pos = buffer.find(self.terminator)
        if pos == -1:
            return None
        return Cut(pos + len(self.terminator), buffer[:pos])


class BracketFraming(FramingStrategy):
    """
    Frames delimited by "[" and "]".

    Args:
        allow_suffix: Whether a ",key:value" metadata suffix may follow
            the closing bracket on the same logical message.
    """

    OPEN = "["
    CLOSE = "]"

    def __init__(self, allow_suffix: bool = False) -> None:
        self.allow_suffix = allow_suffix

    def scan(self, buffer: str) -> Optional[Cut]:
        if not buffer:
            return None

        start = buffer.find(self.OPEN)
        if start == -1:
            # No frame open, everything is line noise
            return Cut(len(buffer), None)
        if start > 0:
            return Cut(start, None)

        close = buffer.find(self.CLOSE, 1)
        reopen = buffer.find(self.OPEN, 1)
        if reopen != -1 and (close == -1 or reopen < close):
            # Frame never closed before the next one started
            return Cut(reopen, None, dropped=True)
        if close == -1:
            return None

        end = close + 1
        if not self.allow_suffix:
            return Cut(end, buffer[:end])
        if end == len(buffer):
            # A suffix may still be in flight
            return None
        if buffer[end] != ",":
            return Cut(end, buffer[:end])

        stops = [
            i for i in (
                buffer.find("\n", end),
                buffer.find("\r", end),
                buffer.find(self.OPEN, end),
            )
            if i != -1
        ]
        if not stops:
            return None
        stop = min(stops)
        return Cut(stop, buffer[:stop])


class FrameAccumulator:
    """
    Growable text buffer with frame extraction.

    Bytes are decoded incrementally as UTF-8 (invalid sequences become
    U+FFFD), so a multi-byte character split across reads is reassembled.

    Attributes:
        max_buffer_size: Maximum characters retained between feeds
        overflow_count: Forced resynchronizations due to overflow
        discarded_count: Unterminated frames dropped during resynchronization

    Example:
        accumulator = FrameAccumulator(LineFraming("\\r\\n"))

        for frame in accumulator.feed(b"RSSI: -60\\r\\nSnr: 9"):
            handle(frame)       # Frame(text='RSSI: -60')

        accumulator.buffered    # 6 ("Snr: 9" kept for the next feed)
    """

    def __init__(
        self,
        framing: FramingStrategy,
        max_buffer_size: int = 4096,
    ) -> None:
        """
        Initialize frame accumulator.

        Args:
            framing: Frame boundary strategy for the active variant
            max_buffer_size: Maximum buffered characters. Must be >= 1.
        """
        if max_buffer_size < 1:
            raise ValueError("max_buffer_size must be >= 1")

        self.framing = framing
        self._max_buffer_size = max_buffer_size
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer: str = ""
        self._overflow_count: int = 0
        self._discarded_count: int = 0
        self._frames_extracted: int = 0

    @property
    def max_buffer_size(self) -> int:
        """Maximum buffer size."""
        return self._max_buffer_size

    @property
    def buffered(self) -> int:
        """Current number of buffered characters."""
        return len(self._buffer)

    @property
    def overflow_count(self) -> int:
        """Number of forced resynchronizations due to overflow."""
        return self._overflow_count

    @property
    def discarded_count(self) -> int:
        """Number of unterminated frames dropped."""
        return self._discarded_count

    @property
    def frames_extracted(self) -> int:
        """Total frames ever extracted."""
        return self._frames_extracted

    def feed(self, data: bytes) -> List[Frame]:
        """
        Append bytes and extract every complete frame.

        Args:
            data: Newly read bytes (may be empty)

        Returns:
            Frames in arrival order; empty if no frame completed.
        """
        self._buffer += self._decoder.decode(data)

        frames: List[Frame] = []
        while True:
            cut = self.framing.scan(self._buffer)
            if cut is None:
                break
            consumed = self._buffer[:cut.end]
            self._buffer = self._buffer[cut.end:]

            if cut.text is None:
                if cut.dropped:
                    self._discarded_count += 1
                    logger.debug(f"Dropped unterminated frame: {consumed[:40]!r}")
                elif consumed.strip():
                    logger.debug(f"Skipped line noise: {consumed[:40]!r}")
                continue

            text = cut.text.strip()
            if text:
                frames.append(Frame(text=text))

        self._frames_extracted += len(frames)

        if len(self._buffer) > self._max_buffer_size:
            self._overflow_count += 1
            logger.warning(
                f"Buffer overflow: {len(self._buffer)} chars without a frame "
                f"boundary, resynchronizing. Total overflows: {self._overflow_count}"
            )
            self._buffer = ""

        return frames

    def clear(self) -> int:
        """
        Clear buffered data.

        Returns:
            Number of characters cleared.
        """
        cleared = len(self._buffer)
        self._buffer = ""
        self._decoder.reset()
        return cleared

    def metrics(self) -> dict:
        """
        Get accumulator metrics for observability.

        Returns:
            Dict with buffered, max_buffer_size, overflow_count,
            discarded_count, frames_extracted
        """
        return {
            "buffered": self.buffered,
            "max_buffer_size": self._max_buffer_size,
            "overflow_count": self._overflow_count,
            "discarded_count": self._discarded_count,
            "frames_extracted": self._frames_extracted,
        }
