"""
Record Sinks
============

One-way delivery of OutputRecords to a consumer.

Delivery is fire-and-forget: the stream controller calls send() once per
record, never retries, and logs (but survives) any exception a sink
raises.

Sinks:
    - CallbackSink: Calls a function per record
    - LoggingSink: Logs each record
    - RecordQueue: Bounded hand-off to a consumer thread (drops oldest on overflow)
    - JsonLinesSink: Appends records to a telemetry log file
    - FanOutSink: Delivers to several sinks, isolating their failures
"""

import logging
import queue
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from telemetry_stream.models.output import OutputRecord


logger = logging.getLogger(__name__)


class Sink(ABC):
    """Consumer of output records."""

    @abstractmethod
    def send(self, record: OutputRecord) -> None:
        """Deliver one record. May raise; the caller logs and moves on."""

    def close(self) -> None:
        """Release resources. Default: nothing to release."""


class CallbackSink(Sink):
    """Forward each record to a callable (e.g. a UI update channel)."""

    def __init__(self, callback: Callable[[OutputRecord], None]) -> None:
        self.callback = callback

    def send(self, record: OutputRecord) -> None:
        self.callback(record)


class LoggingSink(Sink):
    """Log each record at the given level."""

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def send(self, record: OutputRecord) -> None:
        logger.log(
            self.level,
            f"Record {record.id} @ {record.mission_time}: "
            f"rssi={record.rssi} snr={record.snr:.1f} sats={record.satellites} "
            f"acc=({record.acceleration_x:.2f}, {record.acceleration_y:.2f}, "
            f"{record.acceleration_z:.2f})",
        )


class RecordQueue(Sink):
    """
    Thread-safe bounded queue of records.

    The stream worker puts, a consumer thread gets. Uses a drop-oldest
    policy when full so a stalled consumer never blocks the stream.

    Attributes:
        maxsize: Maximum number of records to hold
        dropped_count: Number of records dropped due to overflow

    Example:
        records = RecordQueue(maxsize=100)
        session = connection.start_session(sink=records)

        # Consumer thread
        record = records.get(timeout=1.0)
    """

    def __init__(self, maxsize: int = 100) -> None:
        """
        Initialize record queue.

        Args:
            maxsize: Maximum records to hold. Must be >= 1.
        """
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")

        self._maxsize = maxsize
        self._queue: "queue.Queue[OutputRecord]" = queue.Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self._dropped_count: int = 0
        self._total_put: int = 0

    @property
    def maxsize(self) -> int:
        """Maximum queue size."""
        return self._maxsize

    @property
    def size(self) -> int:
        """Current number of queued records."""
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        """Number of records dropped due to overflow."""
        return self._dropped_count

    @property
    def total_put(self) -> int:
        """Total records ever put."""
        return self._total_put

    def send(self, record: OutputRecord) -> None:
        self.put(record)

    def put(self, record: OutputRecord) -> bool:
        """
        Add record, dropping the oldest if full.

        Returns:
            True if added without dropping, False if the oldest record
            was dropped to make room.
        """
        with self._lock:
            self._total_put += 1
            dropped = False

            if self._queue.full():
                try:
                    self._queue.get_nowait()
                    self._dropped_count += 1
                    dropped = True
                    logger.warning(
                        f"Record queue full, dropped oldest record. "
                        f"Total dropped: {self._dropped_count}"
                    )
                except queue.Empty:
                    pass  # Consumer drained it meanwhile

            self._queue.put_nowait(record)
            return not dropped

    def get(self, timeout: Optional[float] = None) -> Optional[OutputRecord]:
        """
        Get next record.

        Args:
            timeout: Maximum seconds to wait. None = wait forever.

        Returns:
            Next record, or None if timeout occurred.
        """
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def get_nowait(self) -> Optional[OutputRecord]:
        """Get next record without waiting, or None."""
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def drain(self) -> List[OutputRecord]:
        """Remove and return every queued record, oldest first."""
        records = []
        while True:
            record = self.get_nowait()
            if record is None:
                break
            records.append(record)
        return records

    def metrics(self) -> dict:
        """
        Get queue metrics for observability.

        Returns:
            Dict with size, maxsize, dropped_count, total_put
        """
        return {
            "size": self.size,
            "maxsize": self._maxsize,
            "dropped_count": self._dropped_count,
            "total_put": self._total_put,
        }


class JsonLinesSink(Sink):
    """
    Append records to a JSON lines telemetry log.

    The parent directory is created if needed, and ".jsonl" is appended
    to file names without it. Each line is flushed as written so a crash
    loses at most the record in flight.
    """

    SUFFIX = ".jsonl"

    def __init__(self, path: str) -> None:
        file_path = Path(path)
        if file_path.suffix != self.SUFFIX:
            file_path = file_path.with_name(file_path.name + self.SUFFIX)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        self.path = file_path
        self._file = open(file_path, "a", encoding="utf-8")
        self._lock = threading.Lock()
        logger.info(f"Writing telemetry log to {file_path}")

    def send(self, record: OutputRecord) -> None:
        with self._lock:
            self._file.write(record.model_dump_json() + "\n")
            self._file.flush()

    def close(self) -> None:
        with self._lock:
            if not self._file.closed:
                self._file.close()


class FanOutSink(Sink):
    """Deliver each record to several sinks; one failing sink does not starve the others."""

    def __init__(self, sinks: Iterable[Sink]) -> None:
        self.sinks = list(sinks)
        self.failures: int = 0

    def send(self, record: OutputRecord) -> None:
        for sink in self.sinks:
            try:
                sink.send(record)
            except Exception as e:
                self.failures += 1
                logger.error(f"{type(sink).__name__} failed on record {record.id}: {e}")

    def close(self) -> None:
        for sink in self.sinks:
            sink.close()
