"""
Stream Controller
=================

The cooperative read/parse/aggregate loop of one stream session.

This module provides the StreamController class which:
    - Reads from a ByteSource with a short timeout
    - Feeds the FrameAccumulator and decodes every extracted frame
    - Runs line-delimited frames through the MetadataCorrelator
    - Aggregates samples and emits sequence-numbered records to a sink
    - Stops when its cancellation event is set

Design Rules:
    - Strictly sequential: one read cycle is fully processed before the next
    - Read timeout is not an error (short backoff, then retry)
    - Fatal read errors end the loop and propagate
    - Dropped frames are counted, never propagated
    - Sink failures are logged, never retried, never fatal
"""

import logging
import threading
import time
from typing import Callable, List, Optional

from telemetry_stream.config import AggregationConfig, StreamConfig
from telemetry_stream.decoding.correlator import MetadataCorrelator
from telemetry_stream.decoding.decoders import FrameDecoder, create_decoder
from telemetry_stream.errors import ByteSourceError
from telemetry_stream.models.drops import DropReason
from telemetry_stream.models.output import OutputRecord
from telemetry_stream.models.sample import Sample
from telemetry_stream.models.variant import MetadataMode, Variant
from telemetry_stream.signals.aggregator import WindowedAggregator
from telemetry_stream.signals.projection import project_record
from telemetry_stream.signals.sequencer import Sequencer
from telemetry_stream.sinks import Sink
from telemetry_stream.stream.accumulator import (
    BracketFraming,
    FrameAccumulator,
    FramingStrategy,
    LineFraming,
)
from telemetry_stream.stream.frame import Frame
from telemetry_stream.stream.source import ByteSource


logger = logging.getLogger(__name__)


class StreamMetrics:
    """Metrics for StreamController observability."""

    __slots__ = (
        "bytes_received",
        "read_timeouts",
        "frames_extracted",
        "samples_decoded",
        "malformed_frames",
        "metadata_desyncs",
        "buffer_overflows",
        "records_emitted",
        "sink_failures",
        "last_record_id",
    )

    def __init__(self) -> None:
        self.bytes_received: int = 0
        self.read_timeouts: int = 0
        self.frames_extracted: int = 0
        self.samples_decoded: int = 0
        self.malformed_frames: int = 0
        self.metadata_desyncs: int = 0
        self.buffer_overflows: int = 0
        self.records_emitted: int = 0
        self.sink_failures: int = 0
        self.last_record_id: int = 0

    def count_drop(self, reason: DropReason) -> None:
        """Count one dropped unit of input."""
        if reason == DropReason.METADATA_DESYNC:
            self.metadata_desyncs += 1
        elif reason == DropReason.BUFFER_OVERFLOW:
            self.buffer_overflows += 1
        else:
            self.malformed_frames += 1

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {name: getattr(self, name) for name in self.__slots__}


def create_framing(stream: StreamConfig) -> FramingStrategy:
    """
    Framing strategy for a stream configuration.

    Timestamped-CSV bodies contain "] " inside the frame, so they are
    always line-delimited, whatever the metadata mode.
    """
    if (
        stream.resolved_metadata_mode() == MetadataMode.LINES
        or stream.variant == Variant.TIMESTAMPED_CSV
    ):
        return LineFraming(stream.line_terminator)
    return BracketFraming(allow_suffix=stream.variant == Variant.CSV_INLINE_RSSI)


class StreamController:
    """
    Read loop for one stream session.

    Attributes:
        source: Byte source to read from
        sink: Record consumer
        metrics: Operational metrics

    Example:
        controller = StreamController.from_config(source, LoggingSink())

        # Blocks until stop() is called or the source fails
        controller.run()
    """

    def __init__(
        self,
        source: ByteSource,
        sink: Sink,
        accumulator: FrameAccumulator,
        decoder: FrameDecoder,
        aggregator: WindowedAggregator,
        correlator: Optional[MetadataCorrelator] = None,
        sequencer: Optional[Sequencer] = None,
        stop_event: Optional[threading.Event] = None,
        read_timeout: float = 0.1,
        read_chunk_size: int = 1024,
        idle_backoff: float = 0.01,
        log_every_n_records: int = 100,
    ) -> None:
        """
        Initialize stream controller.

        Args:
            source: Byte source to read from
            sink: Record consumer
            accumulator: Frame accumulator for the session
            decoder: Decoder for the session's variant
            aggregator: Windowed aggregator
            correlator: Metadata correlator (line-metadata sessions only)
            sequencer: Record id source (a fresh one if None)
            stop_event: Shared cancellation flag (a fresh one if None)
            read_timeout: Seconds to wait per read
            read_chunk_size: Maximum bytes per read
            idle_backoff: Seconds to sleep after a read timeout
            log_every_n_records: Log a summary every N records
        """
        if read_timeout <= 0:
            raise ValueError("read_timeout must be positive")
        if read_chunk_size < 1:
            raise ValueError("read_chunk_size must be >= 1")

        self.source = source
        self.sink = sink
        self.accumulator = accumulator
        self.decoder = decoder
        self.aggregator = aggregator
        self.correlator = correlator
        self.sequencer = sequencer or Sequencer()
        self.stop_event = stop_event or threading.Event()
        self.read_timeout = read_timeout
        self.read_chunk_size = read_chunk_size
        self.idle_backoff = idle_backoff
        self.log_every_n_records = log_every_n_records

        self.metrics = StreamMetrics()

    @classmethod
    def from_config(
        cls,
        source: ByteSource,
        sink: Sink,
        stream: Optional[StreamConfig] = None,
        aggregation: Optional[AggregationConfig] = None,
        stop_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> "StreamController":
        """
        Build a controller and its pipeline from configuration.

        Args:
            source: Byte source to read from
            sink: Record consumer
            stream: Framing and read settings
            aggregation: Window and cadence settings
            stop_event: Shared cancellation flag
            clock: Time source for the aggregator
        """
        stream = stream or StreamConfig()
        aggregation = aggregation or AggregationConfig()

        decoder = create_decoder(stream.variant)
        correlator = None
        if stream.resolved_metadata_mode() == MetadataMode.LINES:
            correlator = MetadataCorrelator(decoder)

        logger.info(
            f"Stream configured: variant={stream.variant.value}, "
            f"metadata={stream.resolved_metadata_mode().value}"
        )

        return cls(
            source=source,
            sink=sink,
            accumulator=FrameAccumulator(
                create_framing(stream),
                max_buffer_size=stream.max_buffer_size,
            ),
            decoder=decoder,
            aggregator=WindowedAggregator(
                window_size=aggregation.window_size,
                emit_interval=aggregation.emit_interval_ms / 1000.0,
                rssi_reduction=aggregation.rssi_reduction,
                clock=clock,
            ),
            correlator=correlator,
            stop_event=stop_event,
            read_timeout=stream.read_timeout_ms / 1000.0,
            read_chunk_size=stream.read_chunk_size,
            idle_backoff=stream.idle_backoff_ms / 1000.0,
            log_every_n_records=aggregation.log_every_n_records,
        )

    @property
    def stopped(self) -> bool:
        """Whether cancellation has been requested."""
        return self.stop_event.is_set()

    def stop(self) -> None:
        """
        Request the loop to exit.

        Idempotent and non-blocking; observed at the next iteration.
        """
        self.stop_event.set()

    def run(self) -> None:
        """
        Run until stopped or the source fails.

        Raises:
            ByteSourceError: On fatal read failure
        """
        logger.info("StreamController starting")

        while not self.stop_event.is_set():
            try:
                data = self.source.read(self.read_chunk_size, self.read_timeout)
            except ByteSourceError as e:
                logger.error(f"Critical error reading from source: {e}")
                raise

            if not data:
                self.metrics.read_timeouts += 1
                self.stop_event.wait(self.idle_backoff)
                continue

            self.process(data)

        logger.info(f"StreamController stopped: {self.metrics.to_dict()}")

    def process(self, data: bytes) -> List[OutputRecord]:
        """
        Run one read cycle's bytes through the pipeline.

        Args:
            data: Bytes returned by the source

        Returns:
            Records emitted during this cycle
        """
        self.metrics.bytes_received += len(data)

        discarded_before = self.accumulator.discarded_count
        overflows_before = self.accumulator.overflow_count
        frames = self.accumulator.feed(data)
        for _ in range(self.accumulator.discarded_count - discarded_before):
            self.metrics.count_drop(DropReason.MALFORMED_FRAME)
        for _ in range(self.accumulator.overflow_count - overflows_before):
            self.metrics.count_drop(DropReason.BUFFER_OVERFLOW)

        emitted: List[OutputRecord] = []
        for frame in frames:
            self.metrics.frames_extracted += 1
            sample = self._decode(frame)
            if sample is None:
                continue

            self.metrics.samples_decoded += 1
            aggregated = self.aggregator.add(sample)
            if aggregated is None:
                continue

            emitted.append(self._emit(aggregated))

        return emitted

    def _decode(self, frame: Frame) -> Optional[Sample]:
        if self.correlator is None:
            sample = self.decoder.decode(frame.text)
            if sample is None:
                self.metrics.count_drop(DropReason.MALFORMED_FRAME)
            return sample

        sample = self.correlator.on_line(frame.text)
        if self.correlator.last_drop is not None:
            self.metrics.count_drop(self.correlator.last_drop)
        return sample

    def _emit(self, aggregated: Sample) -> OutputRecord:
        record = project_record(aggregated, self.sequencer.next_id())
        self.metrics.records_emitted += 1
        self.metrics.last_record_id = record.id

        try:
            self.sink.send(record)
        except Exception as e:
            self.metrics.sink_failures += 1
            logger.error(f"Failed to deliver record {record.id}: {e}")

        if record.id % self.log_every_n_records == 0:
            logger.info(
                f"Record {record.id}: frames={self.metrics.frames_extracted}, "
                f"malformed={self.metrics.malformed_frames}, "
                f"desyncs={self.metrics.metadata_desyncs}, "
                f"overflows={self.metrics.buffer_overflows}"
            )

        return record
