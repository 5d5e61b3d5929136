"""
telemetry-stream Command Line
=============================

Stream telemetry from a serial port and log (or record) the aggregated output.

Usage:
    telemetry-stream --port /dev/ttyUSB0 --baud 115200 --variant timestamped_csv
    telemetry-stream --port COM5 --variant csv_inline_rssi --jsonl data/flight1

Exit codes:
    0: Stopped by SIGINT/SIGTERM
    1: Port could not be opened, or the link failed while streaming
    2: Bad arguments
"""

import argparse
import logging
import signal
import sys
import threading
import time
from typing import List, Optional

from telemetry_stream.config import Settings, load_config, setup_logging
from telemetry_stream.errors import ByteSourceError
from telemetry_stream.models.variant import Variant
from telemetry_stream.sinks import FanOutSink, JsonLinesSink, LoggingSink, Sink
from telemetry_stream.stream import Connection, SerialByteSource


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Stream, parse and aggregate radio/serial telemetry"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config.yaml (default: search common locations)",
    )
    parser.add_argument(
        "--port",
        type=str,
        default=None,
        help="Serial device, e.g. /dev/ttyUSB0 or COM5",
    )
    parser.add_argument(
        "--baud",
        type=int,
        default=None,
        help="Baud rate (default: from config, 115200)",
    )
    parser.add_argument(
        "--variant",
        type=str,
        choices=[v.value for v in Variant],
        default=None,
        help="Wire-format variant",
    )
    parser.add_argument(
        "--window",
        type=int,
        default=None,
        help="Aggregation window size in samples",
    )
    parser.add_argument(
        "--interval-ms",
        type=int,
        default=None,
        help="Emission interval in milliseconds",
    )
    parser.add_argument(
        "--jsonl",
        type=str,
        default=None,
        help="Append records to this JSON lines file",
    )
    parser.add_argument(
        "--report-interval",
        type=int,
        default=10,
        help="Seconds between progress reports (default: 10)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (DEBUG, INFO, WARNING, ...)",
    )
    return parser


def apply_args(settings: Settings, args: argparse.Namespace) -> Settings:
    """Overlay command line arguments on loaded settings."""
    data = settings.model_dump()
    if args.port:
        data["serial"]["port"] = args.port
    if args.baud:
        data["serial"]["baud_rate"] = args.baud
    if args.variant:
        data["stream"]["variant"] = args.variant
    if args.window:
        data["aggregation"]["window_size"] = args.window
    if args.interval_ms is not None:
        data["aggregation"]["emit_interval_ms"] = args.interval_ms
    if args.jsonl:
        data["output"]["jsonl_path"] = args.jsonl
    if args.log_level:
        data["logging"]["level"] = args.log_level
    return Settings.model_validate(data)


def build_sink(settings: Settings) -> Sink:
    sinks: List[Sink] = [LoggingSink()]
    if settings.output.jsonl_path:
        sinks.append(JsonLinesSink(settings.output.jsonl_path))
    return FanOutSink(sinks)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = apply_args(load_config(args.config), args)
    setup_logging(settings)

    if not settings.serial.port:
        logger.error("No serial port given (--port or TELEMETRY_SERIAL_PORT)")
        return 2

    try:
        source = SerialByteSource.open(settings.serial.port, settings.serial.baud_rate)
    except ByteSourceError as e:
        logger.error(str(e))
        return 1

    shutdown = threading.Event()

    def _handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        shutdown.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    def _handle_link_error(error):
        logger.error(f"Link failed: {error}")
        shutdown.set()

    sink = build_sink(settings)
    connection = Connection(source, on_error=_handle_link_error)
    session = connection.start_session(
        sink=sink,
        stream=settings.stream,
        aggregation=settings.aggregation,
    )

    start_time = time.time()
    try:
        while session.is_running and not shutdown.is_set():
            shutdown.wait(args.report_interval)
            metrics = session.controller.metrics
            logger.info(
                f"Progress ({time.time() - start_time:.0f}s): "
                f"bytes={metrics.bytes_received}, frames={metrics.frames_extracted}, "
                f"samples={metrics.samples_decoded}, records={metrics.records_emitted}, "
                f"malformed={metrics.malformed_frames}, overflows={metrics.buffer_overflows}"
            )
    finally:
        connection.close(timeout=1.0)
        sink.close()

    logger.info(f"Final metrics: {session.controller.metrics.to_dict()}")

    if session.error is not None:
        logger.error(f"Stream ended with error: {session.error}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
