"""
Stream Sessions
===============

Background worker lifecycle and the one-session-per-connection guard.

A StreamSession runs one StreamController on a dedicated daemon thread.
start() returns as soon as the thread is spawned; stop() only sets the
cancellation flag, so the worker exits at its next loop iteration (at
most one read timeout later).

A Connection wraps an already-open ByteSource and refuses to start a
second session while one is streaming on it.

Example:
    connection = Connection(SerialByteSource.open("/dev/ttyUSB0"))
    session = connection.start_session(sink=RecordQueue(maxsize=100))

    ...

    session.stop()
    session.join(timeout=1.0)
"""

import logging
import threading
import time
from typing import Callable, Optional

from telemetry_stream.config import AggregationConfig, StreamConfig
from telemetry_stream.errors import SessionActiveError
from telemetry_stream.sinks import Sink
from telemetry_stream.stream.controller import StreamController
from telemetry_stream.stream.source import ByteSource


logger = logging.getLogger(__name__)


class StreamSession:
    """
    One streaming session on a background thread.

    Attributes:
        controller: The session's read loop (owns buffer, window, sequencer)
        error: Exception that ended the session, if any
    """

    def __init__(
        self,
        controller: StreamController,
        on_exit: Optional[Callable[["StreamSession"], None]] = None,
        name: str = "telemetry-stream",
    ) -> None:
        self.controller = controller
        self._on_exit = on_exit
        self._name = name
        self._thread: Optional[threading.Thread] = None
        self._done = threading.Event()
        self._error: Optional[BaseException] = None

    @property
    def error(self) -> Optional[BaseException]:
        """Exception that terminated the worker, or None."""
        return self._error

    @property
    def is_running(self) -> bool:
        """Whether the worker thread has started and not yet exited."""
        return self._thread is not None and not self._done.is_set()

    def start(self) -> None:
        """
        Spawn the worker thread and return immediately.

        Raises:
            RuntimeError: If the session was already started
        """
        if self._thread is not None:
            raise RuntimeError("session already started")

        self._thread = threading.Thread(
            target=self._run,
            name=self._name,
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Session {self._name} started")

    def stop(self) -> None:
        """Request cancellation. Idempotent, does not wait."""
        self.controller.stop()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the worker to exit.

        Args:
            timeout: Maximum seconds to wait. None = wait forever.

        Returns:
            True if the worker has exited.

        Raises:
            BaseException: The error that terminated the worker, if any
        """
        finished = self._done.wait(timeout)
        if finished and self._error is not None:
            raise self._error
        return finished

    def _run(self) -> None:
        try:
            self.controller.run()
        except Exception as e:
            self._error = e
            logger.error(f"Session {self._name} terminated: {e}")
        finally:
            try:
                if self._on_exit is not None:
                    self._on_exit(self)
            finally:
                self._done.set()


class Connection:
    """
    An open byte source that streams at most one session at a time.

    Attributes:
        source: The open byte source
        on_error: Called with the error when a session dies on a fatal error

    Example:
        connection = Connection(source)
        session = connection.start_session(sink=LoggingSink())

        connection.start_session(sink=LoggingSink())   # SessionActiveError
    """

    def __init__(
        self,
        source: ByteSource,
        on_error: Optional[Callable[[BaseException], None]] = None,
    ) -> None:
        self.source = source
        self.on_error = on_error
        self._lock = threading.Lock()
        self._session: Optional[StreamSession] = None

    @property
    def session(self) -> Optional[StreamSession]:
        """The active session, if any."""
        with self._lock:
            return self._session

    @property
    def streaming(self) -> bool:
        """Whether a session is active on this connection."""
        session = self.session
        return session is not None and session.is_running

    def start_session(
        self,
        sink: Sink,
        stream: Optional[StreamConfig] = None,
        aggregation: Optional[AggregationConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> StreamSession:
        """
        Start streaming on this connection.

        Args:
            sink: Record consumer
            stream: Framing and read settings
            aggregation: Window and cadence settings
            clock: Time source for the aggregator

        Returns:
            The started session

        Raises:
            SessionActiveError: If a session is already streaming
        """
        with self._lock:
            if self._session is not None and self._session.is_running:
                raise SessionActiveError("A stream session is already active on this connection")

            controller = StreamController.from_config(
                self.source,
                sink,
                stream=stream,
                aggregation=aggregation,
                clock=clock,
            )
            session = StreamSession(controller, on_exit=self._release)
            self._session = session
            session.start()
            return session

    def stop(self) -> None:
        """Stop the active session, if any. Does not wait."""
        session = self.session
        if session is not None:
            session.stop()

    def close(self, timeout: Optional[float] = 1.0) -> None:
        """Stop streaming, wait for the worker, and close the source."""
        session = self.session
        if session is not None:
            session.stop()
            try:
                session.join(timeout)
            except Exception as e:
                logger.warning(f"Session ended with error: {e}")
        self.source.close()

    def _release(self, session: StreamSession) -> None:
        with self._lock:
            if self._session is session:
                self._session = None

        if session.error is not None and self.on_error is not None:
            self.on_error(session.error)
