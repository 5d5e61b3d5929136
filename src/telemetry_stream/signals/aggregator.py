"""
Windowed Aggregator
===================

Reduces a sliding window of Samples into one Sample at a fixed cadence.

This aggregator:
    - Keeps the most recent W samples (FIFO, oldest evicted first)
    - Emits at most once per emit_interval
    - Reduces the whole current window at emission time

Reduction Policy:
    Continuous channels (acceleration, angular rate, pressure, position,
    snr, ...) are averaged. Discrete channels (GPS fix flag, fix quality
    code, satellite count) use the statistical mode, because the mean of
    two fix-quality codes is not a fix-quality code. Ties in the mode
    resolve to the lowest value so the output is reproducible.

    rssi is an integer in dBm and follows RssiReduction:
        MEAN: arithmetic mean rounded to the nearest integer (Python
              round(), ties to even). Not truncated.
        MODE: statistical mode, like the discrete channels.

    The timestamp is copied from the newest sample.
"""

import logging
import time
from collections import deque
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from telemetry_stream.models.sample import CONTINUOUS_FIELDS, DISCRETE_FIELDS, Sample


logger = logging.getLogger(__name__)


class RssiReduction(str, Enum):
    """How the aggregator reduces the integer rssi channel over a window."""

    MEAN = "mean"
    MODE = "mode"


def window_mode(values: Sequence[int]) -> int:
    """
    Most frequent value; ties resolve to the lowest value.

    np.unique returns sorted values, and argmax returns the first
    maximum, so the lowest tied candidate wins.
    """
    uniques, counts = np.unique(np.asarray(values), return_counts=True)
    return int(uniques[np.argmax(counts)])


class WindowedAggregator:
    """
    Fixed-capacity FIFO of Samples with a time-based emission cadence.

    Attributes:
        window_size: Window capacity W
        emit_interval: Minimum seconds between emissions
        rssi_reduction: Reduction applied to rssi

    Example:
        aggregator = WindowedAggregator(window_size=10, emit_interval=0.1)

        for sample in samples:
            aggregated = aggregator.add(sample)
            if aggregated is not None:
                publish(aggregated)
    """

    def __init__(
        self,
        window_size: int = 10,
        emit_interval: float = 0.1,
        rssi_reduction: RssiReduction = RssiReduction.MEAN,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize windowed aggregator.

        Args:
            window_size: Window capacity. Must be >= 1.
            emit_interval: Seconds between emissions. Must be >= 0.
            rssi_reduction: MEAN (rounded) or MODE
            clock: Monotonic time source in seconds
        """
        if window_size < 1:
            raise ValueError("window_size must be >= 1")
        if emit_interval < 0:
            raise ValueError("emit_interval must be >= 0")

        self.window_size = window_size
        self.emit_interval = emit_interval
        self.rssi_reduction = RssiReduction(rssi_reduction)
        self._clock = clock

        self._window: deque = deque(maxlen=window_size)
        self._last_emit: float = clock()
        self._emitted_count: int = 0

        logger.info(
            f"WindowedAggregator initialized: window={window_size}, "
            f"interval={emit_interval * 1000:.0f}ms, rssi={self.rssi_reduction.value}"
        )

    @property
    def window(self) -> Tuple[Sample, ...]:
        """Snapshot of the current window, oldest first."""
        return tuple(self._window)

    @property
    def emitted_count(self) -> int:
        """Number of aggregated samples emitted."""
        return self._emitted_count

    def add(self, sample: Sample) -> Optional[Sample]:
        """
        Add a sample and emit an aggregate if the interval elapsed.

        Args:
            sample: Newly decoded sample

        Returns:
            Aggregated sample over the current window, or None if the
            emission interval has not elapsed yet.
        """
        self._window.append(sample)

        now = self._clock()
        if now - self._last_emit < self.emit_interval:
            return None

        self._last_emit = now
        self._emitted_count += 1
        return self.reduce()

    def reduce(self) -> Sample:
        """
        Reduce the current window into one Sample.

        Raises:
            ValueError: If the window is empty
        """
        if not self._window:
            raise ValueError("cannot reduce an empty window")

        samples = list(self._window)
        values = {}

        for name in CONTINUOUS_FIELDS:
            values[name] = float(np.mean([getattr(s, name) for s in samples]))

        for name in DISCRETE_FIELDS:
            values[name] = window_mode([getattr(s, name) for s in samples])

        rssi_values = [s.rssi for s in samples]
        if self.rssi_reduction == RssiReduction.MODE:
            values["rssi"] = window_mode(rssi_values)
        else:
            values["rssi"] = int(round(float(np.mean(rssi_values))))

        return Sample(timestamp=samples[-1].timestamp, **values)

    def reset(self) -> None:
        """Empty the window and restart the emission clock."""
        self._window.clear()
        self._last_emit = self._clock()
        self._emitted_count = 0
        logger.info("WindowedAggregator reset")
