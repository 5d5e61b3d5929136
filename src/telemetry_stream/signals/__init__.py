"""
Signals Module
==============

Windowed aggregation and record numbering.

    - WindowedAggregator: Mean/mode reduction over a sliding window
    - Sequencer: Lock-guarded monotonic record ids
    - project_record: Aggregated Sample -> OutputRecord
"""

from telemetry_stream.signals.aggregator import RssiReduction, WindowedAggregator, window_mode
from telemetry_stream.signals.sequencer import Sequencer
from telemetry_stream.signals.projection import mission_time, project_record


__all__ = [
    "RssiReduction",
    "WindowedAggregator",
    "window_mode",
    "Sequencer",
    "mission_time",
    "project_record",
]
