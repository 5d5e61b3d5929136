"""
Sequencer
=========

Monotonic id source for emitted records.

Ids start at 1 and increase by exactly 1 per record. The counter is
lock-guarded so concurrent producers can never hand out the same id.
"""

import threading

from telemetry_stream.models.output import U32_MAX


class Sequencer:
    """
    Thread-safe record id counter.
    
    Example:
        sequencer = Sequencer()
        sequencer.next_id()   # 1
        sequencer.next_id()   # 2
    """
    
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: int = 0
    
    @property
    def current(self) -> int:
        """Last id handed out (0 before the first)."""
        with self._lock:
            return self._value
    
    def next_id(self) -> int:
        """
        Increment and return the new id.
        
        Raises:
            OverflowError: If the u32 id space is exhausted
        """
        with self._lock:
            if self._value >= U32_MAX:
                raise OverflowError("record id space exhausted")
            self._value += 1
            return self._value
