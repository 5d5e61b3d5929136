"""
Frame Data Model
================

Internal frame representation for the ingestion pipeline.

A Frame is one delimited unit of raw protocol text, as cut out of the
accumulation buffer. It is handed to the correlator or decoder exactly once.

Design Rules:
    - Text is stripped of surrounding whitespace and line terminators
    - Does NOT interpret the text
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Frame:
    """
    Extracted protocol frame.
    
    Attributes:
        text: Frame text, e.g. "[1234:0.1,...],rssi:-70" or "RSSI: -60"
    """
    
    text: str
    
    def __repr__(self) -> str:
        """Compact repr that doesn't dump long frames."""
        preview = self.text if len(self.text) <= 40 else self.text[:37] + "..."
        return f"Frame(text={preview!r})"
