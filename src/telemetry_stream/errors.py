"""
Stream Errors
=============

Exceptions surfaced at the connection level.

Per-frame problems (malformed frames, metadata desync, buffer overflow)
are never raised; they are counted and logged. See models.drops.DropReason.
"""


class TelemetryStreamError(Exception):
    """Base class for telemetry stream errors."""
    pass


class ByteSourceError(TelemetryStreamError):
    """Raised when the byte source fails fatally (e.g. device disconnect)."""
    pass


class SessionActiveError(TelemetryStreamError):
    """Raised when starting a session on a connection that is already streaming."""
    pass
