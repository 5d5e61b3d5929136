"""
Drop Reasons
============

Fixed set of machine-readable reasons for discarding stream input.

None of these are propagated to the consumer; the consumer simply sees
no update. They are counted separately so a framing protocol violation
(BUFFER_OVERFLOW) can be told apart from a single bad reading.
"""

from enum import Enum


class DropReason(str, Enum):
    """
    Why input was dropped.
    
    Attributes:
        MALFORMED_FRAME: Wrong field count, unparsable value, missing delimiter
        METADATA_DESYNC: RSSI/SNR line without the message it belongs to
        BUFFER_OVERFLOW: Unterminated data exceeded the buffer size cap
    """
    
    MALFORMED_FRAME = "MALFORMED_FRAME"
    METADATA_DESYNC = "METADATA_DESYNC"
    BUFFER_OVERFLOW = "BUFFER_OVERFLOW"
