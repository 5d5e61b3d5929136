"""
Metadata Correlator
===================

Pairs a message body with the signal-quality lines that follow it.

The radio module prints each received packet as three lines:

    Message: [2024/12/22 (Sunday) 15:34:09] 0.01,0.02,...
    RSSI: -60
    Snr: 9.75

A Sample exists only once all three have been seen, in that order.

States:
    WAITING_MESSAGE --Message--> HAVE_MESSAGE --RSSI--> HAVE_RSSI --Snr--> emit, WAITING_MESSAGE

Rules:
    - A new Message line replaces the pending body and discards pending
      metadata; the replaced message is counted as a desync
    - A repeated RSSI line overwrites the pending value
    - Snr without a pending message and RSSI (WAITING_MESSAGE or
      HAVE_MESSAGE) is a no-op; a pending message is kept
    - An unparsable Snr in HAVE_RSSI drops the pending message
    - Lines with any other prefix are ignored
"""

import logging
from enum import Enum
from typing import Optional

from telemetry_stream.decoding.decoders import FrameDecoder
from telemetry_stream.models.drops import DropReason
from telemetry_stream.models.sample import Sample


logger = logging.getLogger(__name__)


MESSAGE_PREFIX = "Message: "
RSSI_PREFIX = "RSSI: "
SNR_PREFIX = "Snr: "


class CorrelatorState(str, Enum):
    """Correlation progress for the pending message."""
    
    WAITING_MESSAGE = "WAITING_MESSAGE"
    HAVE_MESSAGE = "HAVE_MESSAGE"
    HAVE_RSSI = "HAVE_RSSI"


class MetadataCorrelator:
    """
    Per-session state machine joining message, RSSI and SNR lines.
    
    Attributes:
        decoder: Decoder applied to the message body once complete
        state: Current correlation state
        desync_count: Metadata lines that arrived without their message
        malformed_count: Metadata lines with unparsable values
        ignored_count: Lines with no recognized prefix
        
    Example:
        correlator = MetadataCorrelator(create_decoder(Variant.TIMESTAMPED_CSV))
        
        correlator.on_line("Message: [2024/12/22 (Sunday) 15:34:09] ...")
        correlator.on_line("RSSI: -60")
        sample = correlator.on_line("Snr: 10.0")   # Sample(rssi=-60, snr=10.0, ...)
    """
    
    def __init__(self, decoder: FrameDecoder) -> None:
        self.decoder = decoder
        
        self._state = CorrelatorState.WAITING_MESSAGE
        self._message: str = ""
        self._rssi: Optional[int] = None
        
        self.desync_count: int = 0
        self.malformed_count: int = 0
        self.ignored_count: int = 0
        self.last_drop: Optional[DropReason] = None
    
    @property
    def state(self) -> CorrelatorState:
        return self._state
    
    def on_line(self, line: str) -> Optional[Sample]:
        """
        Process one line.
        
        Args:
            line: Line text without terminator
            
        Returns:
            Sample when an Snr line completes a message that decodes,
            None otherwise.
        """
        self.last_drop = None
        line = line.strip()
        
        if line.startswith(MESSAGE_PREFIX):
            if self._state != CorrelatorState.WAITING_MESSAGE:
                self._drop(DropReason.METADATA_DESYNC, "message replaced before Snr", reset=False)
            self._message = line[len(MESSAGE_PREFIX):]
            self._rssi = None
            self._state = CorrelatorState.HAVE_MESSAGE
            return None
        
        if line.startswith(RSSI_PREFIX):
            self._on_rssi(line[len(RSSI_PREFIX):])
            return None
        
        if line.startswith(SNR_PREFIX):
            return self._on_snr(line[len(SNR_PREFIX):])
        
        self.ignored_count += 1
        logger.debug(f"Ignoring line: {line[:60]!r}")
        return None
    
    def reset(self) -> None:
        """Discard any pending message and metadata."""
        self._state = CorrelatorState.WAITING_MESSAGE
        self._message = ""
        self._rssi = None
    
    def _on_rssi(self, raw: str) -> None:
        if self._state == CorrelatorState.WAITING_MESSAGE:
            self._drop(DropReason.METADATA_DESYNC, "RSSI without message")
            return
        
        try:
            self._rssi = int(raw.strip())
        except ValueError:
            self._drop(DropReason.MALFORMED_FRAME, f"bad RSSI {raw!r}", reset=False)
            return
        
        self._state = CorrelatorState.HAVE_RSSI
    
    def _on_snr(self, raw: str) -> Optional[Sample]:
        if self._state != CorrelatorState.HAVE_RSSI:
            logger.debug(f"Snr without message and RSSI in {self._state.value}, ignored")
            return None
        
        try:
            snr = float(raw.strip())
        except ValueError:
            self._drop(DropReason.MALFORMED_FRAME, f"bad Snr {raw!r}")
            return None
        
        message, rssi = self._message, self._rssi
        self.reset()
        
        sample = self.decoder.decode(message, rssi=rssi, snr=snr)
        if sample is None:
            self.last_drop = DropReason.MALFORMED_FRAME
        return sample
    
    def _drop(self, reason: DropReason, detail: str, reset: bool = True) -> None:
        if reason == DropReason.METADATA_DESYNC:
            self.desync_count += 1
        else:
            self.malformed_count += 1
        self.last_drop = reason
        logger.debug(f"{reason.value}: {detail}")
        if reset:
            self.reset()
