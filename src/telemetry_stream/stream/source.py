"""
Byte Sources
============

Blocking-with-timeout byte sources feeding a stream session.

Contract:
    read(max_bytes, timeout) -> bytes
        - non-empty bytes: data arrived
        - b"": the timeout elapsed with no data (not an error)
        - raises ByteSourceError: fatal failure, the session ends

Opening and closing the underlying device is the caller's business;
SerialByteSource.open() is a convenience for the command line tool.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import serial

from telemetry_stream.errors import ByteSourceError


logger = logging.getLogger(__name__)


class ByteSource(ABC):
    """Abstract blocking byte source."""
    
    @abstractmethod
    def read(self, max_bytes: int, timeout: float) -> bytes:
        """
        Read up to max_bytes, waiting at most timeout seconds.
        
        Returns:
            Bytes read, or b"" on timeout.
            
        Raises:
            ByteSourceError: On fatal I/O failure
        """
    
    def close(self) -> None:
        """Release the underlying device. Default: nothing to release."""


class SerialByteSource(ByteSource):
    """
    Byte source backed by a pyserial port.
    
    Blocks for the first byte (bounded by the timeout), then drains
    whatever the driver already has buffered, up to max_bytes.
    
    Example:
        source = SerialByteSource.open("/dev/ttyUSB0", 115200)
        data = source.read(1024, timeout=0.1)
    """
    
    def __init__(self, port: serial.SerialBase) -> None:
        self._port = port
    
    @classmethod
    def open(cls, port_name: str, baud_rate: int = 115200) -> "SerialByteSource":
        """
        Open a serial device.
        
        Raises:
            ByteSourceError: If the device cannot be opened
        """
        try:
            port = serial.Serial(
                port_name,
                baud_rate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=0.1,
            )
        except serial.SerialException as e:
            raise ByteSourceError(f"Failed to open {port_name}: {e}") from e
        
        logger.info(f"Connected to {port_name} at {baud_rate} baud")
        return cls(port)
    
    @property
    def name(self) -> Optional[str]:
        return self._port.name
    
    def read(self, max_bytes: int, timeout: float) -> bytes:
        try:
            if self._port.timeout != timeout:
                self._port.timeout = timeout
            first = self._port.read(1)
            if not first:
                return b""
            waiting = min(self._port.in_waiting, max_bytes - 1)
            if waiting > 0:
                return first + self._port.read(waiting)
            return first
        except (serial.SerialException, OSError) as e:
            raise ByteSourceError(f"Read failed on {self.name}: {e}") from e
    
    def close(self) -> None:
        if self._port.is_open:
            self._port.close()
            logger.info(f"Closed serial port {self.name}")
