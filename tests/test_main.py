"""
Command Line Tests
==================
"""

import time

from conftest import ScriptedByteSource, radio_lines
from telemetry_stream import main as cli
from telemetry_stream.errors import ByteSourceError


class TestMain:
    """Tests for the telemetry-stream entry point."""
    
    def test_missing_port(self, monkeypatch):
        """No port configured is a usage error."""
        monkeypatch.delenv("TELEMETRY_SERIAL_PORT", raising=False)
        assert cli.main([]) == 2
    
    def test_open_failure(self, monkeypatch):
        """An unopenable port exits with 1."""
        def fail_open(port_name, baud_rate):
            raise ByteSourceError(f"Failed to open {port_name}")
        
        monkeypatch.setattr(cli.SerialByteSource, "open", staticmethod(fail_open))
        assert cli.main(["--port", "/dev/absent"]) == 1
    
    def test_link_failure_exits_promptly(self, monkeypatch, valid_message):
        """A dead link ends the command well before the next progress report."""
        source = ScriptedByteSource([radio_lines(valid_message)], fail_at_end=True)
        monkeypatch.setattr(
            cli.SerialByteSource,
            "open",
            staticmethod(lambda port_name, baud_rate: source),
        )
        monkeypatch.setattr(cli.signal, "signal", lambda signum, handler: None)
        
        started = time.monotonic()
        code = cli.main(["--port", "/dev/ttyUSB0", "--report-interval", "30"])
        
        assert code == 1
        assert time.monotonic() - started < 5.0
        assert source.closed
