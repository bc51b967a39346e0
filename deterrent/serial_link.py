# ============================================================
# FILE: deterrent/serial_link.py
# ============================================================

import logging
from typing import Callable, List, Optional

import serial
import serial.threaded
from serial.tools import list_ports

from utils.exceptions import DeviceConnectionError, SendError

logger = logging.getLogger(__name__)

class _SignalLineReader(serial.threaded.LineReader):
    """Delivers CR LF terminated lines from the microcontroller."""
    TERMINATOR = b'\r\n'
    
    def __init__(self, on_line: Callable[[str], None], on_lost: Optional[Callable] = None):
        super().__init__()
        self.on_line = on_line
        self.on_lost = on_lost
    
    def handle_line(self, line: str):
        try:
            self.on_line(line)
        except Exception as e:
            logger.error(f"Error handling serial line {line!r}: {e}")
    
    def connection_lost(self, exc):
        self.transport = None
        if self.on_lost:
            self.on_lost(exc)

class SerialLink:
    def __init__(self, baud_rate: int = 9600, line_ending: str = "\n"):
        self.baud_rate = baud_rate
        self.line_ending = line_ending
        self.device: Optional[str] = None
        self.serial_conn = None
        self._reader = None
    
    @staticmethod
    def list_devices() -> List[str]:
        return [port.device for port in list_ports.comports()]
    
    @property
    def is_open(self) -> bool:
        return self.serial_conn is not None and self.serial_conn.is_open
    
    def open(self, device: str, on_line: Callable[[str], None],
             on_lost: Optional[Callable] = None):
        try:
            self.serial_conn = serial.serial_for_url(
                device,
                baudrate=self.baud_rate,
                bytesize=serial.EIGHTBITS,
                stopbits=serial.STOPBITS_ONE,
                parity=serial.PARITY_NONE,
                timeout=1
            )
            self.serial_conn.dtr = True
            self.serial_conn.rts = True
        except (serial.SerialException, ValueError) as e:
            self.serial_conn = None
            raise DeviceConnectionError(f"Failed to open {device}: {e}", cause=e)
        
        self._reader = serial.threaded.ReaderThread(
            self.serial_conn, lambda: _SignalLineReader(on_line, on_lost)
        )
        self._reader.start()
        self._reader.connect()
        self.device = device
        logger.info(f"Serial link open on {device} at {self.baud_rate} baud")
    
    def write_line(self, text: str):
        reader = self._reader
        if reader is None or not self.is_open:
            raise SendError("Port not open")
        
        try:
            reader.write(f"{text}{self.line_ending}".encode())
        except serial.SerialException as e:
            raise SendError(f"Failed to write to {self.device}: {e}", cause=e)
    
    def close(self):
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        elif self.serial_conn is not None:
            self.serial_conn.close()
        self.serial_conn = None
        self.device = None
