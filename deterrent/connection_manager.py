# ============================================================
# FILE: deterrent/connection_manager.py
# ============================================================

import logging
import threading
from typing import Callable, Optional, Union

from deterrent.serial_link import SerialLink
from detection.event_log import EventLog
from detection.models import ActuatorCommand
from utils.exceptions import DeviceConnectionError, SendError

logger = logging.getLogger(__name__)

class ConnectionManager:
    """Owns the single serial link to the deterrent microcontroller."""
    
    def __init__(self, event_log: EventLog, link: Optional[SerialLink] = None,
                 port: Optional[str] = None,
                 on_line: Optional[Callable[[str], None]] = None):
        self.event_log = event_log
        self.link = link or SerialLink()
        self.port = port
        self.on_line = on_line
        self._connected = False
        self._lock = threading.Lock()
    
    @property
    def is_connected(self) -> bool:
        return self._connected
    
    @property
    def status_text(self) -> str:
        return 'ARDUINO CONNECTED' if self._connected else 'DISCONNECTED'
    
    def connect(self) -> str:
        with self._lock:
            if self._connected:
                raise DeviceConnectionError(f"Already connected to {self.link.device}")
            
            device = self.port
            if not device:
                devices = self.link.list_devices()
                if not devices:
                    self.event_log.add('No USB devices found')
                    raise DeviceConnectionError("No USB devices found")
                device = devices[0]
            
            # drop any handle left behind by a lost connection
            self.link.close()
            try:
                self.link.open(device, self._handle_line, self._handle_lost)
            except DeviceConnectionError as e:
                self.event_log.add(f'Failed to open serial port: {e}')
                raise
            
            self._connected = True
        
        self.event_log.add('Serial port opened successfully')
        return device
    
    def send(self, command: Union[ActuatorCommand, str]) -> bool:
        token = command.value if isinstance(command, ActuatorCommand) else str(command)
        
        if not self._connected:
            self.event_log.add('Cannot send: Port not ready')
            return False
        
        try:
            self.link.write_line(token)
        except SendError as e:
            self.event_log.add(f'Send failed: {e}')
            return False
        except Exception as e:
            logger.error(f"Unexpected error writing {token}: {e}")
            self.event_log.add(f'Send failed: {e}')
            return False
        
        self.event_log.add(f'Sending command -> {token}')
        return True
    
    def disconnect(self):
        with self._lock:
            if not self._connected:
                return
            self._connected = False
            self.link.close()
        self.event_log.add('Serial port closed')
    
    def _handle_line(self, line: str):
        if self.on_line:
            self.on_line(line)
    
    def _handle_lost(self, exc):
        if not self._connected:
            return
        self._connected = False
        self.event_log.add(f'Serial connection lost: {exc}')
