# ============================================================
# FILE: detection/event_log.py
# ============================================================

import logging
import threading
from typing import List, Optional

from detection.models import LogEntry

logger = logging.getLogger(__name__)

class EventLog:
    """Append-only list of operator-facing messages shown in the UI."""
    
    CLEARED_MESSAGE = "Logs cleared."
    
    def __init__(self, initial_message: Optional[str] = None):
        self._entries: List[LogEntry] = []
        self._lock = threading.Lock()
        if initial_message:
            self.add(initial_message)
    
    def add(self, message: str) -> LogEntry:
        entry = LogEntry(message)
        with self._lock:
            self._entries.append(entry)
        logger.info(message)
        return entry
    
    def entries(self) -> List[LogEntry]:
        with self._lock:
            return list(self._entries)
    
    def messages(self) -> List[str]:
        return [entry.message for entry in self.entries()]
    
    def clear(self):
        with self._lock:
            self._entries = [LogEntry(self.CLEARED_MESSAGE)]
    
    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
