# ============================================================
# FILE: detection/models.py
# ============================================================

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable

DEFAULT_THREAT_CLASSES = (
    'leopard', 'snow leopard', 'jaguar', 'cheetah', 'panther', 'tiger', 'lion', 'cat'
)

class PipelineState(Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    CLASSIFYING = "classifying"
    DECIDING = "deciding"
    COOLDOWN = "cooldown"

class ActuatorCommand(Enum):
    """Text tokens understood by the deterrent microcontroller."""
    ALARM_ON = "ALARM_ON"
    ALARM_OFF = "ALARM_OFF"

@dataclass(frozen=True)
class DetectionEvent:
    label: str
    confidence: float
    is_threat: bool
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def percent(self) -> int:
        return int(self.confidence * 100 + 0.5)

    def to_dict(self) -> dict:
        return {
            'label': self.label,
            'confidence': self.confidence,
            'is_threat': self.is_threat,
            'timestamp': self.timestamp.isoformat()
        }

@dataclass(frozen=True)
class LogEntry:
    message: str
    timestamp: datetime = field(default_factory=datetime.now)

    def format(self) -> str:
        return f"[{self.timestamp.strftime('%H:%M')}] {self.message}"

    def to_dict(self) -> dict:
        return {
            'timestamp': self.timestamp.isoformat(),
            'message': self.message,
            'line': self.format()
        }

class ThreatClassSet:
    """
    Labels treated as positive detections.

    Matching is case-insensitive. Classifier labels may list comma separated
    synonyms ("snow leopard, ounce, Panthera uncia"); the label is a threat
    when any one synonym equals a class. "sea lion" or "tiger shark" do not match.
    """
    
    def __init__(self, labels: Iterable[str] = DEFAULT_THREAT_CLASSES):
        self._labels: FrozenSet[str] = frozenset(
            label.strip().lower() for label in labels if label and label.strip()
        )
    
    def __contains__(self, label) -> bool:
        if not isinstance(label, str):
            return False
        synonyms = (part.strip().lower() for part in label.split(','))
        return any(synonym in self._labels for synonym in synonyms if synonym)
    
    def __iter__(self):
        return iter(sorted(self._labels))
    
    def __len__(self) -> int:
        return len(self._labels)
    
    def __repr__(self):
        return f"ThreatClassSet({sorted(self._labels)})"
