"""Value types shared by the collector and its collaborators."""

from typing import Dict, Any, Optional
from dataclasses import dataclass
from enum import Enum


class OperationType(Enum):
    """Kind of unit of work a session measures."""
    WEB = 1
    WORKER = 2


@dataclass
class CustomTimer:
    """A named sub-interval of a sampled session."""
    group: str
    label: str
    started_at: Optional[float]
    duration_micros: Optional[int] = None

    @property
    def closed(self) -> bool:
        return self.duration_micros is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group": self.group,
            "label": self.label,
            "duration_micros": self.duration_micros
        }
