from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ...entries.model import TimeEntry


class WorkedTimeCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked time)."""

    @abstractmethod
    def worked_seconds(self, entry: TimeEntry, *, now: datetime, range_end: datetime) -> int:
        raise NotImplementedError
