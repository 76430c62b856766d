from __future__ import annotations

from datetime import datetime

from .base import WorkedTimeCalculator
from ...entries.model import TimeEntry


class StandardWorkedTimeCalculator(WorkedTimeCalculator):
    """Standard rule: end - start, not below 0.

    An open entry runs up to ``now``, or up to the exclusive range end when
    ``now`` lies past the range.
    """

    def worked_seconds(self, entry: TimeEntry, *, now: datetime, range_end: datetime) -> int:
        if entry.end_at is not None:
            end = entry.end_at
        else:
            end = min(now, range_end)
        return max(int((end - entry.start_at).total_seconds()), 0)
