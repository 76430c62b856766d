from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ClosureStatus


@dataclass(frozen=True)
class Closure:
    """A frozen period. Totals are the sums of the snapshot rows at close time."""

    closure_id: int
    tenant_id: int
    period_start: date
    period_end: date
    status: ClosureStatus
    note: Optional[str]
    closed_at: datetime
    closed_by: Optional[int]
    reopened_at: Optional[datetime] = None
    reopened_by: Optional[int] = None
    employees_count: int = 0
    total_worked_seconds: int = 0
    total_expected_seconds: int = 0
    total_adjustment_seconds: int = 0
    total_balance_seconds: int = 0

    @property
    def is_closed(self) -> bool:
        return self.status == ClosureStatus.CLOSED

    def covers(self, day: date) -> bool:
        return self.period_start <= day <= self.period_end

    def overlaps(self, start: date, end: date) -> bool:
        return not (self.period_end < start or self.period_start > end)


@dataclass(frozen=True)
class ClosureItem:
    """Snapshot of one employee's balance at close time. Never updated."""

    closure_id: int
    employee_id: int
    employee_name: str
    worked_seconds: int
    expected_seconds: int
    adjustment_seconds: int
    balance_seconds: int
