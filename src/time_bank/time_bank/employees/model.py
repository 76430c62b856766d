from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

TERMINATED_STATUS = "terminated"


@dataclass(frozen=True)
class Employee:
    """Read-only view of an employee from the HR directory."""

    employee_id: int
    tenant_id: int
    full_name: str
    email: Optional[str] = None
    user_id: Optional[int] = None
    status: str = "active"
    hire_date: Optional[date] = None
    termination_date: Optional[date] = None

    @property
    def is_active(self) -> bool:
        return self.status != TERMINATED_STATUS

    def employed_window(self, start: date, end: date) -> Optional[tuple[date, date]]:
        """Clip ``[start, end]`` to the employment dates, None if disjoint."""
        lo = max(start, self.hire_date) if self.hire_date else start
        hi = min(end, self.termination_date) if self.termination_date else end
        if hi < lo:
            return None
        return lo, hi


def normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()
