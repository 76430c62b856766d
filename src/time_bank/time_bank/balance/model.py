from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence


@dataclass(frozen=True)
class EmployeeBalance:
    employee_id: int
    name: str
    status: str
    hire_date: Optional[date]
    termination_date: Optional[date]
    worked_seconds: int
    expected_seconds: int
    adjustment_seconds: int
    balance_seconds: int


@dataclass(frozen=True)
class BalanceTotals:
    worked_seconds: int = 0
    expected_seconds: int = 0
    adjustment_seconds: int = 0
    balance_seconds: int = 0


@dataclass(frozen=True)
class BalanceSummary:
    start_date: date
    end_date: date
    target_daily_minutes: int
    include_saturday: bool
    employees: Sequence[EmployeeBalance] = field(default_factory=list)
    totals: BalanceTotals = field(default_factory=BalanceTotals)
