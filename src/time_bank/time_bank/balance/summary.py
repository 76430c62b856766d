from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence

from ..adjustments.model import Adjustment
from ..common.datetime_utils import day_end_exclusive
from ..core.enums import AdjustmentStatus
from ..employees.model import Employee
from ..entries.model import TimeEntry
from ..settings.model import PeriodSettings
from .calculator.base import WorkedTimeCalculator
from .calculator.standard_calculator import StandardWorkedTimeCalculator
from .model import BalanceSummary, BalanceTotals, EmployeeBalance

SATURDAY = 5
SUNDAY = 6


def count_work_days(start: date, end: date, include_saturday: bool) -> int:
    """Days in ``[start, end]`` that count as working days."""
    if end < start:
        return 0
    total = 0
    cursor = start
    while cursor <= end:
        weekday = cursor.weekday()
        if weekday != SUNDAY and (include_saturday or weekday != SATURDAY):
            total += 1
        cursor += timedelta(days=1)
    return total


def build_summary(
    *,
    start: date,
    end: date,
    settings: PeriodSettings,
    employees: Sequence[Employee],
    entries: Iterable[TimeEntry],
    adjustments: Iterable[Adjustment],
    now: datetime,
    calculator: Optional[WorkedTimeCalculator] = None,
) -> BalanceSummary:
    """Per-employee worked/expected/adjustment/balance totals for ``[start, end]``.

    Pure: every input, including ``now``, is explicit. Rows follow the order
    of ``employees`` (the repository returns them by name, then id).
    """

    calculator = calculator or StandardWorkedTimeCalculator()
    range_end = day_end_exclusive(end)

    worked: dict[int, int] = defaultdict(int)
    for entry in entries:
        if start <= entry.entry_date <= end:
            worked[entry.employee_id] += calculator.worked_seconds(entry, now=now, range_end=range_end)

    adjusted: dict[int, int] = defaultdict(int)
    for adj in adjustments:
        if adj.status == AdjustmentStatus.APPROVED and start <= adj.effective_date <= end:
            adjusted[adj.employee_id] += int(adj.seconds_delta)

    daily_seconds = int(settings.target_daily_minutes) * 60
    rows: list[EmployeeBalance] = []
    totals = BalanceTotals()
    for employee in employees:
        window = employee.employed_window(start, end)
        expected = 0
        if window is not None:
            expected = count_work_days(window[0], window[1], settings.include_saturday) * daily_seconds

        worked_seconds = worked.get(employee.employee_id, 0)
        adjustment_seconds = adjusted.get(employee.employee_id, 0)
        balance_seconds = worked_seconds - expected + adjustment_seconds

        rows.append(
            EmployeeBalance(
                employee_id=employee.employee_id,
                name=employee.full_name,
                status=employee.status,
                hire_date=employee.hire_date,
                termination_date=employee.termination_date,
                worked_seconds=worked_seconds,
                expected_seconds=expected,
                adjustment_seconds=adjustment_seconds,
                balance_seconds=balance_seconds,
            )
        )
        totals = BalanceTotals(
            worked_seconds=totals.worked_seconds + worked_seconds,
            expected_seconds=totals.expected_seconds + expected,
            adjustment_seconds=totals.adjustment_seconds + adjustment_seconds,
            balance_seconds=totals.balance_seconds + balance_seconds,
        )

    return BalanceSummary(
        start_date=start,
        end_date=end,
        target_daily_minutes=settings.target_daily_minutes,
        include_saturday=settings.include_saturday,
        employees=rows,
        totals=totals,
    )
