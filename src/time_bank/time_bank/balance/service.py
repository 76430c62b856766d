from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..adjustments.repository import AdjustmentRepository
from ..common.datetime_utils import day_end_exclusive, day_start, resolve_range, utc_now
from ..core.caller import Caller
from ..core.constants import DEFAULT_SUMMARY_RANGE_DAYS
from ..employees.repository import EmployeeRepository
from ..entries.repository import EntryRepository
from ..settings.service import SettingsService
from .calculator.base import WorkedTimeCalculator
from .calculator.standard_calculator import StandardWorkedTimeCalculator
from .model import BalanceSummary
from .summary import build_summary


class BalanceService:
    """Loads ledger data for a range and hands it to ``build_summary``."""

    def __init__(
        self,
        entries: EntryRepository,
        adjustments: AdjustmentRepository,
        employees: EmployeeRepository,
        settings: SettingsService,
        *,
        calculator: Optional[WorkedTimeCalculator] = None,
    ):
        self._entries = entries
        self._adjustments = adjustments
        self._employees = employees
        self._settings = settings
        self._calculator = calculator or StandardWorkedTimeCalculator()

    def compute(
        self,
        tenant_id: int,
        start: date,
        end: date,
        *,
        employee_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> BalanceSummary:
        return build_summary(
            start=start,
            end=end,
            settings=self._settings.load(tenant_id),
            employees=self._employees.list_employed_in_range(tenant_id, start, end, employee_id=employee_id),
            entries=self._entries.list_started_between(
                tenant_id, day_start(start), day_end_exclusive(end), employee_id=employee_id
            ),
            adjustments=self._adjustments.list_approved_in_range(tenant_id, start, end, employee_id=employee_id),
            now=now or utc_now(),
            calculator=self._calculator,
        )

    def summary(
        self,
        *,
        caller: Caller,
        start: Optional[date] = None,
        end: Optional[date] = None,
        employee_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> BalanceSummary:
        caller.require_hr()
        now = now or utc_now()
        start, end = resolve_range(start, end, today=now.date(), default_days=DEFAULT_SUMMARY_RANGE_DAYS)
        return self.compute(caller.tenant_id, start, end, employee_id=employee_id, now=now)
