from __future__ import annotations

import logging
import secrets
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..closures.repository import ClosureRepository
from ..common.datetime_utils import as_utc, day_end_exclusive, day_start, utc_now
from ..common.locks import LedgerLocks
from ..common.validators import normalize_optional_text
from ..core.caller import Caller
from ..core.constants import CLOCK_SKEW_TOLERANCE_SECONDS
from ..core.enums import UpsertOutcome
from ..core.exceptions import (
    AlreadyOpenError,
    AuthorizationError,
    InvalidIntervalError,
    NoOpenEntryError,
    NotFoundError,
    PeriodClosedError,
    ValidationError,
)
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .model import ExternalEntry, MyEntries, TimeEntry
from .repository import EntryRepository

logger = logging.getLogger(__name__)


def new_punch_ref() -> str:
    return f"punch-{secrets.token_hex(8)}"


class EntryService:
    """Clock events and provider imports into the single entry ledger.

    Every write holds the employee lock and, inside it, the tenant's shared
    ledger lock; the closure check is repeated under that lock.
    """

    def __init__(
        self,
        entries: EntryRepository,
        employees: EmployeeRepository,
        closures: ClosureRepository,
        locks: LedgerLocks,
        *,
        skew_seconds: int = CLOCK_SKEW_TOLERANCE_SECONDS,
    ):
        self._entries = entries
        self._employees = employees
        self._closures = closures
        self._locks = locks
        self._skew = timedelta(seconds=int(skew_seconds))

    def _resolve_employee(self, caller: Caller, employee_id: Optional[int]) -> Employee:
        if employee_id is None:
            employee = self._employees.get_for_user(caller.tenant_id, caller.user_id)
            if not employee:
                raise NotFoundError("employee profile not linked to user")
            return employee

        employee = self._employees.get_by_id(caller.tenant_id, int(employee_id))
        if not employee:
            raise NotFoundError("employee not found")
        if employee.user_id != caller.user_id and not caller.is_hr:
            raise AuthorizationError("only HR can clock for another employee")
        return employee

    def _ensure_not_future(self, at: datetime, now: datetime) -> None:
        if at > now + self._skew:
            raise InvalidIntervalError("timestamp cannot be in the future")

    def _ensure_date_open(self, tenant_id: int, day: date) -> None:
        if self._closures.is_date_closed(tenant_id, day):
            raise PeriodClosedError(f"time bank period is closed for {day.isoformat()}")

    def clock_in(
        self,
        *,
        caller: Caller,
        employee_id: Optional[int] = None,
        at: Optional[datetime] = None,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TimeEntry:
        now = now or utc_now()
        at = as_utc(at or now)
        self._ensure_not_future(at, now)

        employee = self._resolve_employee(caller, employee_id)
        if not employee.is_active:
            raise ValidationError("employee is not active")

        tenant_id = caller.tenant_id
        with self._locks.employee(tenant_id, employee.employee_id):
            if self._entries.get_open(tenant_id, employee.employee_id):
                raise AlreadyOpenError("employee already has an open time entry")
            with self._locks.writing(tenant_id):
                self._ensure_date_open(tenant_id, at.date())
                entry = self._entries.create_internal(
                    tenant_id,
                    employee_id=employee.employee_id,
                    external_ref=new_punch_ref(),
                    start_at=at,
                    note_in=normalize_optional_text(note),
                )

        logger.info(
            "clock_in tenant=%s employee=%s entry=%s by_user=%s",
            tenant_id, employee.employee_id, entry.entry_id, caller.user_id,
        )
        return entry

    def clock_out(
        self,
        *,
        caller: Caller,
        employee_id: Optional[int] = None,
        at: Optional[datetime] = None,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TimeEntry:
        now = now or utc_now()
        at = as_utc(at or now)
        self._ensure_not_future(at, now)

        employee = self._resolve_employee(caller, employee_id)
        tenant_id = caller.tenant_id
        note_out = normalize_optional_text(note)

        with self._locks.employee(tenant_id, employee.employee_id):
            open_entry = self._entries.get_open(tenant_id, employee.employee_id)
            if not open_entry:
                raise NoOpenEntryError("no open time entry found")
            if at <= open_entry.start_at:
                raise InvalidIntervalError("clock-out must be after clock-in")
            with self._locks.writing(tenant_id):
                self._ensure_date_open(tenant_id, open_entry.entry_date)
                if not self._entries.close_entry(tenant_id, open_entry.entry_id, end_at=at, note_out=note_out):
                    raise NoOpenEntryError("no open time entry found")

        logger.info(
            "clock_out tenant=%s employee=%s entry=%s by_user=%s",
            tenant_id, employee.employee_id, open_entry.entry_id, caller.user_id,
        )
        return replace(open_entry, end_at=at, note_out=note_out)

    def list_entries(
        self,
        *,
        caller: Caller,
        employee_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: int,
    ) -> Sequence[TimeEntry]:
        caller.require_hr()
        if start and end and end < start:
            raise ValidationError("to must be >= from")
        return self._entries.list_entries(
            caller.tenant_id,
            employee_id=employee_id,
            start=start,
            end=end,
            limit=limit,
        )

    def my_entries(self, *, caller: Caller, limit: int, now: Optional[datetime] = None) -> MyEntries:
        now = now or utc_now()
        employee = self._employees.get_for_user(caller.tenant_id, caller.user_id)
        if not employee:
            raise NotFoundError("employee profile not linked to user")

        today = now.date()
        today_entries = self._entries.list_started_between(
            caller.tenant_id,
            day_start(today),
            day_end_exclusive(today),
            employee_id=employee.employee_id,
        )
        today_seconds = sum(e.duration_seconds(now) for e in today_entries)

        return MyEntries(
            employee=employee,
            today_seconds=today_seconds,
            open_entry=self._entries.get_open(caller.tenant_id, employee.employee_id),
            entries=list(self._entries.list_recent(caller.tenant_id, employee.employee_id, limit=limit)),
        )

    def upsert_external(
        self,
        tenant_id: int,
        entry: ExternalEntry,
        *,
        allow_closed_override: bool = False,
        now: Optional[datetime] = None,
    ) -> UpsertOutcome:
        """Insert or fully replace a provider entry matched on its external ref.

        Raises ``PeriodClosedError`` for a closed date unless overridden and
        ``AlreadyOpenError`` when a running provider entry would become the
        employee's second open entry.
        """

        now = now or utc_now()
        if entry.end_at is not None and entry.end_at <= entry.start_at:
            raise InvalidIntervalError("entry end must be after its start")

        with self._locks.employee(tenant_id, entry.employee_id):
            with self._locks.writing(tenant_id):
                stored = self._entries.get_by_ref(tenant_id, entry.employee_id, entry.source, entry.external_ref)
                if not allow_closed_override:
                    self._ensure_date_open(tenant_id, entry.entry_date)
                    if stored and stored.entry_date != entry.entry_date:
                        self._ensure_date_open(tenant_id, stored.entry_date)

                if stored and entry.matches(stored):
                    return UpsertOutcome.UNCHANGED

                if entry.is_open:
                    open_entry = self._entries.get_open(tenant_id, entry.employee_id)
                    if open_entry and (stored is None or open_entry.entry_id != stored.entry_id):
                        raise AlreadyOpenError("employee already has an open time entry")

                if stored:
                    self._entries.replace_external(tenant_id, stored.entry_id, entry, synced_at=now)
                    outcome = UpsertOutcome.UPDATED
                else:
                    self._entries.insert_external(tenant_id, entry, synced_at=now)
                    outcome = UpsertOutcome.INSERTED

        logger.debug(
            "upsert_external tenant=%s employee=%s ref=%s outcome=%s",
            tenant_id, entry.employee_id, entry.external_ref, outcome.value,
        )
        return outcome
