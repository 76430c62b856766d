from __future__ import annotations

import time
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from src.time_bank.time_bank.adjustments.model import Adjustment
from src.time_bank.time_bank.balance.model import BalanceSummary
from src.time_bank.time_bank.closures.model import Closure, ClosureItem
from src.time_bank.time_bank.common.locks import LedgerLocks
from src.time_bank.time_bank.container import Container, wire_services
from src.time_bank.time_bank.core.enums import AdjustmentStatus, ClosureStatus, EntrySource
from src.time_bank.time_bank.core.exceptions import AlreadyOpenError, ProviderUnavailableError
from src.time_bank.time_bank.employees.model import TERMINATED_STATUS, Employee
from src.time_bank.time_bank.entries.model import ExternalEntry, TimeEntry
from src.time_bank.time_bank.integrations.model import (
    ClockifyConnection,
    EmployeeStats,
    EntryStats,
    UnmappedEmployee,
    UserLink,
)
from src.time_bank.time_bank.integrations.clockify.schemas import ClockifyUser
from src.time_bank.time_bank.settings.model import PeriodSettings


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _stored(value: Optional[datetime]) -> Optional[datetime]:
    """Round to the second the way a MySQL DATETIME column does."""
    if value is None:
        return None
    rounded = value.replace(microsecond=0)
    return rounded + timedelta(seconds=1) if value.microsecond >= 500_000 else rounded


class FakeEmployeeRepo:
    def __init__(self, employees=()):
        self._rows: dict[int, Employee] = {e.employee_id: e for e in employees}

    def add(self, employee: Employee) -> Employee:
        self._rows[employee.employee_id] = employee
        return employee

    def get_by_id(self, tenant_id, employee_id):
        row = self._rows.get(int(employee_id))
        return row if row and row.tenant_id == tenant_id else None

    def get_for_user(self, tenant_id, user_id):
        for row in self._rows.values():
            if row.tenant_id == tenant_id and row.user_id == user_id:
                return row
        return None

    def list_employed_in_range(self, tenant_id, start, end, *, employee_id=None):
        rows = [
            e for e in self._rows.values()
            if e.tenant_id == tenant_id
            and (e.hire_date is None or e.hire_date <= end)
            and (e.termination_date is None or e.termination_date >= start)
            and (employee_id is None or e.employee_id == employee_id)
        ]
        return sorted(rows, key=lambda e: (e.full_name, e.employee_id))

    def list_active(self, tenant_id):
        rows = [e for e in self._rows.values() if e.tenant_id == tenant_id and e.status != TERMINATED_STATUS]
        return sorted(rows, key=lambda e: (e.full_name, e.employee_id))


class FakeEntryRepo:
    """Mirrors the real table: the one-open-entry unique key and whole-second
    DATETIME columns, which round fractional seconds on write.

    ``open_key=False`` drops the unique key and ``read_delay`` stalls
    ``get_open`` so races between the check and the write become likely.
    """

    def __init__(self, *, open_key: bool = True, read_delay: float = 0.0):
        self._next_id = 1
        self._open_key = open_key
        self._read_delay = read_delay
        self.rows: dict[int, TimeEntry] = {}

    def _ensure_no_open(self, tenant_id, employee_id, *, ignore_id=None):
        if not self._open_key:
            return
        for row in self.rows.values():
            if (
                row.tenant_id == tenant_id
                and row.employee_id == employee_id
                and row.end_at is None
                and row.entry_id != ignore_id
            ):
                raise AlreadyOpenError("employee already has an open time entry")

    def _new_id(self) -> int:
        entry_id = self._next_id
        self._next_id += 1
        return entry_id

    def get_by_id(self, tenant_id, entry_id):
        row = self.rows.get(int(entry_id))
        return row if row and row.tenant_id == tenant_id else None

    def get_open(self, tenant_id, employee_id):
        found = next(
            (
                row for row in list(self.rows.values())
                if row.tenant_id == tenant_id and row.employee_id == employee_id and row.end_at is None
            ),
            None,
        )
        if self._read_delay:
            time.sleep(self._read_delay)
        return found

    def get_by_ref(self, tenant_id, employee_id, source, external_ref):
        for row in self.rows.values():
            if (
                row.tenant_id == tenant_id
                and row.employee_id == employee_id
                and row.source == source
                and row.external_ref == external_ref
            ):
                return row
        return None

    def create_internal(self, tenant_id, *, employee_id, external_ref, start_at, note_in):
        self._ensure_no_open(tenant_id, employee_id)
        entry = TimeEntry(
            entry_id=self._new_id(),
            tenant_id=tenant_id,
            employee_id=employee_id,
            source=EntrySource.INTERNAL,
            external_ref=external_ref,
            start_at=_stored(start_at),
            note_in=note_in,
        )
        self.rows[entry.entry_id] = entry
        return entry

    def close_entry(self, tenant_id, entry_id, *, end_at, note_out):
        row = self.get_by_id(tenant_id, entry_id)
        if not row or row.end_at is not None:
            return False
        self.rows[row.entry_id] = replace(row, end_at=_stored(end_at), note_out=note_out)
        return True

    def _from_external(self, entry_id, tenant_id, entry: ExternalEntry, synced_at) -> TimeEntry:
        return TimeEntry(
            entry_id=entry_id,
            tenant_id=tenant_id,
            employee_id=entry.employee_id,
            source=entry.source,
            external_ref=entry.external_ref,
            start_at=_stored(entry.start_at),
            end_at=_stored(entry.end_at),
            description=entry.description,
            project_id=entry.project_id,
            task_id=entry.task_id,
            billable=entry.billable,
            synced_at=synced_at,
        )

    def insert_external(self, tenant_id, entry, *, synced_at):
        if entry.end_at is None:
            self._ensure_no_open(tenant_id, entry.employee_id)
        row = self._from_external(self._new_id(), tenant_id, entry, synced_at)
        self.rows[row.entry_id] = row
        return row

    def replace_external(self, tenant_id, entry_id, entry, *, synced_at):
        if entry.end_at is None:
            self._ensure_no_open(tenant_id, entry.employee_id, ignore_id=entry_id)
        self.rows[entry_id] = self._from_external(entry_id, tenant_id, entry, synced_at)

    def list_entries(self, tenant_id, *, employee_id=None, start=None, end=None, limit=200):
        rows = [
            r for r in self.rows.values()
            if r.tenant_id == tenant_id
            and (employee_id is None or r.employee_id == employee_id)
            and (start is None or r.entry_date >= start)
            and (end is None or r.entry_date <= end)
        ]
        return sorted(rows, key=lambda r: (r.start_at, r.entry_id))[:limit]

    def list_recent(self, tenant_id, employee_id, *, limit):
        rows = [r for r in self.rows.values() if r.tenant_id == tenant_id and r.employee_id == employee_id]
        return sorted(rows, key=lambda r: (r.start_at, r.entry_id), reverse=True)[:limit]

    def list_started_between(self, tenant_id, start_at, end_at, *, employee_id=None):
        return [
            r for r in self.rows.values()
            if r.tenant_id == tenant_id
            and start_at <= r.start_at < end_at
            and (employee_id is None or r.employee_id == employee_id)
        ]


class FakeSettingsRepo:
    def __init__(self):
        self.rows: dict[int, PeriodSettings] = {}

    def get(self, tenant_id):
        return self.rows.get(tenant_id)

    def save(self, settings):
        self.rows[settings.tenant_id] = settings


class FakeAdjustmentRepo:
    def __init__(self, employees: Optional[FakeEmployeeRepo] = None):
        self._next_id = 1
        self._employees = employees
        self.rows: dict[int, Adjustment] = {}

    def create(self, tenant_id, *, employee_id, effective_date, seconds_delta, reason, created_by, created_at):
        employee = self._employees.get_by_id(tenant_id, employee_id) if self._employees else None
        adj = Adjustment(
            adjustment_id=self._next_id,
            tenant_id=tenant_id,
            employee_id=employee_id,
            effective_date=effective_date,
            seconds_delta=seconds_delta,
            status=AdjustmentStatus.PENDING,
            reason=reason,
            created_by=created_by,
            created_at=created_at,
            employee_name=employee.full_name if employee else None,
        )
        self.rows[adj.adjustment_id] = adj
        self._next_id += 1
        return adj

    def get_by_id(self, tenant_id, adjustment_id):
        row = self.rows.get(int(adjustment_id))
        return row if row and row.tenant_id == tenant_id else None

    def transition(self, tenant_id, adjustment_id, *, from_status, to_status, reviewed_by, reviewed_at, review_note):
        row = self.get_by_id(tenant_id, adjustment_id)
        if not row or row.status != from_status:
            return False
        self.rows[row.adjustment_id] = replace(
            row, status=to_status, reviewed_by=reviewed_by, reviewed_at=reviewed_at, review_note=review_note
        )
        return True

    def list_adjustments(self, tenant_id, *, start, end, status=None, employee_id=None, limit=30):
        rows = [
            r for r in self.rows.values()
            if r.tenant_id == tenant_id
            and start <= r.effective_date <= end
            and (status is None or r.status == status)
            and (employee_id is None or r.employee_id == employee_id)
        ]
        return sorted(rows, key=lambda r: (r.effective_date, r.adjustment_id), reverse=True)[:limit]

    def list_approved_in_range(self, tenant_id, start, end, *, employee_id=None):
        return self.list_adjustments(
            tenant_id, start=start, end=end, status=AdjustmentStatus.APPROVED, employee_id=employee_id, limit=10_000
        )


class FakeClosureRepo:
    def __init__(self, *, read_delay: float = 0.0):
        self._next_id = 1
        self._read_delay = read_delay
        self.rows: dict[int, Closure] = {}
        self.items: dict[int, list[ClosureItem]] = {}

    def _closed(self, tenant_id):
        return [c for c in self.rows.values() if c.tenant_id == tenant_id and c.is_closed]

    def is_date_closed(self, tenant_id, day: date) -> bool:
        closed = any(c.covers(day) for c in self._closed(tenant_id))
        if self._read_delay:
            time.sleep(self._read_delay)
        return closed

    def has_overlap(self, tenant_id, start, end) -> bool:
        return any(c.overlaps(start, end) for c in self._closed(tenant_id))

    def create(self, tenant_id, *, summary: BalanceSummary, note, closed_by, closed_at):
        closure = Closure(
            closure_id=self._next_id,
            tenant_id=tenant_id,
            period_start=summary.start_date,
            period_end=summary.end_date,
            status=ClosureStatus.CLOSED,
            note=note,
            closed_at=closed_at,
            closed_by=closed_by,
            employees_count=len(summary.employees),
            total_worked_seconds=summary.totals.worked_seconds,
            total_expected_seconds=summary.totals.expected_seconds,
            total_adjustment_seconds=summary.totals.adjustment_seconds,
            total_balance_seconds=summary.totals.balance_seconds,
        )
        self.rows[closure.closure_id] = closure
        self.items[closure.closure_id] = [
            ClosureItem(
                closure_id=closure.closure_id,
                employee_id=row.employee_id,
                employee_name=row.name,
                worked_seconds=row.worked_seconds,
                expected_seconds=row.expected_seconds,
                adjustment_seconds=row.adjustment_seconds,
                balance_seconds=row.balance_seconds,
            )
            for row in summary.employees
        ]
        self._next_id += 1
        return closure

    def get_by_id(self, tenant_id, closure_id):
        row = self.rows.get(int(closure_id))
        return row if row and row.tenant_id == tenant_id else None

    def mark_reopened(self, tenant_id, closure_id, *, reopened_by, reopened_at, note):
        row = self.get_by_id(tenant_id, closure_id)
        if not row or not row.is_closed:
            return False
        self.rows[row.closure_id] = replace(
            row,
            status=ClosureStatus.REOPENED,
            reopened_by=reopened_by,
            reopened_at=reopened_at,
            note=note if note is not None else row.note,
        )
        return True

    def list_closures(self, tenant_id, *, limit):
        rows = [c for c in self.rows.values() if c.tenant_id == tenant_id]
        return sorted(rows, key=lambda c: (c.period_end, c.closure_id), reverse=True)[:limit]

    def list_items(self, tenant_id, closure_id):
        return list(self.items.get(int(closure_id), []))


class FakeClockifyRepo:
    def __init__(self, employees: FakeEmployeeRepo, entries: FakeEntryRepo):
        self._employees = employees
        self._entries = entries
        self.connections: dict[int, ClockifyConnection] = {}
        self.links: dict[tuple[int, str], UserLink] = {}

    def get_connection(self, tenant_id):
        return self.connections.get(tenant_id)

    def save_connection(self, tenant_id, *, api_key, workspace_id, created_by, now):
        current = self.connections.get(tenant_id)
        connection = ClockifyConnection(
            tenant_id=tenant_id,
            api_key=api_key,
            workspace_id=workspace_id,
            created_by=current.created_by if current else created_by,
            created_at=current.created_at if current else now,
            updated_at=now,
            last_sync_at=current.last_sync_at if current else None,
        )
        self.connections[tenant_id] = connection
        return connection

    def list_connections(self):
        return [self.connections[k] for k in sorted(self.connections)]

    def touch_last_sync(self, tenant_id, synced_at):
        self.connections[tenant_id] = replace(self.connections[tenant_id], last_sync_at=synced_at)

    def list_links(self, tenant_id):
        return [link for (t, _), link in self.links.items() if t == tenant_id]

    def upsert_link(self, tenant_id, link):
        self.links[(tenant_id, link.clockify_user_id)] = link

    def entry_stats(self, tenant_id, *, since):
        rows = [
            r for r in self._entries.rows.values()
            if r.tenant_id == tenant_id and r.source == EntrySource.CLOCKIFY
        ]
        ends = [r.end_at for r in rows if r.end_at is not None]
        return EntryStats(
            last_entry_start_at=max((r.start_at for r in rows), default=None),
            last_entry_end_at=max(ends, default=None),
            entries_total=len(rows),
            entries_last_7_days=sum(1 for r in rows if r.start_at >= since),
            entries_running=sum(1 for r in rows if r.end_at is None),
        )

    def _mapped_ids(self, tenant_id):
        return {link.employee_id for link in self.list_links(tenant_id) if link.employee_id is not None}

    def employee_stats(self, tenant_id):
        active = self._employees.list_active(tenant_id)
        mapped = self._mapped_ids(tenant_id)
        return EmployeeStats(
            active_employees=len(active),
            mapped_employees=len(mapped),
            active_unmapped_employees=sum(1 for e in active if e.employee_id not in mapped),
        )

    def list_unmapped_employees(self, tenant_id, *, limit):
        mapped = self._mapped_ids(tenant_id)
        return [
            UnmappedEmployee(employee_id=e.employee_id, name=e.full_name, email=e.email)
            for e in self._employees.list_active(tenant_id)
            if e.employee_id not in mapped
        ][:limit]


class FakeClockifyClient:
    """Stands in for ``ClockifyClient``; ``entries`` maps provider user id to raw entries."""

    def __init__(self, users=(), entries=None, failing_users=()):
        self.users = [u if isinstance(u, ClockifyUser) else ClockifyUser(**u) for u in users]
        self.entries: dict[str, list[dict]] = dict(entries or {})
        self.failing_users = set(failing_users)
        self.entry_calls: list[tuple[str, str, datetime, datetime]] = []
        self.api_keys: list[str] = []
        self.error: Optional[Exception] = None

    def __call__(self, api_key):
        self.api_keys.append(api_key)
        return self

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return None

    def list_users(self, workspace_id):
        if self.error is not None:
            raise self.error
        return list(self.users)

    def list_time_entries(self, workspace_id, user_id, start, end):
        self.entry_calls.append((workspace_id, user_id, start, end))
        if user_id in self.failing_users:
            raise ProviderUnavailableError("clockify request failed", status_code=503)
        return list(self.entries.get(user_id, []))


def clockify_entry(entry_id, start, end=None, **extra) -> dict:
    interval = {"start": start, "end": end, "duration": extra.pop("duration", None)}
    payload = {"id": entry_id, "description": extra.pop("description", ""), "billable": False, "timeInterval": interval}
    payload.update(extra)
    return payload


def employee(employee_id, name, *, email=None, user_id=None, tenant_id=1, **kwargs) -> Employee:
    return Employee(
        employee_id=employee_id,
        tenant_id=tenant_id,
        full_name=name,
        email=email,
        user_id=user_id,
        **kwargs,
    )




def build_fake_container(
    employees: FakeEmployeeRepo,
    *,
    entries: Optional[FakeEntryRepo] = None,
    closures: Optional[FakeClosureRepo] = None,
    clockify_client: Optional[FakeClockifyClient] = None,
    lock_timeout: float = 1.0,
) -> Container:
    entries = entries or FakeEntryRepo()
    return wire_services(
        employees_repo=employees,
        entries_repo=entries,
        settings_repo=FakeSettingsRepo(),
        adjustments_repo=FakeAdjustmentRepo(employees),
        closures_repo=closures or FakeClosureRepo(),
        clockify_repo=FakeClockifyRepo(employees, entries),
        client_factory=clockify_client or FakeClockifyClient(),
        locks=LedgerLocks(timeout=lock_timeout),
    )
