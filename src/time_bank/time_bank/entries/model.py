from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import EntrySource
from ..employees.model import Employee


@dataclass(frozen=True)
class TimeEntry:
    """One work interval in the ledger. ``end_at`` is None while the entry is open.

    All datetimes are timezone-aware UTC.
    """

    entry_id: int
    tenant_id: int
    employee_id: int
    source: EntrySource
    external_ref: str
    start_at: datetime
    end_at: Optional[datetime] = None
    note_in: Optional[str] = None
    note_out: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[str] = None
    task_id: Optional[str] = None
    billable: bool = False
    synced_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.end_at is None

    @property
    def entry_date(self) -> date:
        """Calendar date (UTC) the entry belongs to; closures are checked against it."""
        return self.start_at.date()

    def duration_seconds(self, now: datetime) -> int:
        end = self.end_at if self.end_at is not None else now
        return max(int((end - self.start_at).total_seconds()), 0)


@dataclass(frozen=True)
class ExternalEntry:
    """An interval reported by a provider, keyed by ``(employee_id, source, external_ref)``."""

    employee_id: int
    source: EntrySource
    external_ref: str
    start_at: datetime
    end_at: Optional[datetime] = None
    description: Optional[str] = None
    project_id: Optional[str] = None
    task_id: Optional[str] = None
    billable: bool = False

    @property
    def is_open(self) -> bool:
        return self.end_at is None

    @property
    def entry_date(self) -> date:
        return self.start_at.date()

    def matches(self, stored: TimeEntry) -> bool:
        """True when writing this entry over ``stored`` would change nothing."""
        return (
            stored.start_at == self.start_at
            and stored.end_at == self.end_at
            and stored.description == self.description
            and stored.project_id == self.project_id
            and stored.task_id == self.task_id
            and bool(stored.billable) == bool(self.billable)
        )


@dataclass(frozen=True)
class MyEntries:
    employee: Employee
    today_seconds: int
    open_entry: Optional[TimeEntry]
    entries: Sequence[TimeEntry] = field(default_factory=list)
