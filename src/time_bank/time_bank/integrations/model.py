from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence

from .clockify.schemas import mask_secret


@dataclass(frozen=True)
class ClockifyConnection:
    tenant_id: int
    api_key: str
    workspace_id: str
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_sync_at: Optional[datetime] = None

    @property
    def api_key_masked(self) -> str:
        return mask_secret(self.api_key)


@dataclass(frozen=True)
class ClockifyConfigView:
    """What the config endpoint exposes; the raw key never leaves the service."""

    configured: bool
    workspace_id: Optional[str] = None
    api_key_masked: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def of(cls, connection: Optional[ClockifyConnection]) -> "ClockifyConfigView":
        if connection is None:
            return cls(configured=False)
        return cls(
            configured=True,
            workspace_id=connection.workspace_id,
            api_key_masked=connection.api_key_masked,
            created_at=connection.created_at,
            updated_at=connection.updated_at,
        )


@dataclass(frozen=True)
class UserLink:
    """Stored mapping of a provider user to an employee."""

    clockify_user_id: str
    employee_id: Optional[int]
    clockify_user_email: Optional[str] = None
    clockify_user_name: Optional[str] = None
    last_synced_at: Optional[datetime] = None


@dataclass(frozen=True)
class UnmappedEmployee:
    employee_id: int
    name: str
    email: Optional[str] = None


@dataclass
class SyncSummary:
    range_start: date
    range_end: date
    employees_total: int = 0
    users_found: int = 0
    employees_mapped: int = 0
    users_unmapped: int = 0
    unmapped_users: list[str] = field(default_factory=list)
    entries_processed: int = 0
    entries_upserted: int = 0
    entries_unchanged: int = 0
    entries_skipped_closed: int = 0
    entries_skipped_open: int = 0
    entries_failed: int = 0
    users_failed: int = 0
    running_entries: int = 0
    synced_at: Optional[datetime] = None


@dataclass(frozen=True)
class EntryStats:
    last_entry_start_at: Optional[datetime] = None
    last_entry_end_at: Optional[datetime] = None
    entries_total: int = 0
    entries_last_7_days: int = 0
    entries_running: int = 0


@dataclass(frozen=True)
class EmployeeStats:
    active_employees: int = 0
    mapped_employees: int = 0
    active_unmapped_employees: int = 0


@dataclass(frozen=True)
class ClockifyStatus:
    configured: bool
    workspace_id: Optional[str] = None
    api_key_masked: Optional[str] = None
    last_sync_at: Optional[datetime] = None
    last_entry_start_at: Optional[datetime] = None
    last_entry_end_at: Optional[datetime] = None
    entries_total: int = 0
    entries_last_7_days: int = 0
    entries_running: int = 0
    active_employees: int = 0
    mapped_employees: int = 0
    active_unmapped_employees: int = 0
    unmapped_employees_preview: Sequence[UnmappedEmployee] = field(default_factory=list)
