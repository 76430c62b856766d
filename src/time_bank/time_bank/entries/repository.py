from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import EntrySource
from .model import ExternalEntry, TimeEntry


class EntryRepository(Protocol):
    """Durable store of time entries. Rows are never hard-deleted."""

    def get_by_id(self, tenant_id: int, entry_id: int) -> Optional[TimeEntry]:
        raise NotImplementedError

    def get_open(self, tenant_id: int, employee_id: int) -> Optional[TimeEntry]:
        raise NotImplementedError

    def get_by_ref(
        self,
        tenant_id: int,
        employee_id: int,
        source: EntrySource,
        external_ref: str,
    ) -> Optional[TimeEntry]:
        raise NotImplementedError

    def create_internal(
        self,
        tenant_id: int,
        *,
        employee_id: int,
        external_ref: str,
        start_at: datetime,
        note_in: Optional[str],
    ) -> TimeEntry:
        """Insert an open internal entry.

        Raises ``AlreadyOpenError`` if the store already holds an open entry
        for the employee.
        """
        raise NotImplementedError

    def close_entry(
        self,
        tenant_id: int,
        entry_id: int,
        *,
        end_at: datetime,
        note_out: Optional[str],
    ) -> bool:
        """Set ``end_at`` on an open entry. False if it was closed meanwhile."""
        raise NotImplementedError

    def insert_external(self, tenant_id: int, entry: ExternalEntry, *, synced_at: datetime) -> TimeEntry:
        raise NotImplementedError

    def replace_external(
        self,
        tenant_id: int,
        entry_id: int,
        entry: ExternalEntry,
        *,
        synced_at: datetime,
    ) -> None:
        """Full overwrite of the provider-owned columns."""
        raise NotImplementedError

    def list_entries(
        self,
        tenant_id: int,
        *,
        employee_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[TimeEntry]:
        """Entries ordered by ``start_at`` ascending; bounds are inclusive calendar dates."""
        raise NotImplementedError

    def list_recent(self, tenant_id: int, employee_id: int, *, limit: int) -> Sequence[TimeEntry]:
        """Most recent entries first."""
        raise NotImplementedError

    def list_started_between(
        self,
        tenant_id: int,
        start_at: datetime,
        end_at: datetime,
        *,
        employee_id: Optional[int] = None,
    ) -> Sequence[TimeEntry]:
        """Entries with ``start_at`` in ``[start_at, end_at)``."""
        raise NotImplementedError
