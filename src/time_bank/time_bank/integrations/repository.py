from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import ClockifyConnection, EmployeeStats, EntryStats, UnmappedEmployee, UserLink


class ClockifyRepository(Protocol):
    """Per-tenant provider connection, user links and status aggregates."""

    def get_connection(self, tenant_id: int) -> Optional[ClockifyConnection]:
        raise NotImplementedError

    def save_connection(
        self,
        tenant_id: int,
        *,
        api_key: str,
        workspace_id: str,
        created_by: int,
        now: datetime,
    ) -> ClockifyConnection:
        raise NotImplementedError

    def list_connections(self) -> Sequence[ClockifyConnection]:
        """All configured tenants, ordered by tenant id."""
        raise NotImplementedError

    def touch_last_sync(self, tenant_id: int, synced_at: datetime) -> None:
        raise NotImplementedError

    def list_links(self, tenant_id: int) -> Sequence[UserLink]:
        raise NotImplementedError

    def upsert_link(self, tenant_id: int, link: UserLink) -> None:
        raise NotImplementedError

    def entry_stats(self, tenant_id: int, *, since: datetime) -> EntryStats:
        """Provider entry counts; ``entries_last_7_days`` counts entries starting at/after ``since``."""
        raise NotImplementedError

    def employee_stats(self, tenant_id: int) -> EmployeeStats:
        raise NotImplementedError

    def list_unmapped_employees(self, tenant_id: int, *, limit: int) -> Sequence[UnmappedEmployee]:
        raise NotImplementedError
