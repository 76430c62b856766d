from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import EntrySource
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from ..employees.model import TERMINATED_STATUS
from .model import ClockifyConnection, EmployeeStats, EntryStats, UnmappedEmployee, UserLink
from .repository import ClockifyRepository

_CONNECTION_COLUMNS = "tenant_id, api_key, workspace_id, created_by, created_at, updated_at, last_sync_at"


def _row_to_connection(row: dict) -> ClockifyConnection:
    return ClockifyConnection(
        tenant_id=int(row["tenant_id"]),
        api_key=row["api_key"],
        workspace_id=row["workspace_id"],
        created_by=int(row["created_by"]) if row.get("created_by") is not None else None,
        created_at=from_db_datetime(row.get("created_at")),
        updated_at=from_db_datetime(row.get("updated_at")),
        last_sync_at=from_db_datetime(row.get("last_sync_at")),
    )


class MySQLClockifyRepository(ClockifyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_connection(self, tenant_id: int) -> Optional[ClockifyConnection]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_CONNECTION_COLUMNS} FROM clockify_connections WHERE tenant_id=%s",
                (tenant_id,),
            )
            row = fetchone(cur)
            return _row_to_connection(row) if row else None

    def save_connection(
        self,
        tenant_id: int,
        *,
        api_key: str,
        workspace_id: str,
        created_by: int,
        now: datetime,
    ) -> ClockifyConnection:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO clockify_connections(tenant_id, api_key, workspace_id, created_by, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    api_key=VALUES(api_key),
                    workspace_id=VALUES(workspace_id),
                    updated_at=VALUES(updated_at)
                """,
                (tenant_id, api_key, workspace_id, created_by, to_db_datetime(now), to_db_datetime(now)),
            )
            cur.execute(
                f"SELECT {_CONNECTION_COLUMNS} FROM clockify_connections WHERE tenant_id=%s",
                (tenant_id,),
            )
            return _row_to_connection(fetchone(cur))

    def list_connections(self) -> Sequence[ClockifyConnection]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_CONNECTION_COLUMNS} FROM clockify_connections ORDER BY tenant_id ASC")
            return [_row_to_connection(r) for r in fetchall(cur)]

    def touch_last_sync(self, tenant_id: int, synced_at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE clockify_connections SET last_sync_at=%s WHERE tenant_id=%s",
                (to_db_datetime(synced_at), tenant_id),
            )

    def list_links(self, tenant_id: int) -> Sequence[UserLink]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT clockify_user_id, employee_id, clockify_user_email, clockify_user_name, last_synced_at
                FROM clockify_user_links
                WHERE tenant_id=%s
                """,
                (tenant_id,),
            )
            return [
                UserLink(
                    clockify_user_id=r["clockify_user_id"],
                    employee_id=int(r["employee_id"]) if r.get("employee_id") is not None else None,
                    clockify_user_email=r.get("clockify_user_email"),
                    clockify_user_name=r.get("clockify_user_name"),
                    last_synced_at=from_db_datetime(r.get("last_synced_at")),
                )
                for r in fetchall(cur)
            ]

    def upsert_link(self, tenant_id: int, link: UserLink) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO clockify_user_links(
                    tenant_id, clockify_user_id, clockify_user_email, clockify_user_name, employee_id, last_synced_at
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    employee_id=VALUES(employee_id),
                    clockify_user_email=VALUES(clockify_user_email),
                    clockify_user_name=VALUES(clockify_user_name),
                    last_synced_at=VALUES(last_synced_at)
                """,
                (
                    tenant_id,
                    link.clockify_user_id,
                    link.clockify_user_email,
                    link.clockify_user_name,
                    link.employee_id,
                    to_db_datetime(link.last_synced_at),
                ),
            )

    def entry_stats(self, tenant_id: int, *, since: datetime) -> EntryStats:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    MAX(start_at) AS last_entry_start_at,
                    MAX(end_at) AS last_entry_end_at,
                    COUNT(*) AS entries_total,
                    COALESCE(SUM(CASE WHEN start_at>=%s THEN 1 ELSE 0 END), 0) AS entries_last_7_days,
                    COALESCE(SUM(CASE WHEN end_at IS NULL THEN 1 ELSE 0 END), 0) AS entries_running
                FROM time_entries
                WHERE tenant_id=%s AND source=%s
                """,
                (to_db_datetime(since), tenant_id, EntrySource.CLOCKIFY.value),
            )
            row = fetchone(cur) or {}
            return EntryStats(
                last_entry_start_at=from_db_datetime(row.get("last_entry_start_at")),
                last_entry_end_at=from_db_datetime(row.get("last_entry_end_at")),
                entries_total=int(row.get("entries_total") or 0),
                entries_last_7_days=int(row.get("entries_last_7_days") or 0),
                entries_running=int(row.get("entries_running") or 0),
            )

    def employee_stats(self, tenant_id: int) -> EmployeeStats:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM employees
                     WHERE tenant_id=%s AND status<>%s) AS active_employees,
                    (SELECT COUNT(DISTINCT employee_id) FROM clockify_user_links
                     WHERE tenant_id=%s AND employee_id IS NOT NULL) AS mapped_employees,
                    (SELECT COUNT(*) FROM employees e
                     WHERE e.tenant_id=%s AND e.status<>%s
                       AND NOT EXISTS (
                           SELECT 1 FROM clockify_user_links l
                           WHERE l.tenant_id=e.tenant_id AND l.employee_id=e.id
                       )) AS active_unmapped_employees
                """,
                (tenant_id, TERMINATED_STATUS, tenant_id, tenant_id, TERMINATED_STATUS),
            )
            row = fetchone(cur) or {}
            return EmployeeStats(
                active_employees=int(row.get("active_employees") or 0),
                mapped_employees=int(row.get("mapped_employees") or 0),
                active_unmapped_employees=int(row.get("active_unmapped_employees") or 0),
            )

    def list_unmapped_employees(self, tenant_id: int, *, limit: int) -> Sequence[UnmappedEmployee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT e.id AS employee_id, e.full_name AS name, e.email
                FROM employees e
                WHERE e.tenant_id=%s AND e.status<>%s
                  AND NOT EXISTS (
                      SELECT 1 FROM clockify_user_links l
                      WHERE l.tenant_id=e.tenant_id AND l.employee_id=e.id
                  )
                ORDER BY e.full_name ASC, e.id ASC
                LIMIT %s
                """,
                (tenant_id, TERMINATED_STATUS, int(limit)),
            )
            return [
                UnmappedEmployee(employee_id=int(r["employee_id"]), name=r["name"], email=r.get("email"))
                for r in fetchall(cur)
            ]
