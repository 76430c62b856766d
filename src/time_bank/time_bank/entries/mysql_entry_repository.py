from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from mysql.connector import errors as mysql_errors

from ..core.enums import EntrySource
from ..core.exceptions import AlreadyOpenError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import ExternalEntry, TimeEntry
from .repository import EntryRepository

_COLUMNS = """
    id, tenant_id, employee_id, source, external_ref, start_at, end_at,
    note_in, note_out, description, project_id, task_id, billable, synced_at
"""

_OPEN_KEY = "uq_time_entries_open"


def _row_to_entry(row: dict) -> TimeEntry:
    return TimeEntry(
        entry_id=int(row["id"]),
        tenant_id=int(row["tenant_id"]),
        employee_id=int(row["employee_id"]),
        source=EntrySource(row["source"]),
        external_ref=row["external_ref"],
        start_at=from_db_datetime(row["start_at"]),
        end_at=from_db_datetime(row.get("end_at")),
        note_in=row.get("note_in"),
        note_out=row.get("note_out"),
        description=row.get("description"),
        project_id=row.get("project_id"),
        task_id=row.get("task_id"),
        billable=bool(row.get("billable", 0)),
        synced_at=from_db_datetime(row.get("synced_at")),
    )


def _raise_if_open_conflict(exc: mysql_errors.IntegrityError) -> None:
    # The generated open_marker column allows one NULL end_at per employee.
    if getattr(exc, "errno", None) == 1062 and _OPEN_KEY in str(exc):
        raise AlreadyOpenError("employee already has an open time entry") from exc


class MySQLEntryRepository(EntryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, tenant_id: int, entry_id: int) -> Optional[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM time_entries WHERE tenant_id=%s AND id=%s",
                (tenant_id, entry_id),
            )
            row = fetchone(cur)
            return _row_to_entry(row) if row else None

    def get_open(self, tenant_id: int, employee_id: int) -> Optional[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_entries
                WHERE tenant_id=%s AND employee_id=%s AND end_at IS NULL
                ORDER BY start_at DESC
                LIMIT 1
                """,
                (tenant_id, employee_id),
            )
            row = fetchone(cur)
            return _row_to_entry(row) if row else None

    def get_by_ref(
        self,
        tenant_id: int,
        employee_id: int,
        source: EntrySource,
        external_ref: str,
    ) -> Optional[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_entries
                WHERE tenant_id=%s AND employee_id=%s AND source=%s AND external_ref=%s
                """,
                (tenant_id, employee_id, source.value, external_ref),
            )
            row = fetchone(cur)
            return _row_to_entry(row) if row else None

    def create_internal(
        self,
        tenant_id: int,
        *,
        employee_id: int,
        external_ref: str,
        start_at: datetime,
        note_in: Optional[str],
    ) -> TimeEntry:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO time_entries(tenant_id, employee_id, source, external_ref, start_at, note_in)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (tenant_id, employee_id, EntrySource.INTERNAL.value, external_ref, to_db_datetime(start_at), note_in),
                )
                entry_id = int(cur.lastrowid)
        except mysql_errors.IntegrityError as exc:
            _raise_if_open_conflict(exc)
            raise

        return TimeEntry(
            entry_id=entry_id,
            tenant_id=tenant_id,
            employee_id=employee_id,
            source=EntrySource.INTERNAL,
            external_ref=external_ref,
            start_at=start_at,
            note_in=note_in,
        )

    def close_entry(
        self,
        tenant_id: int,
        entry_id: int,
        *,
        end_at: datetime,
        note_out: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_entries
                SET end_at=%s, note_out=%s
                WHERE tenant_id=%s AND id=%s AND end_at IS NULL
                """,
                (to_db_datetime(end_at), note_out, tenant_id, entry_id),
            )
            return cur.rowcount > 0

    def insert_external(self, tenant_id: int, entry: ExternalEntry, *, synced_at: datetime) -> TimeEntry:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO time_entries(
                        tenant_id, employee_id, source, external_ref, start_at, end_at,
                        description, project_id, task_id, billable, synced_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        tenant_id,
                        entry.employee_id,
                        entry.source.value,
                        entry.external_ref,
                        to_db_datetime(entry.start_at),
                        to_db_datetime(entry.end_at),
                        entry.description,
                        entry.project_id,
                        entry.task_id,
                        1 if entry.billable else 0,
                        to_db_datetime(synced_at),
                    ),
                )
                entry_id = int(cur.lastrowid)
        except mysql_errors.IntegrityError as exc:
            _raise_if_open_conflict(exc)
            raise

        return TimeEntry(
            entry_id=entry_id,
            tenant_id=tenant_id,
            employee_id=entry.employee_id,
            source=entry.source,
            external_ref=entry.external_ref,
            start_at=entry.start_at,
            end_at=entry.end_at,
            description=entry.description,
            project_id=entry.project_id,
            task_id=entry.task_id,
            billable=entry.billable,
            synced_at=synced_at,
        )

    def replace_external(
        self,
        tenant_id: int,
        entry_id: int,
        entry: ExternalEntry,
        *,
        synced_at: datetime,
    ) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE time_entries
                    SET start_at=%s, end_at=%s, description=%s, project_id=%s, task_id=%s,
                        billable=%s, synced_at=%s
                    WHERE tenant_id=%s AND id=%s
                    """,
                    (
                        to_db_datetime(entry.start_at),
                        to_db_datetime(entry.end_at),
                        entry.description,
                        entry.project_id,
                        entry.task_id,
                        1 if entry.billable else 0,
                        to_db_datetime(synced_at),
                        tenant_id,
                        entry_id,
                    ),
                )
        except mysql_errors.IntegrityError as exc:
            _raise_if_open_conflict(exc)
            raise

    def list_entries(
        self,
        tenant_id: int,
        *,
        employee_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[TimeEntry]:
        sql = f"SELECT {_COLUMNS} FROM time_entries WHERE tenant_id=%s"
        params: list = [tenant_id]
        if employee_id is not None:
            sql += " AND employee_id=%s"
            params.append(employee_id)
        if start is not None:
            sql += " AND start_at>=%s"
            params.append(datetime.combine(start, datetime.min.time()))
        if end is not None:
            sql += " AND start_at<%s"
            params.append(datetime.combine(end + timedelta(days=1), datetime.min.time()))
        sql += " ORDER BY start_at ASC, id ASC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_entry(r) for r in fetchall(cur)]

    def list_recent(self, tenant_id: int, employee_id: int, *, limit: int) -> Sequence[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_entries
                WHERE tenant_id=%s AND employee_id=%s
                ORDER BY start_at DESC, id DESC
                LIMIT %s
                """,
                (tenant_id, employee_id, int(limit)),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def list_started_between(
        self,
        tenant_id: int,
        start_at: datetime,
        end_at: datetime,
        *,
        employee_id: Optional[int] = None,
    ) -> Sequence[TimeEntry]:
        sql = f"SELECT {_COLUMNS} FROM time_entries WHERE tenant_id=%s AND start_at>=%s AND start_at<%s"
        params: list = [tenant_id, to_db_datetime(start_at), to_db_datetime(end_at)]
        if employee_id is not None:
            sql += " AND employee_id=%s"
            params.append(employee_id)
        sql += " ORDER BY start_at ASC, id ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_entry(r) for r in fetchall(cur)]
