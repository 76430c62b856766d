from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..balance.model import BalanceSummary
from ..core.enums import ClosureStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_date, from_db_datetime, to_db_datetime
from .model import Closure, ClosureItem
from .repository import ClosureRepository

_CLOSURE_COLUMNS = """
    id, tenant_id, period_start, period_end, status, note, closed_at, closed_by,
    reopened_at, reopened_by, employees_count, total_worked_seconds, total_expected_seconds,
    total_adjustment_seconds, total_balance_seconds
"""


def _optional_int(value) -> Optional[int]:
    return int(value) if value is not None else None


def _row_to_closure(row: dict) -> Closure:
    return Closure(
        closure_id=int(row["id"]),
        tenant_id=int(row["tenant_id"]),
        period_start=from_db_date(row["period_start"]),
        period_end=from_db_date(row["period_end"]),
        status=ClosureStatus(row["status"]),
        note=row.get("note"),
        closed_at=from_db_datetime(row["closed_at"]),
        closed_by=_optional_int(row.get("closed_by")),
        reopened_at=from_db_datetime(row.get("reopened_at")),
        reopened_by=_optional_int(row.get("reopened_by")),
        employees_count=int(row.get("employees_count") or 0),
        total_worked_seconds=int(row.get("total_worked_seconds") or 0),
        total_expected_seconds=int(row.get("total_expected_seconds") or 0),
        total_adjustment_seconds=int(row.get("total_adjustment_seconds") or 0),
        total_balance_seconds=int(row.get("total_balance_seconds") or 0),
    )


def _row_to_item(row: dict) -> ClosureItem:
    return ClosureItem(
        closure_id=int(row["closure_id"]),
        employee_id=int(row["employee_id"]),
        employee_name=row["employee_name"],
        worked_seconds=int(row["worked_seconds"]),
        expected_seconds=int(row["expected_seconds"]),
        adjustment_seconds=int(row["adjustment_seconds"]),
        balance_seconds=int(row["balance_seconds"]),
    )


class MySQLClosureRepository(ClosureRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def is_date_closed(self, tenant_id: int, day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS cnt
                FROM time_bank_closures
                WHERE tenant_id=%s AND status=%s AND period_start<=%s AND period_end>=%s
                """,
                (tenant_id, ClosureStatus.CLOSED.value, day, day),
            )
            row = fetchone(cur)
            return bool(row and int(row["cnt"]) > 0)

    def has_overlap(self, tenant_id: int, start: date, end: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS cnt
                FROM time_bank_closures
                WHERE tenant_id=%s AND status=%s AND NOT (period_end<%s OR period_start>%s)
                """,
                (tenant_id, ClosureStatus.CLOSED.value, start, end),
            )
            row = fetchone(cur)
            return bool(row and int(row["cnt"]) > 0)

    def create(
        self,
        tenant_id: int,
        *,
        summary: BalanceSummary,
        note: Optional[str],
        closed_by: int,
        closed_at: datetime,
    ) -> Closure:
        totals = summary.totals
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_bank_closures(
                    tenant_id, period_start, period_end, status, note, closed_at, closed_by,
                    employees_count, total_worked_seconds, total_expected_seconds,
                    total_adjustment_seconds, total_balance_seconds
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    tenant_id,
                    summary.start_date,
                    summary.end_date,
                    ClosureStatus.CLOSED.value,
                    note,
                    to_db_datetime(closed_at),
                    closed_by,
                    len(summary.employees),
                    totals.worked_seconds,
                    totals.expected_seconds,
                    totals.adjustment_seconds,
                    totals.balance_seconds,
                ),
            )
            closure_id = int(cur.lastrowid)

            if summary.employees:
                cur.executemany(
                    """
                    INSERT INTO time_bank_closure_items(
                        closure_id, tenant_id, employee_id, employee_name,
                        worked_seconds, expected_seconds, adjustment_seconds, balance_seconds
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    [
                        (
                            closure_id,
                            tenant_id,
                            e.employee_id,
                            e.name,
                            e.worked_seconds,
                            e.expected_seconds,
                            e.adjustment_seconds,
                            e.balance_seconds,
                        )
                        for e in summary.employees
                    ],
                )

        return Closure(
            closure_id=closure_id,
            tenant_id=tenant_id,
            period_start=summary.start_date,
            period_end=summary.end_date,
            status=ClosureStatus.CLOSED,
            note=note,
            closed_at=closed_at,
            closed_by=closed_by,
            employees_count=len(summary.employees),
            total_worked_seconds=totals.worked_seconds,
            total_expected_seconds=totals.expected_seconds,
            total_adjustment_seconds=totals.adjustment_seconds,
            total_balance_seconds=totals.balance_seconds,
        )

    def get_by_id(self, tenant_id: int, closure_id: int) -> Optional[Closure]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_CLOSURE_COLUMNS} FROM time_bank_closures WHERE tenant_id=%s AND id=%s",
                (tenant_id, closure_id),
            )
            row = fetchone(cur)
            return _row_to_closure(row) if row else None

    def mark_reopened(
        self,
        tenant_id: int,
        closure_id: int,
        *,
        reopened_by: int,
        reopened_at: datetime,
        note: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_bank_closures
                SET status=%s, note=COALESCE(%s, note), reopened_at=%s, reopened_by=%s
                WHERE tenant_id=%s AND id=%s AND status=%s
                """,
                (
                    ClosureStatus.REOPENED.value,
                    note,
                    to_db_datetime(reopened_at),
                    reopened_by,
                    tenant_id,
                    closure_id,
                    ClosureStatus.CLOSED.value,
                ),
            )
            return cur.rowcount > 0

    def list_closures(self, tenant_id: int, *, limit: int) -> Sequence[Closure]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_CLOSURE_COLUMNS}
                FROM time_bank_closures
                WHERE tenant_id=%s
                ORDER BY period_end DESC, id DESC
                LIMIT %s
                """,
                (tenant_id, int(limit)),
            )
            return [_row_to_closure(r) for r in fetchall(cur)]

    def list_items(self, tenant_id: int, closure_id: int) -> Sequence[ClosureItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT closure_id, employee_id, employee_name, worked_seconds, expected_seconds,
                       adjustment_seconds, balance_seconds
                FROM time_bank_closure_items
                WHERE tenant_id=%s AND closure_id=%s
                ORDER BY employee_name ASC, employee_id ASC
                """,
                (tenant_id, closure_id),
            )
            return [_row_to_item(r) for r in fetchall(cur)]
