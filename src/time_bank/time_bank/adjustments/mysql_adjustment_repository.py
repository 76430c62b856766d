from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AdjustmentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_date, from_db_datetime, to_db_datetime
from .model import Adjustment
from .repository import AdjustmentRepository

_SELECT = """
    SELECT a.id, a.tenant_id, a.employee_id, e.full_name AS employee_name, a.effective_date,
           a.seconds_delta, a.status, a.reason, a.review_note, a.created_by, a.created_at,
           a.reviewed_by, a.reviewed_at
    FROM time_bank_adjustments a
    JOIN employees e ON e.tenant_id=a.tenant_id AND e.id=a.employee_id
"""


def _optional_int(value) -> Optional[int]:
    return int(value) if value is not None else None


def _row_to_adjustment(row: dict) -> Adjustment:
    return Adjustment(
        adjustment_id=int(row["id"]),
        tenant_id=int(row["tenant_id"]),
        employee_id=int(row["employee_id"]),
        employee_name=row.get("employee_name"),
        effective_date=from_db_date(row["effective_date"]),
        seconds_delta=int(row["seconds_delta"]),
        status=AdjustmentStatus(row["status"]),
        reason=row.get("reason"),
        review_note=row.get("review_note"),
        created_by=_optional_int(row.get("created_by")),
        created_at=from_db_datetime(row.get("created_at")),
        reviewed_by=_optional_int(row.get("reviewed_by")),
        reviewed_at=from_db_datetime(row.get("reviewed_at")),
    )


class MySQLAdjustmentRepository(AdjustmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        tenant_id: int,
        *,
        employee_id: int,
        effective_date: date,
        seconds_delta: int,
        reason: Optional[str],
        created_by: int,
        created_at: datetime,
    ) -> Adjustment:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_bank_adjustments(
                    tenant_id, employee_id, effective_date, seconds_delta, status, reason, created_by, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    tenant_id,
                    employee_id,
                    effective_date,
                    seconds_delta,
                    AdjustmentStatus.PENDING.value,
                    reason,
                    created_by,
                    to_db_datetime(created_at),
                ),
            )
            adjustment_id = int(cur.lastrowid)
            cur.execute(_SELECT + " WHERE a.tenant_id=%s AND a.id=%s", (tenant_id, adjustment_id))
            return _row_to_adjustment(fetchone(cur))

    def get_by_id(self, tenant_id: int, adjustment_id: int) -> Optional[Adjustment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.tenant_id=%s AND a.id=%s", (tenant_id, adjustment_id))
            row = fetchone(cur)
            return _row_to_adjustment(row) if row else None

    def transition(
        self,
        tenant_id: int,
        adjustment_id: int,
        *,
        from_status: AdjustmentStatus,
        to_status: AdjustmentStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        review_note: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_bank_adjustments
                SET status=%s, review_note=%s, reviewed_by=%s, reviewed_at=%s
                WHERE tenant_id=%s AND id=%s AND status=%s
                """,
                (
                    to_status.value,
                    review_note,
                    reviewed_by,
                    to_db_datetime(reviewed_at),
                    tenant_id,
                    adjustment_id,
                    from_status.value,
                ),
            )
            return cur.rowcount > 0

    def list_adjustments(
        self,
        tenant_id: int,
        *,
        start: date,
        end: date,
        status: Optional[AdjustmentStatus] = None,
        employee_id: Optional[int] = None,
        limit: int = 30,
    ) -> Sequence[Adjustment]:
        sql = _SELECT + " WHERE a.tenant_id=%s AND a.effective_date>=%s AND a.effective_date<=%s"
        params: list = [tenant_id, start, end]
        if employee_id is not None:
            sql += " AND a.employee_id=%s"
            params.append(employee_id)
        if status is not None:
            sql += " AND a.status=%s"
            params.append(status.value)
        sql += " ORDER BY a.effective_date DESC, a.id DESC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_adjustment(r) for r in fetchall(cur)]

    def list_approved_in_range(
        self,
        tenant_id: int,
        start: date,
        end: date,
        *,
        employee_id: Optional[int] = None,
    ) -> Sequence[Adjustment]:
        sql = _SELECT + " WHERE a.tenant_id=%s AND a.status=%s AND a.effective_date>=%s AND a.effective_date<=%s"
        params: list = [tenant_id, AdjustmentStatus.APPROVED.value, start, end]
        if employee_id is not None:
            sql += " AND a.employee_id=%s"
            params.append(employee_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_adjustment(r) for r in fetchall(cur)]
