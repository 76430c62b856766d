from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_date
from .model import TERMINATED_STATUS, Employee
from .repository import EmployeeRepository

_COLUMNS = "id, tenant_id, user_id, full_name, email, status, hire_date, termination_date"


def _row_to_employee(row: dict) -> Employee:
    return Employee(
        employee_id=int(row["id"]),
        tenant_id=int(row["tenant_id"]),
        full_name=row["full_name"],
        email=row.get("email"),
        user_id=int(row["user_id"]) if row.get("user_id") is not None else None,
        status=row.get("status") or "active",
        hire_date=from_db_date(row.get("hire_date")),
        termination_date=from_db_date(row.get("termination_date")),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, tenant_id: int, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE tenant_id=%s AND id=%s",
                (tenant_id, employee_id),
            )
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def get_for_user(self, tenant_id: int, user_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE tenant_id=%s AND user_id=%s LIMIT 1",
                (tenant_id, user_id),
            )
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def list_employed_in_range(
        self,
        tenant_id: int,
        start: date,
        end: date,
        *,
        employee_id: Optional[int] = None,
    ) -> Sequence[Employee]:
        sql = f"""
            SELECT {_COLUMNS}
            FROM employees
            WHERE tenant_id=%s
              AND (hire_date IS NULL OR hire_date<=%s)
              AND (termination_date IS NULL OR termination_date>=%s)
        """
        params: list = [tenant_id, end, start]
        if employee_id is not None:
            sql += " AND id=%s"
            params.append(employee_id)
        sql += " ORDER BY full_name ASC, id ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_employee(r) for r in fetchall(cur)]

    def list_active(self, tenant_id: int) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employees
                WHERE tenant_id=%s AND status<>%s
                ORDER BY full_name ASC, id ASC
                """,
                (tenant_id, TERMINATED_STATUS),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]
