from __future__ import annotations

import math
from contextlib import contextmanager
from typing import Iterator

from ..common.locks import LedgerLocks
from ..core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS
from ..core.exceptions import LedgerBusyError
from .connection import DatabaseConnection


def tenant_lock_name(tenant_id: int) -> str:
    return f"time_bank:{int(tenant_id)}:ledger"


def employee_lock_name(tenant_id: int, employee_id: int) -> str:
    return f"time_bank:{int(tenant_id)}:employee:{int(employee_id)}"


class MySQLLedgerLocks(LedgerLocks):
    """Ledger locks that also hold MySQL named locks (``GET_LOCK``).

    Every app process sharing the database then serializes employee writes and
    period closing the same way the threads of one process do. MySQL named
    locks have no shared mode, so across processes the ordinary writes of one
    tenant run one at a time.

    Lock order is always employee, then tenant.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS):
        super().__init__(timeout=timeout)
        self._conn_factory = conn_factory

    @contextmanager
    def _named(self, name: str) -> Iterator[None]:
        # GET_LOCK waits in whole seconds; the lock lives as long as the session.
        conn = self._conn_factory.connect()
        try:
            cur = conn.cursor()
            try:
                cur.execute("SELECT GET_LOCK(%s, %s)", (name, max(int(math.ceil(self._timeout)), 0)))
                row = cur.fetchone()
                if not row or row[0] != 1:
                    raise LedgerBusyError("ledger is busy, try again")
                try:
                    yield
                finally:
                    cur.execute("SELECT RELEASE_LOCK(%s)", (name,))
                    cur.fetchone()
            finally:
                cur.close()
        finally:
            conn.close()

    @contextmanager
    def writing(self, tenant_id: int) -> Iterator[None]:
        with super().writing(tenant_id), self._named(tenant_lock_name(tenant_id)):
            yield

    @contextmanager
    def closing(self, tenant_id: int) -> Iterator[None]:
        with super().closing(tenant_id), self._named(tenant_lock_name(tenant_id)):
            yield

    @contextmanager
    def employee(self, tenant_id: int, employee_id: int) -> Iterator[None]:
        with super().employee(tenant_id, employee_id), self._named(employee_lock_name(tenant_id, employee_id)):
            yield
