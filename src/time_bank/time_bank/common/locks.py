"""In-process serialization points for ledger writes.

Two kinds of locks protect the ledger:

* a keyed mutex per ``(tenant, employee)`` serializes clock-in/clock-out and
  provider upserts for one employee, so the "one open entry" check and the
  write happen as one step;
* a read/write lock per tenant orders ordinary writes (shared) against period
  closing (exclusive). A write racing with ``close()`` either finishes before
  the snapshot is taken or sees the new closure when it re-checks the lock.

Every acquisition has a timeout and raises ``LedgerBusyError`` instead of
blocking forever.

These locks cover one process; ``database.named_locks.MySQLLedgerLocks`` adds
MySQL named locks for deployments running several app processes.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Hashable, Iterator

from ..core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS
from ..core.exceptions import LedgerBusyError


class KeyedLocks:
    def __init__(self, *, timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self._timeout = float(timeout)
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._lock_for(key)
        if not lock.acquire(timeout=self._timeout):
            raise LedgerBusyError("ledger is busy, try again")
        try:
            yield
        finally:
            lock.release()


class ReadWriteLock:
    """Writer-preferring read/write lock built on ``threading.Condition``."""

    def __init__(self, *, timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self._timeout = float(timeout)
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def shared(self) -> Iterator[None]:
        with self._cond:
            ok = self._cond.wait_for(
                lambda: not self._writer and self._writers_waiting == 0,
                timeout=self._timeout,
            )
            if not ok:
                raise LedgerBusyError("period is being closed, try again")
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                ok = self._cond.wait_for(
                    lambda: not self._writer and self._readers == 0,
                    timeout=self._timeout,
                )
            finally:
                self._writers_waiting -= 1
            if not ok:
                self._cond.notify_all()
                raise LedgerBusyError("ledger is busy, try again")
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class LedgerLocks:
    """Lock registry shared by the services of one process."""

    def __init__(self, *, timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self._timeout = float(timeout)
        self._employees = KeyedLocks(timeout=timeout)
        self._guard = threading.Lock()
        self._tenants: dict[int, ReadWriteLock] = {}

    def _tenant_lock(self, tenant_id: int) -> ReadWriteLock:
        with self._guard:
            lock = self._tenants.get(int(tenant_id))
            if lock is None:
                lock = ReadWriteLock(timeout=self._timeout)
                self._tenants[int(tenant_id)] = lock
            return lock

    @contextmanager
    def writing(self, tenant_id: int) -> Iterator[None]:
        """Hold while mutating ledger rows of a tenant."""
        with self._tenant_lock(tenant_id).shared():
            yield

    @contextmanager
    def closing(self, tenant_id: int) -> Iterator[None]:
        """Hold while snapshotting and persisting a closure."""
        with self._tenant_lock(tenant_id).exclusive():
            yield

    @contextmanager
    def employee(self, tenant_id: int, employee_id: int) -> Iterator[None]:
        with self._employees.hold((int(tenant_id), int(employee_id))):
            yield
