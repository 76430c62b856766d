from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..balance.service import BalanceService
from ..common.datetime_utils import utc_now
from ..common.locks import LedgerLocks
from ..common.validators import normalize_optional_text
from ..core.caller import Caller
from ..core.enums import ClosureAction
from ..core.exceptions import InvalidRangeError, NotClosedError, NotFoundError
from .model import Closure, ClosureItem
from .repository import ClosureRepository
from .workflow import next_status

logger = logging.getLogger(__name__)


class ClosureService:
    """Freezes and reopens time bank periods.

    ``close`` holds the tenant ledger lock exclusively while it computes and
    stores the snapshot, so no ledger write can land inside the range between
    the summary and the closure row.
    """

    def __init__(self, closures: ClosureRepository, balance: BalanceService, locks: LedgerLocks):
        self._closures = closures
        self._balance = balance
        self._locks = locks

    def is_locked(self, tenant_id: int, day: date) -> bool:
        return self._closures.is_date_closed(tenant_id, day)

    def close(
        self,
        *,
        caller: Caller,
        period_start: date,
        period_end: date,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Closure:
        caller.require_hr()
        if period_end < period_start:
            raise InvalidRangeError("period_end must be >= period_start")

        now = now or utc_now()
        tenant_id = caller.tenant_id
        with self._locks.closing(tenant_id):
            if self._closures.has_overlap(tenant_id, period_start, period_end):
                raise InvalidRangeError("another closed period overlaps selected range")
            summary = self._balance.compute(tenant_id, period_start, period_end, now=now)
            closure = self._closures.create(
                tenant_id,
                summary=summary,
                note=normalize_optional_text(note),
                closed_by=caller.user_id,
                closed_at=now,
            )

        logger.info(
            "time bank period closed tenant=%s closure=%s range=%s..%s employees=%s balance=%s by_user=%s",
            tenant_id, closure.closure_id, period_start.isoformat(), period_end.isoformat(),
            closure.employees_count, closure.total_balance_seconds, caller.user_id,
        )
        return closure

    def reopen(
        self,
        *,
        caller: Caller,
        closure_id: int,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Closure:
        caller.require_hr()
        tenant_id = caller.tenant_id
        with self._locks.closing(tenant_id):
            closure = self._closures.get_by_id(tenant_id, int(closure_id))
            if not closure:
                raise NotFoundError("time bank closure not found")
            next_status(closure.status, ClosureAction.REOPEN)

            if not self._closures.mark_reopened(
                tenant_id,
                closure.closure_id,
                reopened_by=caller.user_id,
                reopened_at=now or utc_now(),
                note=normalize_optional_text(note),
            ):
                raise NotClosedError("closure was reopened concurrently")
            reopened = self._closures.get_by_id(tenant_id, closure.closure_id)

        logger.info(
            "time bank period reopened tenant=%s closure=%s by_user=%s",
            tenant_id, closure.closure_id, caller.user_id,
        )
        return reopened

    def list_closures(self, *, caller: Caller, limit: int) -> Sequence[Closure]:
        caller.require_hr()
        return self._closures.list_closures(caller.tenant_id, limit=limit)

    def items(self, *, caller: Caller, closure_id: int) -> Sequence[ClosureItem]:
        caller.require_hr()
        if not self._closures.get_by_id(caller.tenant_id, int(closure_id)):
            raise NotFoundError("time bank closure not found")
        return self._closures.list_items(caller.tenant_id, int(closure_id))
