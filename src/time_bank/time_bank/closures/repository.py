from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..balance.model import BalanceSummary
from .model import Closure, ClosureItem


class ClosureRepository(Protocol):
    def is_date_closed(self, tenant_id: int, day: date) -> bool:
        """True iff ``day`` lies inside a closure whose status is ``closed``."""
        raise NotImplementedError

    def has_overlap(self, tenant_id: int, start: date, end: date) -> bool:
        raise NotImplementedError

    def create(
        self,
        tenant_id: int,
        *,
        summary: BalanceSummary,
        note: Optional[str],
        closed_by: int,
        closed_at: datetime,
    ) -> Closure:
        """Persist a closure with one snapshot row per summary employee, atomically."""
        raise NotImplementedError

    def get_by_id(self, tenant_id: int, closure_id: int) -> Optional[Closure]:
        raise NotImplementedError

    def mark_reopened(
        self,
        tenant_id: int,
        closure_id: int,
        *,
        reopened_by: int,
        reopened_at: datetime,
        note: Optional[str],
    ) -> bool:
        """Flip ``closed`` to ``reopened``. False if the closure was not closed."""
        raise NotImplementedError

    def list_closures(self, tenant_id: int, *, limit: int) -> Sequence[Closure]:
        raise NotImplementedError

    def list_items(self, tenant_id: int, closure_id: int) -> Sequence[ClosureItem]:
        raise NotImplementedError
