from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AdjustmentStatus
from .model import Adjustment


class AdjustmentRepository(Protocol):
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
        raise NotImplementedError

    def get_by_id(self, tenant_id: int, adjustment_id: int) -> Optional[Adjustment]:
        raise NotImplementedError

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
        """Compare-and-set on status. False when another reviewer got there first."""
        raise NotImplementedError

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
        """Newest effective date first."""
        raise NotImplementedError

    def list_approved_in_range(
        self,
        tenant_id: int,
        start: date,
        end: date,
        *,
        employee_id: Optional[int] = None,
    ) -> Sequence[Adjustment]:
        raise NotImplementedError
