from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AdjustmentStatus


@dataclass(frozen=True)
class Adjustment:
    """A manual correction to an employee's time bank.

    Only approved adjustments count towards the balance.
    """

    adjustment_id: int
    tenant_id: int
    employee_id: int
    effective_date: date
    seconds_delta: int
    status: AdjustmentStatus
    reason: Optional[str] = None
    review_note: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    employee_name: Optional[str] = None
