from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..closures.repository import ClosureRepository
from ..common.datetime_utils import resolve_range, utc_now
from ..common.locks import LedgerLocks
from ..common.validators import normalize_optional_text
from ..core.caller import Caller
from ..core.constants import DEFAULT_SUMMARY_RANGE_DAYS, MAX_ADJUSTMENT_SECONDS
from ..core.enums import AdjustmentAction, AdjustmentStatus
from ..core.exceptions import (
    AlreadyReviewedError,
    AuthorizationError,
    InvalidDeltaError,
    NotFoundError,
    PeriodClosedError,
)
from ..employees.repository import EmployeeRepository
from .model import Adjustment
from .repository import AdjustmentRepository
from .workflow import next_status

logger = logging.getLogger(__name__)


def _as_int(value, field_name: str) -> int:
    if isinstance(value, bool):
        raise InvalidDeltaError(f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidDeltaError(f"{field_name} must be an integer")


def resolve_delta(seconds_delta=None, minutes_delta=None) -> int:
    """Turn the mutually exclusive ``seconds_delta``/``minutes_delta`` inputs into seconds."""
    if seconds_delta is not None and minutes_delta is not None:
        raise InvalidDeltaError("seconds_delta and minutes_delta cannot be used together")
    if seconds_delta is not None:
        delta = _as_int(seconds_delta, "seconds_delta")
    elif minutes_delta is not None:
        delta = _as_int(minutes_delta, "minutes_delta") * 60
    else:
        raise InvalidDeltaError("seconds_delta or minutes_delta is required")
    validate_delta(delta)
    return delta


def validate_delta(delta: int) -> None:
    if delta == 0:
        raise InvalidDeltaError("delta must be non-zero")
    if abs(delta) > MAX_ADJUSTMENT_SECONDS:
        raise InvalidDeltaError(f"delta cannot exceed {MAX_ADJUSTMENT_SECONDS} seconds")


class AdjustmentService:
    def __init__(
        self,
        adjustments: AdjustmentRepository,
        employees: EmployeeRepository,
        closures: ClosureRepository,
        locks: LedgerLocks,
    ):
        self._adjustments = adjustments
        self._employees = employees
        self._closures = closures
        self._locks = locks

    def propose(
        self,
        *,
        caller: Caller,
        employee_id: int,
        effective_date: date,
        seconds_delta: int,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Adjustment:
        caller.require_hr()
        validate_delta(int(seconds_delta))

        if not self._employees.get_by_id(caller.tenant_id, int(employee_id)):
            raise NotFoundError("employee not found")

        with self._locks.writing(caller.tenant_id):
            if self._closures.is_date_closed(caller.tenant_id, effective_date):
                raise PeriodClosedError("period is closed for this date")
            created = self._adjustments.create(
                caller.tenant_id,
                employee_id=int(employee_id),
                effective_date=effective_date,
                seconds_delta=int(seconds_delta),
                reason=normalize_optional_text(reason),
                created_by=caller.user_id,
                created_at=now or utc_now(),
            )

        logger.info(
            "adjustment proposed tenant=%s id=%s employee=%s date=%s delta=%s by_user=%s",
            caller.tenant_id, created.adjustment_id, created.employee_id,
            created.effective_date.isoformat(), created.seconds_delta, caller.user_id,
        )
        return created

    def decide(
        self,
        *,
        caller: Caller,
        adjustment_id: int,
        action: AdjustmentAction,
        review_note: Optional[str] = None,
        allow_closed_override: bool = False,
        now: Optional[datetime] = None,
    ) -> Adjustment:
        caller.require_hr()
        if allow_closed_override and not caller.can_override_closure:
            raise AuthorizationError("closed period override requires the HR or owner role")

        tenant_id = caller.tenant_id
        with self._locks.writing(tenant_id):
            current = self._adjustments.get_by_id(tenant_id, int(adjustment_id))
            if not current:
                raise NotFoundError("time bank adjustment not found")

            target = next_status(current.status, action)

            if not allow_closed_override and self._closures.is_date_closed(tenant_id, current.effective_date):
                raise PeriodClosedError("period is closed for this date")

            won = self._adjustments.transition(
                tenant_id,
                current.adjustment_id,
                from_status=AdjustmentStatus.PENDING,
                to_status=target,
                reviewed_by=caller.user_id,
                reviewed_at=now or utc_now(),
                review_note=normalize_optional_text(review_note),
            )
            if not won:
                raise AlreadyReviewedError("adjustment was reviewed concurrently")

            decided = self._adjustments.get_by_id(tenant_id, current.adjustment_id)

        logger.info(
            "adjustment %s tenant=%s id=%s by_user=%s override=%s",
            target.value, tenant_id, current.adjustment_id, caller.user_id, allow_closed_override,
        )
        return decided

    def list_adjustments(
        self,
        *,
        caller: Caller,
        status: Optional[AdjustmentStatus] = None,
        employee_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: int,
        today: Optional[date] = None,
    ) -> Sequence[Adjustment]:
        caller.require_hr()
        start, end = resolve_range(
            start, end, today=today or utc_now().date(), default_days=DEFAULT_SUMMARY_RANGE_DAYS
        )
        return self._adjustments.list_adjustments(
            caller.tenant_id,
            start=start,
            end=end,
            status=status,
            employee_id=employee_id,
            limit=limit,
        )
