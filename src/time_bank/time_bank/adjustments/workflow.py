from __future__ import annotations

from ..core.enums import AdjustmentAction, AdjustmentStatus
from ..core.exceptions import AlreadyReviewedError

# Each action is only valid from pending; approved and rejected are terminal.
ADJUSTMENT_TRANSITIONS: dict[AdjustmentStatus, dict[AdjustmentAction, AdjustmentStatus]] = {
    AdjustmentStatus.PENDING: {
        AdjustmentAction.APPROVE: AdjustmentStatus.APPROVED,
        AdjustmentAction.REJECT: AdjustmentStatus.REJECTED,
    },
    AdjustmentStatus.APPROVED: {},
    AdjustmentStatus.REJECTED: {},
}


def next_status(current: AdjustmentStatus, action: AdjustmentAction) -> AdjustmentStatus:
    target = ADJUSTMENT_TRANSITIONS.get(current, {}).get(action)
    if target is None:
        raise AlreadyReviewedError(f"adjustment is already {current.value}")
    return target
