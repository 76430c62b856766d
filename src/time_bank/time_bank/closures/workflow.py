from __future__ import annotations

from ..core.enums import ClosureAction, ClosureStatus
from ..core.exceptions import NotClosedError

# A closure is closed exactly once; closing the range again creates a new record.
CLOSURE_TRANSITIONS: dict[ClosureStatus, dict[ClosureAction, ClosureStatus]] = {
    ClosureStatus.CLOSED: {ClosureAction.REOPEN: ClosureStatus.REOPENED},
    ClosureStatus.REOPENED: {},
}


def next_status(current: ClosureStatus, action: ClosureAction) -> ClosureStatus:
    target = CLOSURE_TRANSITIONS.get(current, {}).get(action)
    if target is None:
        raise NotClosedError(f"closure is already {current.value}")
    return target
