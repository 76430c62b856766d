from __future__ import annotations

from datetime import date

import pytest

from src.time_bank.time_bank.adjustments.service import resolve_delta
from src.time_bank.time_bank.adjustments.workflow import next_status
from src.time_bank.time_bank.core.caller import Caller
from src.time_bank.time_bank.core.enums import AdjustmentAction, AdjustmentStatus, Role
from src.time_bank.time_bank.core.exceptions import (
    AlreadyReviewedError,
    AuthorizationError,
    InvalidDeltaError,
    NotFoundError,
    PeriodClosedError,
)

from tests.fakes import utc

NOW = utc(2026, 3, 10, 12, 0)
DAY = date(2026, 3, 3)


def test_transitions_only_leave_pending():
    assert next_status(AdjustmentStatus.PENDING, AdjustmentAction.APPROVE) == AdjustmentStatus.APPROVED
    assert next_status(AdjustmentStatus.PENDING, AdjustmentAction.REJECT) == AdjustmentStatus.REJECTED

    with pytest.raises(AlreadyReviewedError):
        next_status(AdjustmentStatus.APPROVED, AdjustmentAction.REJECT)


@pytest.mark.parametrize(
    "seconds, minutes, expected",
    [(1800, None, 1800), (-900, None, -900), (None, 15, 900), (None, "-30", -1800), ("120", None, 120)],
)
def test_resolve_delta(seconds, minutes, expected):
    assert resolve_delta(seconds, minutes) == expected


@pytest.mark.parametrize(
    "seconds, minutes",
    [(0, None), (None, None), (60, 1), (86401, None), (None, 1441), (True, None), ("abc", None)],
)
def test_resolve_delta_rejects_bad_input(seconds, minutes):
    with pytest.raises(InvalidDeltaError):
        resolve_delta(seconds, minutes)


def test_propose_then_approve_counts_towards_balance(container, hr):
    svc = container.adjustment_service
    created = svc.propose(caller=hr, employee_id=1, effective_date=DAY, seconds_delta=-1800, reason=" late ", now=NOW)
    assert created.status == AdjustmentStatus.PENDING
    assert created.reason == "late"
    assert created.employee_name == "Alice Santos"

    before = container.balance_service.compute(1, DAY, DAY, employee_id=1, now=NOW)
    assert before.employees[0].adjustment_seconds == 0

    approved = svc.decide(caller=hr, adjustment_id=created.adjustment_id, action=AdjustmentAction.APPROVE, now=NOW)
    assert approved.status == AdjustmentStatus.APPROVED
    assert approved.reviewed_by == hr.user_id

    after = container.balance_service.compute(1, DAY, DAY, employee_id=1, now=NOW)
    assert after.employees[0].adjustment_seconds == -1800


def test_reject_is_terminal(container, hr):
    svc = container.adjustment_service
    created = svc.propose(caller=hr, employee_id=2, effective_date=DAY, seconds_delta=600, now=NOW)
    rejected = svc.decide(
        caller=hr, adjustment_id=created.adjustment_id, action=AdjustmentAction.REJECT, review_note="no", now=NOW
    )
    assert rejected.status == AdjustmentStatus.REJECTED
    assert rejected.review_note == "no"

    with pytest.raises(AlreadyReviewedError):
        svc.decide(caller=hr, adjustment_id=created.adjustment_id, action=AdjustmentAction.APPROVE, now=NOW)

    summary = container.balance_service.compute(1, DAY, DAY, employee_id=2, now=NOW)
    assert summary.employees[0].adjustment_seconds == 0


def test_propose_validations(container, hr, alice):
    svc = container.adjustment_service
    with pytest.raises(AuthorizationError):
        svc.propose(caller=alice, employee_id=1, effective_date=DAY, seconds_delta=60, now=NOW)
    with pytest.raises(InvalidDeltaError):
        svc.propose(caller=hr, employee_id=1, effective_date=DAY, seconds_delta=0, now=NOW)
    with pytest.raises(NotFoundError):
        svc.propose(caller=hr, employee_id=99, effective_date=DAY, seconds_delta=60, now=NOW)


def test_closed_period_blocks_proposal_and_review(container, hr):
    svc = container.adjustment_service
    pending = svc.propose(caller=hr, employee_id=1, effective_date=DAY, seconds_delta=60, now=NOW)
    container.closure_service.close(caller=hr, period_start=DAY, period_end=DAY, now=NOW)

    with pytest.raises(PeriodClosedError):
        svc.propose(caller=hr, employee_id=1, effective_date=DAY, seconds_delta=60, now=NOW)
    with pytest.raises(PeriodClosedError):
        svc.decide(caller=hr, adjustment_id=pending.adjustment_id, action=AdjustmentAction.APPROVE, now=NOW)


def test_closed_period_override_requires_privileged_role(container, hr, admin):
    svc = container.adjustment_service
    pending = svc.propose(caller=hr, employee_id=1, effective_date=DAY, seconds_delta=60, now=NOW)
    container.closure_service.close(caller=hr, period_start=DAY, period_end=DAY, now=NOW)

    with pytest.raises(AuthorizationError):
        svc.decide(
            caller=admin,
            adjustment_id=pending.adjustment_id,
            action=AdjustmentAction.APPROVE,
            allow_closed_override=True,
            now=NOW,
        )

    owner = Caller(tenant_id=1, user_id=1, role=Role.OWNER)
    approved = svc.decide(
        caller=owner,
        adjustment_id=pending.adjustment_id,
        action=AdjustmentAction.APPROVE,
        allow_closed_override=True,
        now=NOW,
    )
    assert approved.status == AdjustmentStatus.APPROVED


def test_list_filters_by_status(container, hr):
    svc = container.adjustment_service
    first = svc.propose(caller=hr, employee_id=1, effective_date=DAY, seconds_delta=60, now=NOW)
    svc.propose(caller=hr, employee_id=2, effective_date=DAY, seconds_delta=120, now=NOW)
    svc.decide(caller=hr, adjustment_id=first.adjustment_id, action=AdjustmentAction.APPROVE, now=NOW)

    approved = svc.list_adjustments(caller=hr, status=AdjustmentStatus.APPROVED, limit=30, today=NOW.date())
    assert [a.adjustment_id for a in approved] == [first.adjustment_id]
    assert len(svc.list_adjustments(caller=hr, limit=30, today=NOW.date())) == 2
    assert svc.list_adjustments(caller=hr, start=date(2026, 3, 4), end=date(2026, 3, 5), limit=30) == []
