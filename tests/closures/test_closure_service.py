from __future__ import annotations

import threading
from datetime import date

import pytest

from src.time_bank.time_bank.closures.workflow import next_status
from src.time_bank.time_bank.core.enums import ClosureAction, ClosureStatus
from src.time_bank.time_bank.core.exceptions import (
    AuthorizationError,
    InvalidRangeError,
    NotClosedError,
    NotFoundError,
    PeriodClosedError,
)

from tests.fakes import FakeClosureRepo, build_fake_container, utc

NOW = utc(2026, 3, 10, 12, 0)
START = date(2026, 3, 2)
END = date(2026, 3, 6)


def _work(container, alice, day, start_hour, end_hour):
    container.entry_service.clock_in(caller=alice, at=utc(2026, 3, day, start_hour, 0), now=NOW)
    container.entry_service.clock_out(caller=alice, at=utc(2026, 3, day, end_hour, 0), now=NOW)


def test_reopen_only_from_closed():
    assert next_status(ClosureStatus.CLOSED, ClosureAction.REOPEN) == ClosureStatus.REOPENED
    with pytest.raises(NotClosedError):
        next_status(ClosureStatus.REOPENED, ClosureAction.REOPEN)


def test_close_snapshots_balances(container, hr, alice):
    _work(container, alice, 2, 9, 17)

    closure = container.closure_service.close(caller=hr, period_start=START, period_end=END, note="march", now=NOW)
    assert closure.status == ClosureStatus.CLOSED
    assert closure.employees_count == 2
    assert closure.total_worked_seconds == 8 * 3600
    assert closure.total_expected_seconds == 2 * 5 * 8 * 3600

    items = container.closure_service.items(caller=hr, closure_id=closure.closure_id)
    assert [i.employee_name for i in items] == ["Alice Santos", "Bruno Lima"]
    assert items[0].balance_seconds == 8 * 3600 - 5 * 8 * 3600
    assert container.closure_service.is_locked(1, date(2026, 3, 4))
    assert not container.closure_service.is_locked(1, date(2026, 3, 7))


def test_writes_inside_closed_range_fail(container, hr, alice):
    container.closure_service.close(caller=hr, period_start=START, period_end=END, now=NOW)
    with pytest.raises(PeriodClosedError):
        container.entry_service.clock_in(caller=alice, at=utc(2026, 3, 3, 9, 0), now=NOW)
    # outside the range is fine
    container.entry_service.clock_in(caller=alice, at=utc(2026, 3, 9, 9, 0), now=NOW)


def test_overlapping_or_reversed_ranges_are_rejected(container, hr):
    container.closure_service.close(caller=hr, period_start=START, period_end=END, now=NOW)
    with pytest.raises(InvalidRangeError):
        container.closure_service.close(caller=hr, period_start=date(2026, 3, 6), period_end=date(2026, 3, 9), now=NOW)
    with pytest.raises(InvalidRangeError):
        container.closure_service.close(caller=hr, period_start=END, period_end=START, now=NOW)


def test_reopen_keeps_snapshot_and_unlocks_dates(container, hr, alice):
    _work(container, alice, 2, 9, 17)
    closure = container.closure_service.close(caller=hr, period_start=START, period_end=END, now=NOW)
    snapshot = container.closure_service.items(caller=hr, closure_id=closure.closure_id)

    reopened = container.closure_service.reopen(caller=hr, closure_id=closure.closure_id, note="fix", now=NOW)
    assert reopened.status == ClosureStatus.REOPENED
    assert reopened.reopened_by == hr.user_id
    assert reopened.note == "fix"
    assert not container.closure_service.is_locked(1, date(2026, 3, 3))

    _work(container, alice, 3, 9, 12)
    assert container.closure_service.items(caller=hr, closure_id=closure.closure_id) == snapshot
    assert container.closure_service.list_closures(caller=hr, limit=10)[0].total_worked_seconds == 8 * 3600

    with pytest.raises(NotClosedError):
        container.closure_service.reopen(caller=hr, closure_id=closure.closure_id, now=NOW)

    again = container.closure_service.close(caller=hr, period_start=START, period_end=END, now=NOW)
    assert again.closure_id != closure.closure_id
    assert again.total_worked_seconds == 11 * 3600


def test_closure_access_control(container, hr, alice):
    with pytest.raises(AuthorizationError):
        container.closure_service.close(caller=alice, period_start=START, period_end=END, now=NOW)
    with pytest.raises(NotFoundError):
        container.closure_service.reopen(caller=hr, closure_id=42, now=NOW)
    with pytest.raises(NotFoundError):
        container.closure_service.items(caller=hr, closure_id=42)


@pytest.mark.parametrize("attempt", range(5))
def test_write_racing_close_is_in_snapshot_or_rejected(employees, hr, alice, attempt):
    container = build_fake_container(employees, closures=FakeClosureRepo(read_delay=0.01), lock_timeout=5.0)
    barrier = threading.Barrier(2)
    outcome = {}

    def write():
        barrier.wait()
        try:
            container.entry_service.clock_in(caller=alice, at=utc(2026, 3, 3, 9, 0), now=NOW)
            outcome["write"] = "ok"
        except PeriodClosedError:
            outcome["write"] = "period_closed"

    def close():
        barrier.wait()
        outcome["closure"] = container.closure_service.close(caller=hr, period_start=START, period_end=END, now=NOW)

    threads = [threading.Thread(target=write), threading.Thread(target=close)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    items = container.closure_service.items(caller=hr, closure_id=outcome["closure"].closure_id)
    alice_worked = items[0].worked_seconds
    if outcome["write"] == "ok":
        # open since Mar 3 09:00, counted up to the end of the range
        assert alice_worked == 4 * 86400 - 9 * 3600
    else:
        assert outcome["write"] == "period_closed"
        assert alice_worked == 0
        assert container.entries_repo.rows == {}
