"""Merges provider time entries into the ledger.

The batch is best-effort: unmapped users, unparseable entries and per-user
fetch failures are counted in the ``SyncSummary`` and the run continues.
Only failures that make the whole batch meaningless (listing users, bad
credentials) propagate.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from ..common.datetime_utils import day_end_exclusive, day_start, parse_timestamp
from ..common.validators import normalize_optional_text
from ..core.constants import UNMAPPED_PREVIEW_LIMIT
from ..core.enums import EntrySource, UpsertOutcome
from ..core.exceptions import (
    AlreadyOpenError,
    InvalidIntervalError,
    PeriodClosedError,
    ProviderRateLimitedError,
    ProviderUnavailableError,
    ValidationError,
)
from ..employees.model import normalize_email
from ..employees.repository import EmployeeRepository
from ..entries.model import ExternalEntry
from ..entries.service import EntryService
from .clockify.client import ClockifyClient
from .clockify.schemas import ClockifyTimeEntry, ClockifyUser, parse_iso_duration_seconds
from .model import ClockifyConnection, SyncSummary, UserLink
from .repository import ClockifyRepository

logger = logging.getLogger(__name__)


def _optional_id(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def to_external_entry(employee_id: int, raw: Any) -> Optional[ExternalEntry]:
    """Map one raw provider entry; None when it cannot be used."""
    try:
        parsed = ClockifyTimeEntry.model_validate(raw)
    except PydanticValidationError:
        return None

    external_ref = parsed.id.strip()
    interval = parsed.timeInterval
    if not external_ref or not (interval.start or "").strip():
        return None

    try:
        start_at = parse_timestamp(interval.start)
        end_at = parse_timestamp(interval.end) if (interval.end or "").strip() else None
    except ValidationError:
        return None

    # A stopped timer can come back with a duration but without an end.
    if end_at is None:
        duration = parse_iso_duration_seconds(interval.duration)
        if duration > 0:
            end_at = start_at + timedelta(seconds=duration)

    return ExternalEntry(
        employee_id=employee_id,
        source=EntrySource.CLOCKIFY,
        external_ref=external_ref,
        start_at=start_at,
        end_at=end_at,
        description=normalize_optional_text(parsed.description),
        project_id=_optional_id(parsed.projectId),
        task_id=_optional_id(parsed.taskId),
        billable=bool(parsed.billable),
    )


def _user_label(user: ClockifyUser) -> str:
    return (user.email or "").strip() or (user.name or "").strip() or user.id


class ClockifyReconciler:
    def __init__(
        self,
        entries: EntryService,
        employees: EmployeeRepository,
        clockify: ClockifyRepository,
    ):
        self._entries = entries
        self._employees = employees
        self._clockify = clockify

    def _map_users(
        self,
        tenant_id: int,
        users: list[ClockifyUser],
        summary: SyncSummary,
        now: datetime,
    ) -> list[tuple[str, int]]:
        employees = self._employees.list_active(tenant_id)
        summary.employees_total = len(employees)

        by_email: dict[str, int] = {}
        for employee in employees:
            email = normalize_email(employee.email)
            if email:
                by_email[email] = employee.employee_id

        linked = {
            link.clockify_user_id: link.employee_id
            for link in self._clockify.list_links(tenant_id)
            if link.employee_id is not None
        }

        mapped: list[tuple[str, int]] = []
        for user in users:
            user_id = user.id.strip()
            if not user_id:
                continue

            employee_id = linked.get(user_id)
            if employee_id is None:
                employee_id = by_email.get(normalize_email(user.email))
            if employee_id is None:
                summary.users_unmapped += 1
                if len(summary.unmapped_users) < UNMAPPED_PREVIEW_LIMIT:
                    summary.unmapped_users.append(_user_label(user))
                continue

            self._clockify.upsert_link(
                tenant_id,
                UserLink(
                    clockify_user_id=user_id,
                    employee_id=employee_id,
                    clockify_user_email=normalize_optional_text(user.email),
                    clockify_user_name=normalize_optional_text(user.name),
                    last_synced_at=now,
                ),
            )
            mapped.append((user_id, employee_id))

        summary.employees_mapped = len({employee_id for _, employee_id in mapped})
        return mapped

    def _merge_entry(
        self,
        tenant_id: int,
        employee_id: int,
        raw: Any,
        summary: SyncSummary,
        *,
        allow_closed_override: bool,
        now: datetime,
    ) -> None:
        summary.entries_processed += 1
        entry = to_external_entry(employee_id, raw)
        if entry is None:
            summary.entries_failed += 1
            logger.warning("clockify entry skipped, unparseable tenant=%s employee=%s", tenant_id, employee_id)
            return

        try:
            outcome = self._entries.upsert_external(
                tenant_id,
                entry,
                allow_closed_override=allow_closed_override,
                now=now,
            )
        except PeriodClosedError:
            summary.entries_skipped_closed += 1
            return
        except AlreadyOpenError:
            summary.entries_skipped_open += 1
            logger.warning(
                "clockify entry skipped, employee already has an open entry tenant=%s employee=%s ref=%s",
                tenant_id, employee_id, entry.external_ref,
            )
            return
        except InvalidIntervalError:
            summary.entries_failed += 1
            logger.warning(
                "clockify entry skipped, invalid interval tenant=%s employee=%s ref=%s",
                tenant_id, employee_id, entry.external_ref,
            )
            return

        if entry.is_open:
            summary.running_entries += 1
        if outcome == UpsertOutcome.UNCHANGED:
            summary.entries_unchanged += 1
        else:
            summary.entries_upserted += 1

    def reconcile(
        self,
        connection: ClockifyConnection,
        client: ClockifyClient,
        start: date,
        end: date,
        *,
        allow_closed_override: bool,
        now: datetime,
    ) -> SyncSummary:
        tenant_id = connection.tenant_id
        summary = SyncSummary(range_start=start, range_end=end)

        users = client.list_users(connection.workspace_id)
        summary.users_found = len(users)
        mapped = self._map_users(tenant_id, users, summary, now)

        range_start, range_end = day_start(start), day_end_exclusive(end)
        for user_id, employee_id in mapped:
            try:
                raw_entries = client.list_time_entries(connection.workspace_id, user_id, range_start, range_end)
            except (ProviderUnavailableError, ProviderRateLimitedError) as exc:
                summary.users_failed += 1
                logger.warning(
                    "clockify entries fetch failed tenant=%s clockify_user=%s: %s",
                    tenant_id, user_id, exc,
                )
                continue

            for raw in raw_entries:
                self._merge_entry(
                    tenant_id,
                    employee_id,
                    raw,
                    summary,
                    allow_closed_override=allow_closed_override,
                    now=now,
                )

        summary.synced_at = now
        return summary
