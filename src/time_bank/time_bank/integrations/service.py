from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import resolve_range, utc_now
from ..common.validators import require_non_empty
from ..core.caller import Caller
from ..core.constants import DEFAULT_SYNC_RANGE_DAYS, UNMAPPED_PREVIEW_LIMIT
from ..core.exceptions import AuthorizationError, DomainError, ProviderNotConfiguredError, ValidationError
from .clockify.client import ClockifyClient
from .model import ClockifyConfigView, ClockifyConnection, ClockifyStatus, SyncSummary
from .reconciler import ClockifyReconciler
from .repository import ClockifyRepository

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], ClockifyClient]


class ClockifyService:
    """Clockify connection management and sync entry points."""

    def __init__(
        self,
        clockify: ClockifyRepository,
        reconciler: ClockifyReconciler,
        client_factory: ClientFactory,
    ):
        self._clockify = clockify
        self._reconciler = reconciler
        self._client_factory = client_factory

    def get_config(self, *, caller: Caller) -> ClockifyConfigView:
        caller.require_hr()
        return ClockifyConfigView.of(self._clockify.get_connection(caller.tenant_id))

    def save_config(
        self,
        *,
        caller: Caller,
        api_key: Optional[str],
        workspace_id: Optional[str],
        now: Optional[datetime] = None,
    ) -> ClockifyConfigView:
        caller.require_hr()
        api_key = require_non_empty(api_key or "", "clockify api_key")
        workspace_id = require_non_empty(workspace_id or "", "clockify workspace_id")

        # Credentials are checked against the provider before they are stored.
        with self._client_factory(api_key) as client:
            client.list_users(workspace_id)

        connection = self._clockify.save_connection(
            caller.tenant_id,
            api_key=api_key,
            workspace_id=workspace_id,
            created_by=caller.user_id,
            now=now or utc_now(),
        )
        logger.info(
            "clockify configured tenant=%s workspace=%s by_user=%s",
            caller.tenant_id, workspace_id, caller.user_id,
        )
        return ClockifyConfigView.of(connection)

    def status(self, *, caller: Caller, now: Optional[datetime] = None) -> ClockifyStatus:
        caller.require_hr()
        connection = self._clockify.get_connection(caller.tenant_id)
        if connection is None:
            return ClockifyStatus(configured=False)

        now = now or utc_now()
        entries = self._clockify.entry_stats(caller.tenant_id, since=now - timedelta(days=7))
        employees = self._clockify.employee_stats(caller.tenant_id)
        return ClockifyStatus(
            configured=True,
            workspace_id=connection.workspace_id,
            api_key_masked=connection.api_key_masked,
            last_sync_at=connection.last_sync_at,
            last_entry_start_at=entries.last_entry_start_at,
            last_entry_end_at=entries.last_entry_end_at,
            entries_total=entries.entries_total,
            entries_last_7_days=entries.entries_last_7_days,
            entries_running=entries.entries_running,
            active_employees=employees.active_employees,
            mapped_employees=employees.mapped_employees,
            active_unmapped_employees=employees.active_unmapped_employees,
            unmapped_employees_preview=list(
                self._clockify.list_unmapped_employees(caller.tenant_id, limit=UNMAPPED_PREVIEW_LIMIT)
            ),
        )

    def _run(
        self,
        connection: ClockifyConnection,
        start: date,
        end: date,
        *,
        allow_closed_override: bool,
        now: datetime,
    ) -> SyncSummary:
        with self._client_factory(connection.api_key) as client:
            summary = self._reconciler.reconcile(
                connection,
                client,
                start,
                end,
                allow_closed_override=allow_closed_override,
                now=now,
            )
        self._clockify.touch_last_sync(connection.tenant_id, now)

        logger.info(
            "clockify sync tenant=%s range=%s..%s users=%s mapped=%s unmapped=%s processed=%s "
            "upserted=%s unchanged=%s skipped_closed=%s skipped_open=%s failed=%s users_failed=%s",
            connection.tenant_id, start, end, summary.users_found, summary.employees_mapped,
            summary.users_unmapped, summary.entries_processed, summary.entries_upserted,
            summary.entries_unchanged, summary.entries_skipped_closed, summary.entries_skipped_open,
            summary.entries_failed, summary.users_failed,
        )
        return summary

    def sync(
        self,
        *,
        caller: Caller,
        start: Optional[date] = None,
        end: Optional[date] = None,
        allow_closed_override: bool = False,
        now: Optional[datetime] = None,
    ) -> SyncSummary:
        caller.require_hr()
        if allow_closed_override and not caller.can_override_closure:
            raise AuthorizationError("only HR can sync into a closed period")

        connection = self._clockify.get_connection(caller.tenant_id)
        if connection is None:
            raise ProviderNotConfiguredError("clockify is not configured")

        now = now or utc_now()
        start, end = resolve_range(start, end, today=now.date(), default_days=DEFAULT_SYNC_RANGE_DAYS)
        logger.info("clockify sync requested tenant=%s by_user=%s override=%s", caller.tenant_id, caller.user_id, allow_closed_override)
        return self._run(connection, start, end, allow_closed_override=allow_closed_override, now=now)

    def run_auto_sync(self, *, lookback_days: int, now: Optional[datetime] = None) -> dict[int, SyncSummary]:
        """Sync every configured tenant over the last ``lookback_days`` days.

        A failing tenant is logged and skipped.
        """

        if lookback_days < 1:
            raise ValidationError("lookback_days must be >= 1")
        now = now or utc_now()
        end = now.date()
        start = end - timedelta(days=lookback_days)

        results: dict[int, SyncSummary] = {}
        for connection in self._clockify.list_connections():
            try:
                results[connection.tenant_id] = self._run(
                    connection,
                    start,
                    end,
                    allow_closed_override=False,
                    now=now,
                )
            except DomainError as exc:
                logger.warning("clockify auto-sync failed tenant=%s: %s", connection.tenant_id, exc)
            except Exception:
                logger.exception("clockify auto-sync crashed tenant=%s", connection.tenant_id)
        return results
