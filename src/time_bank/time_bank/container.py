from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Optional

from .adjustments.mysql_adjustment_repository import MySQLAdjustmentRepository
from .adjustments.repository import AdjustmentRepository
from .adjustments.service import AdjustmentService
from .balance.service import BalanceService
from .closures.mysql_closure_repository import MySQLClosureRepository
from .closures.repository import ClosureRepository
from .closures.service import ClosureService
from .common.locks import LedgerLocks
from .core.constants import (
    CLOCKIFY_BASE_URL,
    CLOCKIFY_MAX_ATTEMPTS,
    CLOCKIFY_TIMEOUT_SECONDS,
    DEFAULT_LOCK_TIMEOUT_SECONDS,
)
from .database.connection import DBConfig, DatabaseConnection
from .database.named_locks import MySQLLedgerLocks
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .entries.mysql_entry_repository import MySQLEntryRepository
from .entries.repository import EntryRepository
from .entries.service import EntryService
from .integrations.clockify.client import ClockifyClient
from .integrations.clockify.retry import RetryConfig
from .integrations.mysql_clockify_repository import MySQLClockifyRepository
from .integrations.reconciler import ClockifyReconciler
from .integrations.repository import ClockifyRepository
from .integrations.service import ClientFactory, ClockifyService
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository
from .settings.service import SettingsService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    locks: LedgerLocks

    employees_repo: EmployeeRepository
    entries_repo: EntryRepository
    settings_repo: SettingsRepository
    adjustments_repo: AdjustmentRepository
    closures_repo: ClosureRepository
    clockify_repo: ClockifyRepository

    entry_service: EntryService
    settings_service: SettingsService
    balance_service: BalanceService
    adjustment_service: AdjustmentService
    closure_service: ClosureService
    clockify_service: ClockifyService


def clockify_client_factory(
    *,
    base_url: str = CLOCKIFY_BASE_URL,
    timeout: float = CLOCKIFY_TIMEOUT_SECONDS,
    max_attempts: int = CLOCKIFY_MAX_ATTEMPTS,
) -> ClientFactory:
    return partial(
        ClockifyClient,
        base_url=base_url,
        timeout=float(timeout),
        retry_config=RetryConfig(max_attempts=int(max_attempts)),
    )


def wire_services(
    *,
    employees_repo: EmployeeRepository,
    entries_repo: EntryRepository,
    settings_repo: SettingsRepository,
    adjustments_repo: AdjustmentRepository,
    closures_repo: ClosureRepository,
    clockify_repo: ClockifyRepository,
    client_factory: ClientFactory,
    locks: Optional[LedgerLocks] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Assemble services over any repository implementations (MySQL or in-memory)."""

    locks = locks or LedgerLocks()

    entry_service = EntryService(entries_repo, employees_repo, closures_repo, locks)
    settings_service = SettingsService(settings_repo)
    balance_service = BalanceService(entries_repo, adjustments_repo, employees_repo, settings_service)
    adjustment_service = AdjustmentService(adjustments_repo, employees_repo, closures_repo, locks)
    closure_service = ClosureService(closures_repo, balance_service, locks)
    clockify_service = ClockifyService(
        clockify_repo,
        ClockifyReconciler(entry_service, employees_repo, clockify_repo),
        client_factory,
    )

    return Container(
        conn=conn,
        locks=locks,
        employees_repo=employees_repo,
        entries_repo=entries_repo,
        settings_repo=settings_repo,
        adjustments_repo=adjustments_repo,
        closures_repo=closures_repo,
        clockify_repo=clockify_repo,
        entry_service=entry_service,
        settings_service=settings_service,
        balance_service=balance_service,
        adjustment_service=adjustment_service,
        closure_service=closure_service,
        clockify_service=clockify_service,
    )


def build_container(
    *,
    db_config: dict,
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    clockify_base_url: str = CLOCKIFY_BASE_URL,
    clockify_timeout: float = CLOCKIFY_TIMEOUT_SECONDS,
    clockify_max_attempts: int = CLOCKIFY_MAX_ATTEMPTS,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return wire_services(
        employees_repo=MySQLEmployeeRepository(conn),
        entries_repo=MySQLEntryRepository(conn),
        settings_repo=MySQLSettingsRepository(conn),
        adjustments_repo=MySQLAdjustmentRepository(conn),
        closures_repo=MySQLClosureRepository(conn),
        clockify_repo=MySQLClockifyRepository(conn),
        client_factory=clockify_client_factory(
            base_url=clockify_base_url,
            timeout=clockify_timeout,
            max_attempts=clockify_max_attempts,
        ),
        locks=MySQLLedgerLocks(conn, timeout=lock_timeout),
        conn=conn,
    )
