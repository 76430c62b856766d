from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, from_db_datetime, to_db_datetime
from .model import PeriodSettings
from .repository import SettingsRepository


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, tenant_id: int) -> Optional[PeriodSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT tenant_id, target_daily_minutes, include_saturday, updated_at, updated_by
                FROM time_bank_settings
                WHERE tenant_id=%s
                """,
                (tenant_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return PeriodSettings(
                tenant_id=int(row["tenant_id"]),
                target_daily_minutes=int(row["target_daily_minutes"]),
                include_saturday=bool(row["include_saturday"]),
                updated_at=from_db_datetime(row.get("updated_at")),
                updated_by=int(row["updated_by"]) if row.get("updated_by") is not None else None,
            )

    def save(self, settings: PeriodSettings) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_bank_settings(tenant_id, target_daily_minutes, include_saturday, updated_at, updated_by)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    target_daily_minutes=VALUES(target_daily_minutes),
                    include_saturday=VALUES(include_saturday),
                    updated_at=VALUES(updated_at),
                    updated_by=VALUES(updated_by)
                """,
                (
                    settings.tenant_id,
                    settings.target_daily_minutes,
                    1 if settings.include_saturday else 0,
                    to_db_datetime(settings.updated_at),
                    settings.updated_by,
                ),
            )
