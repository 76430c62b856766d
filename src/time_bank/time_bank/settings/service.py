from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import utc_now
from ..core.caller import Caller
from ..core.constants import MAX_TARGET_DAILY_MINUTES
from ..core.exceptions import ValidationError
from .model import PeriodSettings
from .repository import SettingsRepository

logger = logging.getLogger(__name__)


class SettingsService:
    def __init__(self, settings: SettingsRepository):
        self._settings = settings

    def load(self, tenant_id: int) -> PeriodSettings:
        """Stored settings, or the defaults when the tenant never saved any."""
        return self._settings.get(tenant_id) or PeriodSettings(tenant_id=tenant_id)

    def get(self, *, caller: Caller) -> PeriodSettings:
        caller.require_hr()
        return self.load(caller.tenant_id)

    def update(
        self,
        *,
        caller: Caller,
        target_daily_minutes: Optional[int] = None,
        include_saturday: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> PeriodSettings:
        caller.require_hr()
        current = self.load(caller.tenant_id)

        next_settings = current
        if target_daily_minutes is not None:
            if isinstance(target_daily_minutes, bool) or not isinstance(target_daily_minutes, int):
                raise ValidationError("target_daily_minutes must be an integer")
            if target_daily_minutes < 1 or target_daily_minutes > MAX_TARGET_DAILY_MINUTES:
                raise ValidationError(f"target_daily_minutes must be between 1 and {MAX_TARGET_DAILY_MINUTES}")
            next_settings = replace(next_settings, target_daily_minutes=target_daily_minutes)
        if include_saturday is not None:
            next_settings = replace(next_settings, include_saturday=bool(include_saturday))

        next_settings = replace(next_settings, updated_at=now or utc_now(), updated_by=caller.user_id)
        self._settings.save(next_settings)

        logger.info(
            "time bank settings updated tenant=%s by_user=%s target_daily_minutes=%s include_saturday=%s",
            caller.tenant_id, caller.user_id, next_settings.target_daily_minutes, next_settings.include_saturday,
        )
        return next_settings
