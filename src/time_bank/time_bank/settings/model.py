from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_TARGET_DAILY_MINUTES


@dataclass(frozen=True)
class PeriodSettings:
    """Per-tenant time bank configuration. Missing rows mean the defaults."""

    tenant_id: int
    target_daily_minutes: int = DEFAULT_TARGET_DAILY_MINUTES
    include_saturday: bool = False
    updated_at: Optional[datetime] = None
    updated_by: Optional[int] = None
