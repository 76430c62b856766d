from __future__ import annotations

from typing import Optional, Protocol

from .model import PeriodSettings


class SettingsRepository(Protocol):
    def get(self, tenant_id: int) -> Optional[PeriodSettings]:
        raise NotImplementedError

    def save(self, settings: PeriodSettings) -> None:
        """Insert or overwrite the tenant's settings row."""
        raise NotImplementedError
