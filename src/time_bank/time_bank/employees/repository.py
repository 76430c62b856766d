from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    """Read access to the employee directory.

    The directory is owned by the HR module; the ledger never writes to it.
    """

    def get_by_id(self, tenant_id: int, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_for_user(self, tenant_id: int, user_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def list_employed_in_range(
        self,
        tenant_id: int,
        start: date,
        end: date,
        *,
        employee_id: Optional[int] = None,
    ) -> Sequence[Employee]:
        """Employees hired on/before ``end`` and not terminated before ``start``, by name then id."""
        raise NotImplementedError

    def list_active(self, tenant_id: int) -> Sequence[Employee]:
        raise NotImplementedError
