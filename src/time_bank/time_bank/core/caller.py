from __future__ import annotations

from dataclasses import dataclass

from .enums import CLOSURE_OVERRIDE_ROLES, HR_ROLES, Role
from .exceptions import AuthorizationError


@dataclass(frozen=True)
class Caller:
    """Authenticated principal of a request, resolved upstream."""

    tenant_id: int
    user_id: int
    role: Role

    @property
    def is_hr(self) -> bool:
        return self.role in HR_ROLES

    @property
    def can_override_closure(self) -> bool:
        return self.role in CLOSURE_OVERRIDE_ROLES

    def require_hr(self) -> None:
        if not self.is_hr:
            raise AuthorizationError("HR role required")
