from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller roles used for authorization checks."""

    OWNER = "owner"
    ADMIN = "admin"
    HR = "hr"
    EMPLOYEE = "employee"


# Roles allowed to manage the time bank (settings, adjustments, closures, sync).
HR_ROLES = frozenset({Role.OWNER, Role.ADMIN, Role.HR})

# Roles allowed to write into a closed period without reopening it.
CLOSURE_OVERRIDE_ROLES = frozenset({Role.OWNER, Role.HR})


class EntrySource(str, Enum):
    """Where a time entry came from."""

    INTERNAL = "internal"
    CLOCKIFY = "clockify"


class UpsertOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class AdjustmentStatus(str, Enum):
    """Adjustment review states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AdjustmentAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class ClosureStatus(str, Enum):
    """Closure states. A reopened closure keeps its snapshot for audit."""

    CLOSED = "closed"
    REOPENED = "reopened"


class ClosureAction(str, Enum):
    REOPEN = "reopen"
