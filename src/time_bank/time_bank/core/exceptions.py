from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is a stable identifier for API clients, ``status`` the HTTP status
    the controllers answer with.
    """

    code = "domain_error"
    status = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation_error"


class InvalidRangeError(ValidationError):
    code = "invalid_range"


class InvalidDeltaError(ValidationError):
    code = "invalid_delta"


class InvalidIntervalError(ValidationError):
    code = "invalid_interval"


class AuthenticationError(DomainError):
    """Raised when the caller identity is missing."""

    code = "unauthenticated"
    status = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "forbidden"
    status = 403


class NotFoundError(DomainError):
    code = "not_found"
    status = 404


class ConflictError(DomainError):
    """State conflicts. The caller may retry once the conflict is resolved."""

    code = "conflict"
    status = 409


class AlreadyOpenError(ConflictError):
    code = "already_open"


class NoOpenEntryError(ConflictError):
    code = "no_open_entry"


class AlreadyReviewedError(ConflictError):
    code = "already_reviewed"


class NotClosedError(ConflictError):
    code = "not_closed"


class PeriodClosedError(ConflictError):
    code = "period_closed"


class LedgerBusyError(ConflictError):
    """A ledger lock could not be acquired in time."""

    code = "ledger_busy"


class ProviderError(DomainError):
    """Base class for failures talking to the external time-tracking provider."""

    code = "provider_error"
    status = 502

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderNotConfiguredError(ProviderError):
    code = "provider_not_configured"
    status = 400


class ProviderRejectedError(ProviderError):
    """Invalid credentials or unknown workspace."""

    code = "provider_rejected"
    status = 400


class ProviderRateLimitedError(ProviderError):
    code = "provider_rate_limited"
    status = 429


class ProviderUnavailableError(ProviderError):
    """Network failure, timeout or 5xx after retries. Safe to retry later."""

    code = "provider_unavailable"
    status = 502
