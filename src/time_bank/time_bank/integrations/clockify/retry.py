from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import FrozenSet, Optional

from ...core.constants import CLOCKIFY_MAX_ATTEMPTS, CLOCKIFY_RETRY_BASE_DELAY, CLOCKIFY_RETRY_MAX_DELAY


@dataclass
class RetryConfig:
    max_attempts: int = CLOCKIFY_MAX_ATTEMPTS
    base_delay: float = CLOCKIFY_RETRY_BASE_DELAY
    max_delay: float = CLOCKIFY_RETRY_MAX_DELAY
    exponential_base: float = 2.0
    retryable_status_codes: FrozenSet[int] = field(default_factory=lambda: frozenset({429}))

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            self.max_attempts = 1

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code in self.retryable_status_codes or status_code >= 500

    def calculate_delay(self, attempt: int, retry_after: Optional[str] = None) -> float:
        # attempt is 1-based; Retry-After wins over the backoff but is still capped
        hinted = parse_retry_after(retry_after)
        if hinted > 0:
            return min(hinted, self.max_delay) if self.max_delay > 0 else hinted

        delay = self.base_delay * (self.exponential_base ** (attempt - 1))
        if self.max_delay > 0:
            delay = min(delay, self.max_delay)
        return max(delay, 0.0)


def parse_retry_after(raw: Optional[str], *, now: Optional[datetime] = None) -> float:
    """Seconds from a Retry-After header (delta-seconds or HTTP date); 0 if absent or past."""
    value = (raw or "").strip()
    if not value:
        return 0.0
    if value.isdigit():
        return float(int(value))
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return 0.0
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    delta = (when - (now or datetime.now(timezone.utc))).total_seconds()
    return delta if delta > 0 else 0.0
