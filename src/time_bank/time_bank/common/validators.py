from __future__ import annotations

from typing import Optional

from ..core.constants import MAX_TEXT_LENGTH
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_positive_id(value, field_name: str) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be numeric")
    if parsed <= 0:
        raise ValidationError(f"invalid {field_name}")
    return parsed


def normalize_optional_text(value: Optional[str], *, max_length: int = MAX_TEXT_LENGTH) -> Optional[str]:
    """Trim, turn blanks into None and cut to ``max_length`` characters."""
    if value is None:
        return None
    trimmed = str(value).strip()
    if not trimmed:
        return None
    return trimmed[:max_length]


def clamp_limit(raw: Optional[str], *, default: int, maximum: int) -> int:
    if raw is None or not str(raw).strip():
        return default
    try:
        parsed = int(str(raw).strip())
    except ValueError:
        raise ValidationError("limit must be numeric")
    if parsed <= 0:
        raise ValidationError("limit must be numeric")
    return min(parsed, maximum)
