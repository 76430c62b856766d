"""
Pydantic models for the subset of the Clockify API the sync reads.
"""
from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

_ISO_DURATION = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$")


class ClockifyUser(BaseModel):
    """Workspace member."""
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    email: Optional[str] = None
    name: Optional[str] = None
    status: Optional[str] = None


class TimeInterval(BaseModel):
    """Time interval for time entries."""
    model_config = ConfigDict(extra="ignore")

    start: Optional[str] = None  # ISO 8601
    end: Optional[str] = None  # ISO 8601, null if timer is running
    duration: Optional[str] = None  # ISO 8601 duration


class ClockifyTimeEntry(BaseModel):
    """Time entry as returned by the user time-entries endpoint."""
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    description: Optional[str] = None
    userId: Optional[str] = None
    projectId: Optional[str] = None
    taskId: Optional[str] = None
    billable: bool = False
    tagIds: Optional[List[str]] = None
    timeInterval: TimeInterval = Field(default_factory=TimeInterval)


def parse_iso_duration_seconds(raw: Optional[str]) -> int:
    """Seconds in a ``PT#H#M#S`` duration; 0 for anything else."""
    match = _ISO_DURATION.match((raw or "").strip())
    if not match:
        return 0
    hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def mask_secret(value: Optional[str]) -> str:
    """Keep the first and last four characters of a secret."""
    if not value:
        return ""
    if len(value) <= 8:
        return "*" * len(value)
    return value[:4] + "*" * (len(value) - 8) + value[-4:]
