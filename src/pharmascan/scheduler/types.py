"""Type definitions for the scheduler module."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


class SchedulerError(Exception):
    """Base exception for scheduler-related errors."""

    pass


@dataclass
class CycleStats:
    """Counters for one pass over every target and product."""

    targets: int = 0
    scans: int = 0
    errors: int = 0
    posted: int = 0
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
