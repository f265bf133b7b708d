"""
SLA Value Objects
==================

Immutable value objects for the SLA domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from src.config import Priority, ComplaintStatus


DEFAULT_DEADLINE_HOURS: Dict[str, int] = {
    Priority.CRITICAL: 24,
    Priority.HIGH: 24,
    Priority.MEDIUM: 72,
    Priority.LOW: 120,
}

_MS_PER_HOUR = 60 * 60 * 1000
_MS_PER_MINUTE = 60 * 1000


@dataclass(frozen=True)
class SLAStatus:
    """
    Result of evaluating one complaint against its deadline.

    `remaining` is None when the complaint is resolved or overdue.
    """
    overdue: bool
    remaining: Optional[timedelta]
    label: str
    deadline: Optional[datetime] = None

    @property
    def remaining_seconds(self) -> Optional[float]:
        if self.remaining is None:
            return None
        return self.remaining.total_seconds()

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "overdue": self.overdue,
            "remaining_seconds": self.remaining_seconds,
            "label": self.label,
            "deadline": self.deadline.isoformat() if self.deadline else None,
        }


class SLAPolicy(BaseModel):
    """
    Per-priority resolution deadlines, in hours.

    Missing priorities are filled from DEFAULT_DEADLINE_HOURS so a policy
    always covers every priority.
    """
    deadline_hours: Dict[str, int] = Field(
        default_factory=dict,
        validate_default=True,
        description="Resolution deadline in hours by priority"
    )

    model_config = {"frozen": True}

    @field_validator("deadline_hours")
    @classmethod
    def validate_deadline_hours(cls, v: Dict[str, int]) -> Dict[str, int]:
        """Fill missing priorities and reject non-positive deadlines."""
        hours = dict(DEFAULT_DEADLINE_HOURS)
        hours.update(v)
        for priority, value in hours.items():
            if value < 1:
                raise ValueError(f"deadline for '{priority}' must be at least 1 hour")
        return hours

    def hours_for(self, priority: str) -> int:
        """Deadline hours for a priority; unmapped priorities use medium."""
        return self.deadline_hours.get(priority, self.deadline_hours[Priority.MEDIUM])

    def overlay(self, overrides: Dict[str, Optional[int]]) -> "SLAPolicy":
        """Return a new policy with non-null overrides applied on top."""
        hours = dict(self.deadline_hours)
        hours.update({k: v for k, v in overrides.items() if v is not None})
        return SLAPolicy(deadline_hours=hours)

    @classmethod
    def from_hours(
        cls,
        critical: int = DEFAULT_DEADLINE_HOURS[Priority.CRITICAL],
        high: int = DEFAULT_DEADLINE_HOURS[Priority.HIGH],
        medium: int = DEFAULT_DEADLINE_HOURS[Priority.MEDIUM],
        low: int = DEFAULT_DEADLINE_HOURS[Priority.LOW],
    ) -> "SLAPolicy":
        return cls(deadline_hours={
            Priority.CRITICAL: critical,
            Priority.HIGH: high,
            Priority.MEDIUM: medium,
            Priority.LOW: low,
        })


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class - all SLA calculation logic in one place.
    Nothing here is cached: the result depends on the current time.
    """

    @staticmethod
    def calculate_deadline(
        created_at: datetime,
        priority: str,
        policy: SLAPolicy
    ) -> datetime:
        """
        Calculate the resolution deadline for a complaint.

        Args:
            created_at: When the complaint was filed
            priority: Complaint priority
            policy: Deadline table to apply

        Returns:
            The SLA deadline
        """
        return _as_utc(created_at) + timedelta(hours=policy.hours_for(priority))

    @staticmethod
    def evaluate(
        created_at: datetime,
        priority: str,
        status: str,
        policy: SLAPolicy,
        now: Optional[datetime] = None
    ) -> SLAStatus:
        """
        Evaluate a complaint against its deadline.

        Resolved complaints are never overdue, however long they took.

        Args:
            created_at: When the complaint was filed
            priority: Complaint priority
            status: Current complaint status
            policy: Deadline table to apply
            now: Evaluation time (defaults to current UTC time)

        Returns:
            SLAStatus with overdue flag, remaining time and display label
        """
        if status == ComplaintStatus.RESOLVED:
            return SLAStatus(overdue=False, remaining=None, label="Resolved")

        deadline = SLACalculator.calculate_deadline(created_at, priority, policy)
        current_time = _as_utc(now) if now else datetime.now(timezone.utc)
        diff = deadline - current_time

        if diff <= timedelta(0):
            return SLAStatus(overdue=True, remaining=None, label="Overdue", deadline=deadline)

        return SLAStatus(
            overdue=False,
            remaining=diff,
            label=SLACalculator.format_remaining(diff),
            deadline=deadline
        )

    @staticmethod
    def format_remaining(diff: timedelta) -> str:
        """
        Render a positive remaining duration.

        Example:
            90h 10m -> "3d 18h left"
            5h 59m 59s -> "5h 59m left"
        """
        total_ms = diff // timedelta(milliseconds=1)
        hours = total_ms // _MS_PER_HOUR
        minutes = (total_ms % _MS_PER_HOUR) // _MS_PER_MINUTE

        if hours >= 24:
            return f"{hours // 24}d {hours % 24}h left"
        return f"{hours}h {minutes}m left"


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps from the store are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
