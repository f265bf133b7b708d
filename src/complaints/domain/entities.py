"""
Complaint Domain Entities
==========================

Pure Python domain entities for complaint handling.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns. Complaint is the
aggregate root; activity entries and notifications reference it but
outlive it.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from src.config import (
    ComplaintStatus, UserRole, NotificationType,
    VALID_PRIORITIES, VALID_STATUSES, VALID_ROLES, VALID_NOTIFICATION_TYPES,
    ACTIVE_STATUSES, STATUS_ORDER
)
from src.core import InvalidStatusTransitionException, ValidationException


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Complaint:
    """
    Complaint entity: one maintenance issue filed by a student.

    Invariant: resolved_at is set if and only if status is resolved.
    """

    # Core attributes
    id: Optional[str]  # None until persisted
    tenant_id: str
    title: str
    description: str
    category: str
    priority: str
    status: str

    # Timestamps
    created_at: datetime
    updated_at: datetime

    created_by: Optional[str] = None
    assigned_to: Optional[str] = None
    location: Optional[str] = None
    resolved_at: Optional[datetime] = None

    # Soft delete
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None

    # Display fields resolved from profiles, never persisted
    reporter_name: Optional[str] = None
    assignee_name: Optional[str] = None

    def __post_init__(self):
        """Validate complaint on initialization."""
        if self.priority not in VALID_PRIORITIES:
            raise ValueError(f"priority must be one of {VALID_PRIORITIES}")
        if self.status not in VALID_STATUSES:
            raise ValueError(f"status must be one of {VALID_STATUSES}")
        if (self.status == ComplaintStatus.RESOLVED) != (self.resolved_at is not None):
            raise ValueError("resolved_at must be set exactly when status is resolved")
        if self.is_deleted != (self.deleted_at is not None):
            raise ValueError("deleted_at must be set exactly when is_deleted is true")

    @property
    def is_active(self) -> bool:
        """Counts toward workload: open or in progress and not deleted."""
        return self.status in ACTIVE_STATUSES and not self.is_deleted

    @property
    def is_resolved(self) -> bool:
        return self.status == ComplaintStatus.RESOLVED

    def can_transition_to(self, new_status: str) -> bool:
        """Only forward moves along open -> in_progress -> resolved."""
        if new_status not in STATUS_ORDER:
            return False
        return STATUS_ORDER[new_status] > STATUS_ORDER[self.status]

    def transition_to(self, new_status: str, timestamp: Optional[datetime] = None) -> str:
        """
        Move the complaint forward.

        Returns:
            The previous status

        Raises:
            InvalidStatusTransitionException: Backward, repeated or unknown move
        """
        if not self.can_transition_to(new_status):
            raise InvalidStatusTransitionException(str(self.id), self.status, new_status)

        previous = self.status
        now = timestamp or utcnow()
        self.status = new_status
        self.updated_at = now
        if new_status == ComplaintStatus.RESOLVED:
            self.resolved_at = now
        return previous

    def assign(self, technician_id: str, timestamp: Optional[datetime] = None) -> None:
        """
        Hand the complaint to a technician and mark it in progress.

        Raises:
            ValidationException: Complaint is soft-deleted
            InvalidStatusTransitionException: Complaint is already resolved
        """
        if self.is_deleted:
            raise ValidationException(
                f"Complaint {self.id} is deleted and cannot be assigned",
                {"complaint_id": self.id}
            )
        if self.is_resolved:
            raise InvalidStatusTransitionException(
                str(self.id), self.status, ComplaintStatus.IN_PROGRESS
            )

        now = timestamp or utcnow()
        self.assigned_to = technician_id
        self.status = ComplaintStatus.IN_PROGRESS
        self.updated_at = now

    def soft_delete(self, timestamp: Optional[datetime] = None) -> None:
        if self.is_deleted:
            raise ValidationException(
                f"Complaint {self.id} is already deleted",
                {"complaint_id": self.id}
            )
        now = timestamp or utcnow()
        self.is_deleted = True
        self.deleted_at = now
        self.updated_at = now

    def restore(self, timestamp: Optional[datetime] = None) -> None:
        if not self.is_deleted:
            raise ValidationException(
                f"Complaint {self.id} is not deleted",
                {"complaint_id": self.id}
            )
        self.is_deleted = False
        self.deleted_at = None
        self.updated_at = timestamp or utcnow()


@dataclass
class UserProfile:
    """A campus user within one tenant."""

    id: Optional[str]
    tenant_id: str
    email: str
    role: str
    full_name: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if self.role not in VALID_ROLES:
            raise ValueError(f"role must be one of {VALID_ROLES}")

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    @property
    def is_technician(self) -> bool:
        return self.role == UserRole.TECHNICIAN


@dataclass
class Technician:
    """
    Technician with a derived workload.

    active_count is computed from a complaint snapshot and never stored.
    """

    id: str
    email: str
    full_name: Optional[str] = None
    active_count: int = 0

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    @classmethod
    def from_profile(cls, profile: UserProfile, active_count: int = 0) -> "Technician":
        return cls(
            id=str(profile.id),
            email=profile.email,
            full_name=profile.full_name,
            active_count=active_count
        )


@dataclass
class ActivityLogEntry:
    """Append-only record of a state change on a complaint."""

    tenant_id: str
    complaint_id: str
    action: str
    performed_by: Optional[str]
    details: Optional[str] = None
    id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    # Display field resolved from profiles
    performer_name: Optional[str] = None


@dataclass
class Notification:
    """Message for one user; only the read flag ever changes."""

    tenant_id: str
    user_id: str
    title: str
    message: str
    type: str = NotificationType.INFO
    complaint_id: Optional[str] = None
    is_read: bool = False
    id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if self.type not in VALID_NOTIFICATION_TYPES:
            raise ValueError(f"type must be one of {VALID_NOTIFICATION_TYPES}")

    def mark_read(self) -> None:
        self.is_read = True
