"""
Complaints Domain Layer
=======================

Domain layer for complaint handling.

Contains:
- Entities: Complaint, UserProfile, Technician, ActivityLogEntry, Notification
- Domain Services: AssignmentAdvisor (workload ranking and caseload cap)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from src.complaints.domain.entities import (
    Complaint,
    UserProfile,
    Technician,
    ActivityLogEntry,
    Notification,
    utcnow,
)
from src.complaints.domain.workload import AssignmentAdvisor, DEFAULT_MAX_LOAD

__all__ = [
    # Entities
    "Complaint",
    "UserProfile",
    "Technician",
    "ActivityLogEntry",
    "Notification",
    "utcnow",
    # Domain Services
    "AssignmentAdvisor",
    "DEFAULT_MAX_LOAD",
]
