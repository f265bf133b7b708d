"""
Complaints Infrastructure Layer
===============================

Infrastructure layer for complaint handling.

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Concrete repository implementations and the unit of work

This layer implements interfaces defined in the application layer.
"""

from src.complaints.infrastructure.models import (
    ComplaintModel,
    ProfileModel,
    ActivityLogModel,
    NotificationModel,
)
from src.complaints.infrastructure.repositories import (
    SQLAlchemyComplaintRepository,
    SQLAlchemyProfileRepository,
    SQLAlchemyActivityLogRepository,
    SQLAlchemyNotificationRepository,
    SQLAlchemyUnitOfWork,
)

__all__ = [
    # Models
    "ComplaintModel",
    "ProfileModel",
    "ActivityLogModel",
    "NotificationModel",
    # Repositories
    "SQLAlchemyComplaintRepository",
    "SQLAlchemyProfileRepository",
    "SQLAlchemyActivityLogRepository",
    "SQLAlchemyNotificationRepository",
    "SQLAlchemyUnitOfWork",
]
