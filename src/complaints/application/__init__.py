"""
Complaints Application Layer
============================

Application layer for complaint handling.

Contains:
- Services: Orchestrate business logic and coordinate with repositories
- Effects: Ordered side effects of state-changing operations
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from src.complaints.application.effects import (
    EffectChain,
    EffectReport,
    EffectOutcome,
)
from src.complaints.application.services import (
    ComplaintService,
    NotificationService,
    TeamService,
    ComplaintFilters,
    ComplaintOperationResult,
    WorkloadView,
    ActivityView,
    IComplaintRepository,
    IProfileRepository,
    IActivityLogRepository,
    INotificationRepository,
    IUnitOfWork,
)
from src.complaints.application.analytics import ComplaintAnalyticsService, DashboardAnalytics
from src.complaints.application.export import complaints_to_csv, activity_to_csv
from src.complaints.application.dto import (
    CreateComplaintRequest,
    AssignComplaintRequest,
    UpdateStatusRequest,
    RegisterMemberRequest,
    ComplaintResponse,
    ComplaintOperationResponse,
    TechnicianInfo,
    WorkloadResponse,
    ActivityEntryResponse,
    NotificationResponse,
    MarkAllReadResponse,
    MemberResponse,
    AnalyticsResponse,
)

__all__ = [
    # Effects
    "EffectChain",
    "EffectReport",
    "EffectOutcome",
    # Services
    "ComplaintService",
    "NotificationService",
    "TeamService",
    "ComplaintAnalyticsService",
    "ComplaintFilters",
    "ComplaintOperationResult",
    "WorkloadView",
    "ActivityView",
    "DashboardAnalytics",
    # Export
    "complaints_to_csv",
    "activity_to_csv",
    # Repository Interfaces
    "IComplaintRepository",
    "IProfileRepository",
    "IActivityLogRepository",
    "INotificationRepository",
    "IUnitOfWork",
    # DTOs
    "CreateComplaintRequest",
    "AssignComplaintRequest",
    "UpdateStatusRequest",
    "RegisterMemberRequest",
    "ComplaintResponse",
    "ComplaintOperationResponse",
    "TechnicianInfo",
    "WorkloadResponse",
    "ActivityEntryResponse",
    "NotificationResponse",
    "MarkAllReadResponse",
    "MemberResponse",
    "AnalyticsResponse",
]
