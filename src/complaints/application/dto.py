"""
Complaint Application DTOs
===========================

Data Transfer Objects for the complaint API layer.

Pydantic models for request/response validation.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional, Literal
from datetime import datetime

from src.complaints.domain import Complaint, Technician, ActivityLogEntry, Notification, UserProfile
from src.complaints.application.effects import EffectReport
from src.sla.application import SLAStatusResponse


# ========== Type Aliases for Literals ==========
PriorityStr = Literal["critical", "high", "medium", "low"]
ComplaintStatusStr = Literal["open", "in_progress", "resolved"]
RoleStr = Literal["admin", "student", "technician", "supervisor"]


# ========== Request DTOs ==========

class CreateComplaintRequest(BaseModel):
    """Request model for filing a complaint."""
    title: str = Field(..., min_length=1, max_length=200, description="Short summary")
    description: str = Field(..., min_length=1, description="What is wrong")
    category: str = Field(..., min_length=1, description="Tenant category, e.g. 'plumbing'")
    priority: PriorityStr = Field(default="medium")
    location: Optional[str] = Field(None, description="Building / room")

    @field_validator("description")
    @classmethod
    def validate_description_length(cls, v: str) -> str:
        if len(v) > 5000:
            raise ValueError("Description too long (max 5000 characters)")
        return v


class AssignComplaintRequest(BaseModel):
    """Request model for assigning a complaint."""
    technician_id: str = Field(..., min_length=1, description="Profile ID of the technician")


class UpdateStatusRequest(BaseModel):
    """Request model for a status change."""
    status: ComplaintStatusStr


class RegisterMemberRequest(BaseModel):
    """Request model for adding a user to the tenant."""
    email: str = Field(..., min_length=3)
    role: RoleStr
    full_name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


# ========== Response DTOs ==========

class EffectOutcomeInfo(BaseModel):
    step: str
    succeeded: bool
    error: Optional[str] = None


class ComplaintResponse(BaseModel):
    """Response model for a complaint."""
    id: str
    tenant_id: str
    title: str
    description: str
    category: str
    priority: PriorityStr
    status: ComplaintStatusStr
    location: Optional[str] = None
    created_by: Optional[str] = None
    assigned_to: Optional[str] = None
    reporter_name: Optional[str] = None
    assignee_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    sla: Optional[SLAStatusResponse] = None

    @classmethod
    def from_domain(cls, complaint: Complaint, sla: Optional[SLAStatusResponse] = None) -> "ComplaintResponse":
        return cls(
            id=str(complaint.id),
            tenant_id=complaint.tenant_id,
            title=complaint.title,
            description=complaint.description,
            category=complaint.category,
            priority=complaint.priority,
            status=complaint.status,
            location=complaint.location,
            created_by=complaint.created_by,
            assigned_to=complaint.assigned_to,
            reporter_name=complaint.reporter_name,
            assignee_name=complaint.assignee_name,
            created_at=complaint.created_at,
            updated_at=complaint.updated_at,
            resolved_at=complaint.resolved_at,
            is_deleted=complaint.is_deleted,
            deleted_at=complaint.deleted_at,
            sla=sla
        )


class ComplaintOperationResponse(BaseModel):
    """Response model for a state change, with side effect outcomes."""
    complaint: ComplaintResponse
    side_effects: List[EffectOutcomeInfo] = Field(default_factory=list)
    failed_side_effects: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, complaint: Complaint, report: EffectReport) -> "ComplaintOperationResponse":
        return cls(
            complaint=ComplaintResponse.from_domain(complaint),
            side_effects=[EffectOutcomeInfo(**o.to_dict()) for o in report.outcomes],
            failed_side_effects=report.failed_steps
        )


class TechnicianInfo(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    display_name: str
    active_count: int
    at_capacity: bool

    @classmethod
    def from_domain(cls, technician: Technician, max_load: int) -> "TechnicianInfo":
        return cls(
            id=technician.id,
            email=technician.email,
            full_name=technician.full_name,
            display_name=technician.display_name,
            active_count=technician.active_count,
            at_capacity=technician.active_count >= max_load
        )


class WorkloadResponse(BaseModel):
    """Response model for the ranked technician roster."""
    technicians: List[TechnicianInfo]
    suggested_technician_id: Optional[str] = Field(None, description="Least-loaded technician below the cap")
    max_load: int


class ActivityEntryResponse(BaseModel):
    id: Optional[str] = None
    complaint_id: str
    action: str
    details: Optional[str] = None
    performed_by: Optional[str] = None
    performer_name: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, entry: ActivityLogEntry) -> "ActivityEntryResponse":
        return cls(
            id=entry.id,
            complaint_id=entry.complaint_id,
            action=entry.action,
            details=entry.details,
            performed_by=entry.performed_by,
            performer_name=entry.performer_name,
            created_at=entry.created_at
        )


class NotificationResponse(BaseModel):
    id: str
    title: str
    message: str
    type: str
    complaint_id: Optional[str] = None
    is_read: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, notification: Notification) -> "NotificationResponse":
        return cls(
            id=str(notification.id),
            title=notification.title,
            message=notification.message,
            type=notification.type,
            complaint_id=notification.complaint_id,
            is_read=notification.is_read,
            created_at=notification.created_at
        )


class MarkAllReadResponse(BaseModel):
    updated: int


class MemberResponse(BaseModel):
    id: str
    email: str
    role: RoleStr
    full_name: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, profile: UserProfile) -> "MemberResponse":
        return cls(
            id=str(profile.id),
            email=profile.email,
            role=profile.role,
            full_name=profile.full_name,
            created_at=profile.created_at
        )


class AnalyticsResponse(BaseModel):
    """Response model for the admin dashboard."""
    total: int
    status_counts: Dict[str, int]
    sla_compliance_percent: int
    avg_resolution_hours: int
    monthly_trend: List[Dict[str, object]]
    top_categories: List[Dict[str, object]]
    technician_workload: List[TechnicianInfo]
