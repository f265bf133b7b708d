"""
SLA Application DTOs
=====================

Data Transfer Objects for the SLA API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional, Literal
from datetime import datetime

from src.sla.domain import SLAStatus, TenantSettings


# ========== Type Aliases for Literals ==========
PriorityStr = Literal["critical", "high", "medium", "low"]
ComplaintStatusStr = Literal["open", "in_progress", "resolved"]


# ========== Request DTOs ==========

class TenantSettingsUpdateDTO(BaseModel):
    """Request model for saving tenant SLA settings."""
    sla_critical_hours: int = Field(default=24, ge=1, description="Deadline for critical complaints")
    sla_high_hours: int = Field(default=24, ge=1, description="Deadline for high complaints")
    sla_medium_hours: int = Field(default=72, ge=1, description="Deadline for medium complaints")
    sla_low_hours: int = Field(default=120, ge=1, description="Deadline for low complaints")
    categories: List[str] = Field(default_factory=list, description="Allowed complaint categories")

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, v: List[str]) -> List[str]:
        """Reject blank category names."""
        if any(not name.strip() for name in v):
            raise ValueError("category names cannot be blank")
        return v


# ========== Response DTOs ==========

class SLAStatusResponse(BaseModel):
    """Response model for the SLA state of a complaint."""
    overdue: bool = Field(..., description="Whether the deadline has passed")
    remaining_seconds: Optional[float] = Field(None, description="Time left (null when resolved or overdue)")
    label: str = Field(..., description="Display label, e.g. '3d 18h left'")
    deadline: Optional[datetime] = Field(None, description="Resolution deadline")

    @classmethod
    def from_domain(cls, status: SLAStatus) -> "SLAStatusResponse":
        return cls(
            overdue=status.overdue,
            remaining_seconds=status.remaining_seconds,
            label=status.label,
            deadline=status.deadline
        )


class ComplaintSLAResponse(BaseModel):
    """Response model for the SLA view of a single complaint."""
    complaint_id: str
    priority: PriorityStr
    status: ComplaintStatusStr
    created_at: datetime
    deadline_hours: int = Field(..., description="Hours allowed for this priority")
    sla: SLAStatusResponse


class TenantSettingsResponse(BaseModel):
    """Response model for tenant SLA settings."""
    tenant_id: str
    deadline_hours: Dict[str, int] = Field(..., description="Resolution deadline in hours by priority")
    categories: List[str] = Field(default_factory=list)
    is_default: bool = Field(..., description="True when the tenant has not saved settings yet")
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, tenant_settings: TenantSettings, is_default: bool = False) -> "TenantSettingsResponse":
        return cls(
            tenant_id=tenant_settings.tenant_id,
            deadline_hours={
                "critical": tenant_settings.sla_critical_hours,
                "high": tenant_settings.sla_high_hours,
                "medium": tenant_settings.sla_medium_hours,
                "low": tenant_settings.sla_low_hours,
            },
            categories=tenant_settings.categories,
            is_default=is_default,
            updated_at=tenant_settings.updated_at
        )
