"""
SLA Controllers (API Routes)
=============================

FastAPI routes for tenant SLA policy and per-complaint SLA state.

Controllers are thin - they delegate to application services.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from src.sla.application import (
    SLAService,
    TenantSettingsUpdateDTO,
    TenantSettingsResponse,
    ComplaintSLAResponse,
    SLAStatusResponse,
)
from src.sla.interfaces.dependencies import get_sla_service
from src.complaints.application import ComplaintService
from src.complaints.interfaces.dependencies import get_complaint_service
from src.core import RequestContext
from src.shared.api.context import get_request_context
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/sla", tags=["SLA"])


# ========== Example payloads for Swagger ==========

POLICY_RESPONSE_EXAMPLE = {
    "tenant_id": "campus-north",
    "deadline_hours": {"critical": 24, "high": 24, "medium": 72, "low": 120},
    "categories": ["electrical", "plumbing", "hvac"],
    "is_default": False,
    "updated_at": "2024-03-01T09:00:00Z"
}

COMPLAINT_SLA_RESPONSE_EXAMPLE = {
    "complaint_id": "3f2b6a4e-8d1c-4f7a-9a51-2c3e5b7d9f10",
    "priority": "low",
    "status": "open",
    "created_at": "2024-03-01T09:00:00Z",
    "deadline_hours": 120,
    "sla": {
        "overdue": False,
        "remaining_seconds": 324000.0,
        "label": "3d 18h left",
        "deadline": "2024-03-06T09:00:00Z"
    }
}


# ========== Route Handlers ==========

@router.get(
    "/policy",
    response_model=TenantSettingsResponse,
    summary="Get the tenant's SLA policy",
    description="""
    Resolution deadlines per priority and the tenant's complaint categories.

    `is_default` is true when the tenant has not saved its own settings; the
    values then come from the policy file or environment defaults.
    """,
    responses={200: {"content": {"application/json": {"example": POLICY_RESPONSE_EXAMPLE}}}}
)
async def get_policy(
    ctx: RequestContext = Depends(get_request_context),
    service: SLAService = Depends(get_sla_service)
):
    tenant_settings, is_default = await service.get_tenant_settings(ctx)
    return TenantSettingsResponse.from_domain(tenant_settings, is_default)


@router.put(
    "/policy",
    response_model=TenantSettingsResponse,
    summary="Save the tenant's SLA policy",
    description="Upsert deadline hours (each at least 1) and categories. Admins only."
)
async def update_policy(
    request: TenantSettingsUpdateDTO,
    ctx: RequestContext = Depends(get_request_context),
    service: SLAService = Depends(get_sla_service)
):
    saved = await service.update_tenant_settings(
        ctx,
        sla_critical_hours=request.sla_critical_hours,
        sla_high_hours=request.sla_high_hours,
        sla_medium_hours=request.sla_medium_hours,
        sla_low_hours=request.sla_low_hours,
        categories=request.categories
    )
    logger.info("Tenant SLA policy updated", extra={"tenant_id": ctx.tenant_id})
    return TenantSettingsResponse.from_domain(saved, is_default=False)


@router.get(
    "/complaints/{complaint_id}",
    response_model=ComplaintSLAResponse,
    summary="Get a complaint's SLA state",
    description="Evaluated at request time; a resolved complaint is never overdue.",
    responses={
        200: {"content": {"application/json": {"example": COMPLAINT_SLA_RESPONSE_EXAMPLE}}},
        404: {"description": "Complaint not found or not visible to the caller"}
    }
)
async def get_complaint_sla(
    complaint_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: SLAService = Depends(get_sla_service),
    complaint_service: ComplaintService = Depends(get_complaint_service)
):
    complaint = await complaint_service.get_complaint(ctx, complaint_id)
    policy = await service.get_policy(ctx.tenant_id)
    evaluation = SLAService.evaluate(complaint, policy, datetime.now(timezone.utc))

    return ComplaintSLAResponse(
        complaint_id=str(complaint.id),
        priority=complaint.priority,
        status=complaint.status,
        created_at=complaint.created_at,
        deadline_hours=policy.hours_for(complaint.priority),
        sla=SLAStatusResponse.from_domain(evaluation)
    )
