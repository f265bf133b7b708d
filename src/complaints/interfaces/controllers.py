"""
Complaint Controllers (API Routes)
===================================

FastAPI routes for complaints, notifications and the team roster.

Controllers are thin - they delegate to application services.
"""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from src.complaints.application import (
    ComplaintService,
    ComplaintAnalyticsService,
    NotificationService,
    TeamService,
    ComplaintFilters,
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
    complaints_to_csv,
    activity_to_csv,
)
from src.complaints.interfaces.dependencies import (
    get_complaint_service,
    get_analytics_service,
    get_notification_service,
    get_team_service,
)
from src.sla.application import SLAService, SLAStatusResponse
from src.sla.interfaces.dependencies import get_sla_service
from src.core import RequestContext
from src.shared.api.context import get_request_context
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/complaints", tags=["Complaints"])
notifications_router = APIRouter(prefix="/notifications", tags=["Notifications"])
team_router = APIRouter(prefix="/team", tags=["Team"])


# ========== Example payloads for Swagger ==========

COMPLAINT_CREATE_EXAMPLE = {
    "title": "Leaking tap in Block C washroom",
    "description": "The tap on the second floor washroom has been leaking for two days.",
    "category": "plumbing",
    "priority": "high",
    "location": "Block C, 2nd floor"
}

COMPLAINT_RESPONSE_EXAMPLE = {
    "id": "3f2b6a4e-8d1c-4f7a-9a51-2c3e5b7d9f10",
    "tenant_id": "campus-north",
    "title": "Leaking tap in Block C washroom",
    "description": "The tap on the second floor washroom has been leaking for two days.",
    "category": "plumbing",
    "priority": "high",
    "status": "in_progress",
    "location": "Block C, 2nd floor",
    "created_by": "9a0c1f7e-2b3d-4e5f-8a9b-0c1d2e3f4a5b",
    "assigned_to": "1b2c3d4e-5f6a-4b8c-9d0e-1f2a3b4c5d6e",
    "reporter_name": "Asha Rao",
    "assignee_name": "Ravi Kumar",
    "created_at": "2024-03-01T09:00:00Z",
    "updated_at": "2024-03-01T10:15:00Z",
    "resolved_at": None,
    "is_deleted": False,
    "deleted_at": None,
    "sla": {"overdue": False, "remaining_seconds": 78300.0, "label": "21h 45m left", "deadline": "2024-03-02T09:00:00Z"}
}

WORKLOAD_RESPONSE_EXAMPLE = {
    "technicians": [
        {"id": "t-a", "email": "a@campus.edu", "full_name": "Technician A", "display_name": "Technician A",
         "active_count": 3, "at_capacity": False},
        {"id": "t-b", "email": "b@campus.edu", "full_name": "Technician B", "display_name": "Technician B",
         "active_count": 7, "at_capacity": False}
    ],
    "suggested_technician_id": "t-a",
    "max_load": 10
}


# ========== Helpers ==========

async def _with_sla(
    ctx: RequestContext,
    complaints: list,
    sla_service: SLAService
) -> List[ComplaintResponse]:
    policy = await sla_service.get_policy(ctx.tenant_id)
    now = datetime.now(timezone.utc)
    return [
        ComplaintResponse.from_domain(
            c, SLAStatusResponse.from_domain(SLAService.evaluate(c, policy, now))
        )
        for c in complaints
    ]


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


# ========== Collection Routes ==========

@router.post(
    "",
    response_model=ComplaintOperationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="File a complaint",
    description="""
    File a new maintenance complaint. Students only.

    The category is lower-cased and must be one of the tenant's categories
    when the tenant has configured any. Admins are notified.
    """,
    openapi_extra={"requestBody": {"content": {"application/json": {"example": COMPLAINT_CREATE_EXAMPLE}}}}
)
async def create_complaint(
    request: CreateComplaintRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: ComplaintService = Depends(get_complaint_service)
):
    result = await service.create_complaint(
        ctx,
        title=request.title,
        description=request.description,
        category=request.category,
        priority=request.priority,
        location=request.location
    )
    return ComplaintOperationResponse.from_result(result.complaint, result.effects)


@router.get(
    "",
    response_model=List[ComplaintResponse],
    summary="List complaints",
    description="""
    Complaints visible to the caller, newest first, each with its live SLA state.

    - Students: their own complaints
    - Technicians: complaints assigned to them
    - Admins / supervisors: the whole tenant
    """
)
async def list_complaints(
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Matches title or description"),
    include_deleted: bool = Query(False, description="Admins only"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: RequestContext = Depends(get_request_context),
    service: ComplaintService = Depends(get_complaint_service),
    sla_service: SLAService = Depends(get_sla_service)
):
    filters = ComplaintFilters(
        status=status_filter,
        priority=priority,
        category=category,
        search=search,
        include_deleted=include_deleted,
        limit=limit,
        offset=offset
    )
    complaints = await service.list_complaints(ctx, filters)
    return await _with_sla(ctx, complaints, sla_service)


@router.get(
    "/workload",
    response_model=WorkloadResponse,
    summary="Technician workload",
    description="Technicians ranked by active complaints (least loaded first) and the suggested assignee.",
    responses={200: {"content": {"application/json": {"example": WORKLOAD_RESPONSE_EXAMPLE}}}}
)
async def get_workload(
    ctx: RequestContext = Depends(get_request_context),
    service: ComplaintService = Depends(get_complaint_service)
):
    view = await service.get_workload(ctx)
    return WorkloadResponse(
        technicians=[TechnicianInfo.from_domain(t, view.max_load) for t in view.technicians],
        suggested_technician_id=view.suggested.id if view.suggested else None,
        max_load=view.max_load
    )


@router.get("/analytics", response_model=AnalyticsResponse, summary="Dashboard analytics")
async def get_analytics(
    ctx: RequestContext = Depends(get_request_context),
    service: ComplaintAnalyticsService = Depends(get_analytics_service),
    complaint_service: ComplaintService = Depends(get_complaint_service)
):
    dashboard = await service.get_dashboard(ctx)
    return AnalyticsResponse(
        total=dashboard.total,
        status_counts=dashboard.status_counts,
        sla_compliance_percent=dashboard.sla_compliance_percent,
        avg_resolution_hours=dashboard.avg_resolution_hours,
        monthly_trend=dashboard.monthly_trend,
        top_categories=dashboard.top_categories,
        technician_workload=[
            TechnicianInfo.from_domain(t, complaint_service.max_load) for t in dashboard.technician_workload
        ]
    )


@router.get("/export", summary="Export complaints as CSV", response_class=Response)
async def export_complaints(
    ctx: RequestContext = Depends(get_request_context),
    service: ComplaintService = Depends(get_complaint_service)
):
    complaints = await service.list_complaints(ctx, ComplaintFilters(limit=10_000))
    return _csv_response(complaints_to_csv(complaints), "complaints.csv")


@router.get("/activity/export", summary="Export the activity log as CSV", response_class=Response)
async def export_activity(
    ctx: RequestContext = Depends(get_request_context),
    service: ComplaintService = Depends(get_complaint_service)
):
    view = await service.get_tenant_activity(ctx)
    return _csv_response(activity_to_csv(view.entries, view.complaint_titles), "activity_log.csv")


# ========== Single Complaint Routes ==========

@router.get(
    "/{complaint_id}",
    response_model=ComplaintResponse,
    summary="Get a complaint",
    responses={
        200: {"content": {"application/json": {"example": COMPLAINT_RESPONSE_EXAMPLE}}},
        404: {"description": "Complaint not found or not visible to the caller"}
    }
)
async def get_complaint(
    complaint_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: ComplaintService = Depends(get_complaint_service),
    sla_service: SLAService = Depends(get_sla_service)
):
    complaint = await service.get_complaint(ctx, complaint_id)
    return (await _with_sla(ctx, [complaint], sla_service))[0]


@router.post(
    "/{complaint_id}/assign",
    response_model=ComplaintOperationResponse,
    summary="Assign a complaint",
    description="""
    Assign to a technician and move the complaint to `in_progress`. Admins only.

    Rejected with 409 when the technician already has `max_load` active
    complaints (counted fresh, excluding this complaint).
    """
)
async def assign_complaint(
    complaint_id: str,
    request: AssignComplaintRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: ComplaintService = Depends(get_complaint_service)
):
    result = await service.assign_complaint(ctx, complaint_id, request.technician_id)
    return ComplaintOperationResponse.from_result(result.complaint, result.effects)


@router.patch(
    "/{complaint_id}/status",
    response_model=ComplaintOperationResponse,
    summary="Update complaint status",
    description="Forward-only move (open → in_progress → resolved) by the assigned technician."
)
async def update_status(
    complaint_id: str,
    request: UpdateStatusRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: ComplaintService = Depends(get_complaint_service)
):
    result = await service.update_status(ctx, complaint_id, request.status)
    return ComplaintOperationResponse.from_result(result.complaint, result.effects)


@router.delete("/{complaint_id}", response_model=ComplaintOperationResponse, summary="Soft-delete a complaint")
async def delete_complaint(
    complaint_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: ComplaintService = Depends(get_complaint_service)
):
    result = await service.delete_complaint(ctx, complaint_id)
    return ComplaintOperationResponse.from_result(result.complaint, result.effects)


@router.post("/{complaint_id}/restore", response_model=ComplaintOperationResponse, summary="Restore a complaint")
async def restore_complaint(
    complaint_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: ComplaintService = Depends(get_complaint_service)
):
    result = await service.restore_complaint(ctx, complaint_id)
    return ComplaintOperationResponse.from_result(result.complaint, result.effects)


@router.get(
    "/{complaint_id}/activity",
    response_model=List[ActivityEntryResponse],
    summary="Complaint activity log"
)
async def get_activity(
    complaint_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: ComplaintService = Depends(get_complaint_service)
):
    entries = await service.get_activity(ctx, complaint_id)
    return [ActivityEntryResponse.from_domain(e) for e in entries]


# ========== Notifications ==========

@notifications_router.get("", response_model=List[NotificationResponse], summary="My notifications")
async def list_notifications(
    limit: Optional[int] = Query(None, ge=1, le=100),
    ctx: RequestContext = Depends(get_request_context),
    service: NotificationService = Depends(get_notification_service)
):
    notifications = await service.list_notifications(ctx, limit)
    return [NotificationResponse.from_domain(n) for n in notifications]


@notifications_router.post("/read-all", response_model=MarkAllReadResponse, summary="Mark all read")
async def mark_all_read(
    ctx: RequestContext = Depends(get_request_context),
    service: NotificationService = Depends(get_notification_service)
):
    return MarkAllReadResponse(updated=await service.mark_all_read(ctx))


@notifications_router.post("/{notification_id}/read", response_model=NotificationResponse, summary="Mark read")
async def mark_read(
    notification_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: NotificationService = Depends(get_notification_service)
):
    return NotificationResponse.from_domain(await service.mark_read(ctx, notification_id))


# ========== Team ==========

@team_router.get("/members", response_model=List[MemberResponse], summary="Tenant roster")
async def list_members(
    ctx: RequestContext = Depends(get_request_context),
    service: TeamService = Depends(get_team_service)
):
    return [MemberResponse.from_domain(p) for p in await service.list_members(ctx)]


@team_router.post(
    "/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a team member"
)
async def register_member(
    request: RegisterMemberRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: TeamService = Depends(get_team_service)
):
    profile = await service.register_member(ctx, request.email, request.role, request.full_name)
    logger.info("Team member registered", extra={"tenant_id": ctx.tenant_id, "role": profile.role})
    return MemberResponse.from_domain(profile)
