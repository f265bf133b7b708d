"""
Complaint Analytics
===================

Dashboard figures computed from a snapshot of the tenant's complaints.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from src.complaints.domain import Complaint, Technician, AssignmentAdvisor
from src.complaints.application.services import (
    ComplaintFilters, IComplaintRepository, IProfileRepository
)
from src.sla.application import SLAService
from src.config import UserRole, VALID_STATUSES
from src.core import RequestContext, PermissionDeniedException

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
TREND_MONTHS = 6
TOP_CATEGORIES = 5


@dataclass
class DashboardAnalytics:
    total: int
    status_counts: Dict[str, int]
    sla_compliance_percent: int
    avg_resolution_hours: int
    monthly_trend: List[Dict[str, object]] = field(default_factory=list)
    top_categories: List[Dict[str, object]] = field(default_factory=list)
    technician_workload: List[Technician] = field(default_factory=list)


def month_label(year: int, month: int) -> str:
    return f"{MONTH_ABBREVIATIONS[month - 1]} {year}"


def monthly_trend(
    complaints: Iterable[Complaint],
    now: datetime,
    months: int = TREND_MONTHS
) -> List[Dict[str, object]]:
    """Complaints created per calendar month, oldest month first, current month last."""
    buckets = []
    year, month = now.year, now.month
    for _ in range(months):
        buckets.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    buckets.reverse()

    created = Counter((c.created_at.year, c.created_at.month) for c in complaints)
    return [{"month": month_label(y, m), "count": created.get((y, m), 0)} for y, m in buckets]


def top_categories(complaints: Iterable[Complaint], limit: int = TOP_CATEGORIES) -> List[Dict[str, object]]:
    counts = Counter(c.category for c in complaints)
    return [{"category": name, "count": count} for name, count in counts.most_common(limit)]


class ComplaintAnalyticsService:
    """Service for the admin dashboard."""

    def __init__(
        self,
        complaint_repository: IComplaintRepository,
        profile_repository: IProfileRepository,
        sla_service: SLAService
    ):
        self._complaint_repo = complaint_repository
        self._profile_repo = profile_repository
        self._sla_service = sla_service

    async def get_dashboard(self, ctx: RequestContext, now: Optional[datetime] = None) -> DashboardAnalytics:
        """
        Compute dashboard figures for the caller's tenant.

        Deleted complaints are left out of every figure.

        Raises:
            PermissionDeniedException: Caller is not an admin or supervisor
        """
        if not ctx.sees_whole_tenant:
            raise PermissionDeniedException("view analytics", ctx.role)

        current_time = now or datetime.now(timezone.utc)
        complaints = await self._complaint_repo.list(ctx.tenant_id, ComplaintFilters(limit=10_000))
        complaints = [c for c in complaints if not c.is_deleted]

        policy = await self._sla_service.get_policy(ctx.tenant_id)
        compliance = SLAService.summarize_compliance(complaints, policy, current_time)

        statuses = Counter(c.status for c in complaints)
        roster = await self._profile_repo.list_by_role(ctx.tenant_id, UserRole.TECHNICIAN)
        ranked = AssignmentAdvisor.rank([Technician.from_profile(p) for p in roster], complaints)

        return DashboardAnalytics(
            total=len(complaints),
            status_counts={status: statuses.get(status, 0) for status in VALID_STATUSES},
            sla_compliance_percent=compliance.sla_compliance_percent,
            avg_resolution_hours=compliance.avg_resolution_hours,
            monthly_trend=monthly_trend(complaints, current_time),
            top_categories=top_categories(complaints),
            technician_workload=sorted(ranked, key=lambda t: t.active_count, reverse=True)
        )
