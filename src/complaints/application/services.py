"""
Complaint Application Services
===============================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Every operation takes an explicit RequestContext. Validation happens before
any write; writes and their activity/notification side effects run as an
EffectChain.
"""

from dataclasses import dataclass, field
from typing import AsyncContextManager, Dict, Iterable, List, Optional
from abc import ABC, abstractmethod

from src.complaints.domain import (
    Complaint, UserProfile, Technician, ActivityLogEntry, Notification,
    AssignmentAdvisor, DEFAULT_MAX_LOAD, utcnow
)
from src.complaints.application.effects import EffectChain, EffectReport
from src.sla.application import ITenantSettingsRepository
from src.config import (
    ComplaintStatus, UserRole, NotificationType, ActivityAction, SideEffectMode,
    VALID_PRIORITIES, VALID_ROLES
)
from src.core import (
    RequestContext,
    ValidationException,
    PermissionDeniedException,
    ResourceNotFoundException,
    ConflictException,
    AssignmentCapacityException,
)
from src.shared.infrastructure.logging import get_context_logger


# ========== Query objects ==========

@dataclass
class ComplaintFilters:
    """Store-side filters for complaint listings."""
    status: Optional[str] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    search: Optional[str] = None
    created_by: Optional[str] = None
    assigned_to: Optional[str] = None
    include_deleted: bool = False
    limit: int = 100
    offset: int = 0


# ========== Repository Interfaces (Dependency Inversion) ==========

class IComplaintRepository(ABC):
    """Interface for complaint data access."""

    @abstractmethod
    async def get_by_id(self, tenant_id: str, complaint_id: str) -> Optional[Complaint]:
        """Get complaint by ID within a tenant (deleted ones included)."""

    @abstractmethod
    async def create(self, complaint: Complaint) -> Complaint:
        """Insert a complaint and return it with its ID."""

    @abstractmethod
    async def update(self, complaint: Complaint) -> Complaint:
        """Persist changes to an existing complaint."""

    @abstractmethod
    async def list(self, tenant_id: str, filters: ComplaintFilters) -> List[Complaint]:
        """List complaints newest first."""

    @abstractmethod
    async def list_active_assigned(self, tenant_id: str) -> List[Complaint]:
        """Snapshot of open/in-progress complaints that have an assignee."""


class IProfileRepository(ABC):
    """Interface for user profile data access."""

    @abstractmethod
    async def get_by_id(self, tenant_id: str, user_id: str) -> Optional[UserProfile]:
        """Get a profile by ID within a tenant."""

    @abstractmethod
    async def get_many(self, tenant_id: str, user_ids: Iterable[str]) -> Dict[str, UserProfile]:
        """Resolve many IDs at once; unknown IDs are absent from the result."""

    @abstractmethod
    async def list_by_role(self, tenant_id: str, role: str) -> List[UserProfile]:
        """Profiles with a role, in roster order (oldest first)."""

    @abstractmethod
    async def list_all(self, tenant_id: str) -> List[UserProfile]:
        """All profiles ordered by role then creation time."""

    @abstractmethod
    async def get_by_email(self, tenant_id: str, email: str) -> Optional[UserProfile]:
        """Get a profile by email within a tenant."""

    @abstractmethod
    async def create(self, profile: UserProfile) -> UserProfile:
        """Insert a profile."""


class IActivityLogRepository(ABC):
    """Interface for the append-only activity log."""

    @abstractmethod
    async def append(self, entry: ActivityLogEntry) -> ActivityLogEntry:
        """Append an entry."""

    @abstractmethod
    async def list_for_complaint(self, tenant_id: str, complaint_id: str) -> List[ActivityLogEntry]:
        """Entries for one complaint, oldest first."""

    @abstractmethod
    async def list_for_tenant(self, tenant_id: str, limit: int = 1000) -> List[ActivityLogEntry]:
        """Entries for a tenant, oldest first."""


class INotificationRepository(ABC):
    """Interface for user notifications."""

    @abstractmethod
    async def create(self, notification: Notification) -> Notification:
        """Insert a notification."""

    @abstractmethod
    async def list_for_user(self, tenant_id: str, user_id: str, limit: int) -> List[Notification]:
        """A user's notifications, newest first."""

    @abstractmethod
    async def mark_read(self, tenant_id: str, user_id: str, notification_id: str) -> Optional[Notification]:
        """Mark one of the user's notifications read; None if not theirs."""

    @abstractmethod
    async def mark_all_read(self, tenant_id: str, user_id: str) -> int:
        """Mark all the user's unread notifications read; returns how many."""


class IUnitOfWork(ABC):
    """Transaction scoping for side effects."""

    @abstractmethod
    def savepoint(self) -> AsyncContextManager:
        """Scope that undoes only its own writes when it fails."""


# ========== Results ==========

@dataclass
class ComplaintOperationResult:
    """A complaint after a state change, plus how its side effects went."""
    complaint: Complaint
    effects: EffectReport


@dataclass
class WorkloadView:
    """Ranked technician roster and the suggested assignee."""
    technicians: List[Technician]
    suggested: Optional[Technician]
    max_load: int


@dataclass
class ActivityView:
    entries: List[ActivityLogEntry] = field(default_factory=list)
    complaint_titles: Dict[str, str] = field(default_factory=dict)


# ========== Application Services ==========

class ComplaintService:
    """
    Service for the complaint lifecycle: intake, assignment, status,
    soft delete and restore.
    """

    def __init__(
        self,
        complaint_repository: IComplaintRepository,
        profile_repository: IProfileRepository,
        activity_repository: IActivityLogRepository,
        notification_repository: INotificationRepository,
        settings_repository: ITenantSettingsRepository,
        unit_of_work: Optional[IUnitOfWork] = None,
        max_load: int = DEFAULT_MAX_LOAD,
        side_effect_mode: str = SideEffectMode.BEST_EFFORT
    ):
        self._complaint_repo = complaint_repository
        self._profile_repo = profile_repository
        self._activity_repo = activity_repository
        self._notification_repo = notification_repository
        self._settings_repo = settings_repository
        self._uow = unit_of_work
        self._max_load = max_load
        self._side_effect_mode = side_effect_mode

    @property
    def max_load(self) -> int:
        return self._max_load

    # ----- Intake -----

    async def create_complaint(
        self,
        ctx: RequestContext,
        title: str,
        description: str,
        category: str,
        priority: str = "medium",
        location: Optional[str] = None
    ) -> ComplaintOperationResult:
        """
        File a new complaint.

        Raises:
            PermissionDeniedException: Caller is not a student
            ValidationException: Blank fields, unknown priority or category
        """
        if not ctx.is_student:
            raise PermissionDeniedException("file complaints", ctx.role)

        title = title.strip()
        description = description.strip()
        category = category.strip().lower()
        if not title or not description or not category:
            raise ValidationException("Title, description and category are required")
        if priority not in VALID_PRIORITIES:
            raise ValidationException(f"Unknown priority '{priority}'", {"priority": priority})

        tenant_settings = await self._settings_repo.get_for_tenant(ctx.tenant_id)
        if tenant_settings and not tenant_settings.accepts_category(category):
            raise ValidationException(
                f"Unknown category '{category}'",
                {"category": category, "allowed": tenant_settings.categories}
            )

        now = utcnow()
        complaint = Complaint(
            id=None,
            tenant_id=ctx.tenant_id,
            title=title,
            description=description,
            category=category,
            priority=priority,
            status=ComplaintStatus.OPEN,
            created_at=now,
            updated_at=now,
            created_by=ctx.user_id,
            location=(location or "").strip() or None
        )
        admins = await self._profile_repo.list_by_role(ctx.tenant_id, UserRole.ADMIN)

        chain = self._chain()
        chain.primary("create_complaint", lambda: self._complaint_repo.create(complaint))
        chain.then("log_activity", lambda saved: self._log(
            ctx, saved, ActivityAction.CREATED, f"Priority: {priority}, Category: {category}"
        ))
        for admin in admins:
            chain.then(f"notify_admin:{admin.id}", lambda saved, admin_id=admin.id: self._notify(
                ctx, admin_id, saved, "New Complaint",
                f"A new {priority} priority complaint was filed: {saved.title}",
                NotificationType.CREATED
            ))

        report = await chain.run()
        self._logger(ctx).info(
            "Complaint created",
            extra={"complaint_id": report.result.id, "failed_steps": report.failed_steps}
        )
        return ComplaintOperationResult(report.result, report)

    # ----- Queries -----

    async def get_complaint(self, ctx: RequestContext, complaint_id: str) -> Complaint:
        """
        Get a complaint the caller may see, with display names resolved.

        Raises:
            ResourceNotFoundException: Missing, or not visible to the caller
        """
        complaint = await self._complaint_repo.get_by_id(ctx.tenant_id, complaint_id)
        if complaint is None or not self._is_visible(ctx, complaint):
            raise ResourceNotFoundException("Complaint", complaint_id)
        await self._resolve_names([complaint])
        return complaint

    async def list_complaints(
        self,
        ctx: RequestContext,
        filters: Optional[ComplaintFilters] = None
    ) -> List[Complaint]:
        """
        List complaints visible to the caller, newest first.

        Students see their own complaints and technicians their assignments.
        Deleted complaints are listed only when an admin asks for them.
        """
        filters = filters or ComplaintFilters()
        if filters.include_deleted and not ctx.is_admin:
            raise PermissionDeniedException("list deleted complaints", ctx.role)

        if ctx.is_student:
            filters.created_by = ctx.user_id
        elif ctx.is_technician:
            filters.assigned_to = ctx.user_id

        complaints = await self._complaint_repo.list(ctx.tenant_id, filters)
        await self._resolve_names(complaints)
        return complaints

    async def get_workload(self, ctx: RequestContext) -> WorkloadView:
        """
        Rank the tenant's technicians by active caseload.

        Raises:
            PermissionDeniedException: Caller is not an admin or supervisor
        """
        if not ctx.sees_whole_tenant:
            raise PermissionDeniedException("view technician workload", ctx.role)

        ranked = await self._ranked_technicians(ctx.tenant_id)
        return WorkloadView(
            technicians=ranked,
            suggested=AssignmentAdvisor.suggest(ranked, self._max_load),
            max_load=self._max_load
        )

    async def get_activity(self, ctx: RequestContext, complaint_id: str) -> List[ActivityLogEntry]:
        """Activity for a complaint the caller may see, oldest first."""
        await self.get_complaint(ctx, complaint_id)
        entries = await self._activity_repo.list_for_complaint(ctx.tenant_id, complaint_id)
        await self._resolve_performers(ctx.tenant_id, entries)
        return entries

    async def get_tenant_activity(self, ctx: RequestContext) -> ActivityView:
        """Whole-tenant activity log for export."""
        if not ctx.sees_whole_tenant:
            raise PermissionDeniedException("export the activity log", ctx.role)

        entries = await self._activity_repo.list_for_tenant(ctx.tenant_id)
        await self._resolve_performers(ctx.tenant_id, entries)

        complaints = await self._complaint_repo.list(
            ctx.tenant_id, ComplaintFilters(include_deleted=True, limit=10_000)
        )
        return ActivityView(entries=entries, complaint_titles={c.id: c.title for c in complaints})

    # ----- Assignment -----

    async def assign_complaint(
        self,
        ctx: RequestContext,
        complaint_id: str,
        technician_id: str
    ) -> ComplaintOperationResult:
        """
        Assign a complaint to a technician and move it to in progress.

        The caseload cap is checked against a fresh snapshot right before the
        write, whether or not the technician was the suggested one.

        Raises:
            PermissionDeniedException: Caller is not an admin
            ResourceNotFoundException: Complaint missing
            ValidationException: Complaint deleted, or target is not a technician
            InvalidStatusTransitionException: Complaint already resolved
            AssignmentCapacityException: Technician at or above the cap
        """
        if not ctx.is_admin:
            raise PermissionDeniedException("assign complaints", ctx.role)

        complaint = await self._require(ctx, complaint_id)
        profile = await self._profile_repo.get_by_id(ctx.tenant_id, technician_id)
        if profile is None or not profile.is_technician:
            raise ValidationException(
                f"User {technician_id} is not a technician in this tenant",
                {"technician_id": technician_id}
            )

        snapshot = await self._complaint_repo.list_active_assigned(ctx.tenant_id)
        counts = AssignmentAdvisor.tally_active_counts(snapshot, exclude_complaint_id=complaint.id)
        technician = Technician.from_profile(profile, counts.get(str(profile.id), 0))
        if not AssignmentAdvisor.can_assign(technician, self._max_load):
            self._logger(ctx).info(
                "Assignment rejected at caseload cap",
                extra={
                    "complaint_id": complaint.id,
                    "technician_id": technician.id,
                    "active_count": technician.active_count
                }
            )
            raise AssignmentCapacityException(technician.id, technician.active_count, self._max_load)

        complaint.assign(technician.id)

        chain = self._chain()
        chain.primary("update_complaint", lambda: self._complaint_repo.update(complaint))
        chain.then("log_activity", lambda saved: self._log(
            ctx, saved, ActivityAction.ASSIGNED, f"Assigned to {technician.display_name}"
        ))
        chain.then("notify_technician", lambda saved: self._notify(
            ctx, technician.id, saved, "New Assignment",
            f"You have been assigned: {saved.title}", NotificationType.ASSIGNED
        ))
        if complaint.created_by:
            chain.then("notify_reporter", lambda saved: self._notify(
                ctx, saved.created_by, saved, "Complaint Assigned",
                f"Your complaint '{saved.title}' was assigned to {technician.display_name}",
                NotificationType.ASSIGNED
            ))

        report = await chain.run()
        self._logger(ctx).info(
            "Complaint assigned",
            extra={
                "complaint_id": complaint.id,
                "technician_id": technician.id,
                "failed_steps": report.failed_steps
            }
        )
        saved = report.result
        saved.assignee_name = technician.display_name
        return ComplaintOperationResult(saved, report)

    # ----- Status -----

    async def update_status(
        self,
        ctx: RequestContext,
        complaint_id: str,
        new_status: str
    ) -> ComplaintOperationResult:
        """
        Move the caller's assigned complaint forward.

        Raises:
            PermissionDeniedException: Caller is not the assigned technician
            ResourceNotFoundException: Complaint missing
            ValidationException: Complaint deleted
            InvalidStatusTransitionException: Backward or repeated move
        """
        if not ctx.is_technician:
            raise PermissionDeniedException("update complaint status", ctx.role)

        complaint = await self._require(ctx, complaint_id)
        if complaint.assigned_to != ctx.user_id:
            raise PermissionDeniedException("update a complaint assigned to someone else", ctx.role)
        if complaint.is_deleted:
            raise ValidationException(f"Complaint {complaint_id} is deleted", {"complaint_id": complaint_id})

        previous = complaint.transition_to(new_status)
        details = f"Status changed from {_humanize(previous)} to {_humanize(new_status)}"

        chain = self._chain()
        chain.primary("update_complaint", lambda: self._complaint_repo.update(complaint))
        chain.then("log_activity", lambda saved: self._log(
            ctx, saved, ActivityAction.STATUS_UPDATED, details
        ))
        if new_status == ComplaintStatus.RESOLVED and complaint.created_by:
            chain.then("notify_reporter", lambda saved: self._notify(
                ctx, saved.created_by, saved, "Complaint Resolved",
                f"Your complaint '{saved.title}' has been resolved", NotificationType.RESOLVED
            ))

        report = await chain.run()
        self._logger(ctx).info(
            "Complaint status updated",
            extra={
                "complaint_id": complaint.id,
                "from_status": previous,
                "to_status": new_status,
                "failed_steps": report.failed_steps
            }
        )
        return ComplaintOperationResult(report.result, report)

    # ----- Soft delete -----

    async def delete_complaint(self, ctx: RequestContext, complaint_id: str) -> ComplaintOperationResult:
        """Hide a complaint without removing it; its log and notifications stay."""
        if not ctx.is_admin:
            raise PermissionDeniedException("delete complaints", ctx.role)

        complaint = await self._require(ctx, complaint_id)
        complaint.soft_delete()
        return await self._run_simple_change(ctx, complaint, ActivityAction.DELETED)

    async def restore_complaint(self, ctx: RequestContext, complaint_id: str) -> ComplaintOperationResult:
        """Bring a soft-deleted complaint back into listings and workload."""
        if not ctx.is_admin:
            raise PermissionDeniedException("restore complaints", ctx.role)

        complaint = await self._require(ctx, complaint_id)
        complaint.restore()
        return await self._run_simple_change(ctx, complaint, ActivityAction.RESTORED)

    # ----- Helpers -----

    async def _run_simple_change(
        self,
        ctx: RequestContext,
        complaint: Complaint,
        action: str
    ) -> ComplaintOperationResult:
        chain = self._chain()
        chain.primary("update_complaint", lambda: self._complaint_repo.update(complaint))
        chain.then("log_activity", lambda saved: self._log(ctx, saved, action))
        report = await chain.run()
        self._logger(ctx).info(action, extra={"complaint_id": complaint.id, "failed_steps": report.failed_steps})
        return ComplaintOperationResult(report.result, report)

    async def _require(self, ctx: RequestContext, complaint_id: str) -> Complaint:
        complaint = await self._complaint_repo.get_by_id(ctx.tenant_id, complaint_id)
        if complaint is None:
            raise ResourceNotFoundException("Complaint", complaint_id)
        return complaint

    async def _ranked_technicians(self, tenant_id: str) -> List[Technician]:
        roster = await self._profile_repo.list_by_role(tenant_id, UserRole.TECHNICIAN)
        snapshot = await self._complaint_repo.list_active_assigned(tenant_id)
        return AssignmentAdvisor.rank([Technician.from_profile(p) for p in roster], snapshot)

    def _chain(self) -> EffectChain:
        return EffectChain(
            mode=self._side_effect_mode,
            isolate=self._uow.savepoint if self._uow else None
        )

    async def _log(
        self,
        ctx: RequestContext,
        complaint: Complaint,
        action: str,
        details: Optional[str] = None
    ) -> ActivityLogEntry:
        return await self._activity_repo.append(ActivityLogEntry(
            tenant_id=ctx.tenant_id,
            complaint_id=complaint.id,
            action=action,
            details=details,
            performed_by=ctx.user_id
        ))

    async def _notify(
        self,
        ctx: RequestContext,
        user_id: str,
        complaint: Complaint,
        title: str,
        message: str,
        notification_type: str
    ) -> Notification:
        return await self._notification_repo.create(Notification(
            tenant_id=ctx.tenant_id,
            user_id=user_id,
            title=title,
            message=message,
            type=notification_type,
            complaint_id=complaint.id
        ))

    @staticmethod
    def _is_visible(ctx: RequestContext, complaint: Complaint) -> bool:
        if complaint.is_deleted and not ctx.is_admin:
            return False
        if ctx.is_student:
            return complaint.created_by == ctx.user_id
        if ctx.is_technician:
            return complaint.assigned_to == ctx.user_id
        return True

    async def _resolve_names(self, complaints: List[Complaint]) -> None:
        if not complaints:
            return
        ids = {c.created_by for c in complaints if c.created_by} | {c.assigned_to for c in complaints if c.assigned_to}
        profiles = await self._profile_repo.get_many(complaints[0].tenant_id, ids)
        for complaint in complaints:
            reporter = profiles.get(complaint.created_by) if complaint.created_by else None
            assignee = profiles.get(complaint.assigned_to) if complaint.assigned_to else None
            complaint.reporter_name = reporter.display_name if reporter else None
            complaint.assignee_name = assignee.display_name if assignee else None

    async def _resolve_performers(self, tenant_id: str, entries: List[ActivityLogEntry]) -> None:
        ids = {e.performed_by for e in entries if e.performed_by}
        profiles = await self._profile_repo.get_many(tenant_id, ids) if ids else {}
        for entry in entries:
            performer = profiles.get(entry.performed_by) if entry.performed_by else None
            entry.performer_name = performer.display_name if performer else None

    @staticmethod
    def _logger(ctx: RequestContext):
        return get_context_logger(__name__, ctx.correlation_id, ctx.tenant_id, ctx.user_id)


class NotificationService:
    """Service for reading and acknowledging the caller's notifications."""

    def __init__(self, notification_repository: INotificationRepository, page_size: int = 20):
        self._notification_repo = notification_repository
        self._page_size = page_size

    async def list_notifications(self, ctx: RequestContext, limit: Optional[int] = None) -> List[Notification]:
        return await self._notification_repo.list_for_user(
            ctx.tenant_id, ctx.user_id, limit or self._page_size
        )

    async def mark_read(self, ctx: RequestContext, notification_id: str) -> Notification:
        notification = await self._notification_repo.mark_read(ctx.tenant_id, ctx.user_id, notification_id)
        if notification is None:
            raise ResourceNotFoundException("Notification", notification_id)
        return notification

    async def mark_all_read(self, ctx: RequestContext) -> int:
        return await self._notification_repo.mark_all_read(ctx.tenant_id, ctx.user_id)


class TeamService:
    """Service for the tenant's user roster."""

    def __init__(self, profile_repository: IProfileRepository):
        self._profile_repo = profile_repository

    async def list_members(self, ctx: RequestContext) -> List[UserProfile]:
        if not ctx.is_admin:
            raise PermissionDeniedException("view the team roster", ctx.role)
        return await self._profile_repo.list_all(ctx.tenant_id)

    async def register_member(
        self,
        ctx: RequestContext,
        email: str,
        role: str,
        full_name: Optional[str] = None
    ) -> UserProfile:
        """
        Add a profile to the caller's tenant.

        Raises:
            PermissionDeniedException: Caller is not an admin
            ConflictException: Email already registered in the tenant
        """
        if not ctx.is_admin:
            raise PermissionDeniedException("register team members", ctx.role)

        if role not in VALID_ROLES:
            raise ValidationException(f"Unknown role '{role}'", {"role": role})
        email = email.strip().lower()
        if not email:
            raise ValidationException("Email is required")
        if await self._profile_repo.get_by_email(ctx.tenant_id, email):
            raise ConflictException(f"A member with email {email} already exists", {"email": email})

        return await self._profile_repo.create(UserProfile(
            id=None,
            tenant_id=ctx.tenant_id,
            email=email,
            role=role,
            full_name=(full_name or "").strip() or None
        ))


def _humanize(status: str) -> str:
    return status.replace("_", " ")
