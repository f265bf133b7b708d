"""
Complaint Infrastructure Repositories
======================================

SQLAlchemy implementations of complaint repositories.

Every method takes the tenant id and filters on it; a row from another
tenant is indistinguishable from a missing row.
"""

from typing import AsyncContextManager, Dict, Iterable, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import select, update, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.complaints.application import (
    ComplaintFilters,
    IComplaintRepository,
    IProfileRepository,
    IActivityLogRepository,
    INotificationRepository,
    IUnitOfWork,
)
from src.complaints.domain import Complaint, UserProfile, ActivityLogEntry, Notification
from src.complaints.infrastructure.models import (
    ComplaintModel, ProfileModel, ActivityLogModel, NotificationModel
)
from src.config import ACTIVE_STATUSES
from src.core import RepositoryException
from src.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


def _as_uuid(value: Optional[str]) -> Optional[UUID]:
    """Parse an ID; malformed IDs behave like unknown ones."""
    if value is None:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _as_str(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value is not None else None


def _contains_pattern(text: str) -> str:
    """Substring LIKE pattern with wildcards in text escaped."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SQLAlchemyUnitOfWork(IUnitOfWork):
    """Savepoints on the request session."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def savepoint(self) -> AsyncContextManager:
        return self._session.begin_nested()


class SQLAlchemyComplaintRepository(IComplaintRepository):
    """SQLAlchemy implementation for complaints."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, tenant_id: str, complaint_id: str) -> Optional[Complaint]:
        model = await self._get_model(tenant_id, complaint_id)
        return self._to_domain(model) if model else None

    async def create(self, complaint: Complaint) -> Complaint:
        model = ComplaintModel(id=uuid4(), tenant_id=complaint.tenant_id)
        self._apply(model, complaint)
        model.created_at = complaint.created_at
        model.created_by = _as_uuid(complaint.created_by)

        try:
            self._session.add(model)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException("Failed to create complaint", {"error": str(e)}) from e

        return self._to_domain(model)

    async def update(self, complaint: Complaint) -> Complaint:
        try:
            model = await self._get_model(complaint.tenant_id, str(complaint.id))
            if model is None:
                raise RepositoryException(
                    f"Complaint {complaint.id} disappeared during update",
                    {"complaint_id": complaint.id}
                )
            self._apply(model, complaint)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException(
                f"Failed to update complaint {complaint.id}",
                {"error": str(e)}
            ) from e

        updated = self._to_domain(model)
        updated.reporter_name = complaint.reporter_name
        updated.assignee_name = complaint.assignee_name
        return updated

    async def list(self, tenant_id: str, filters: ComplaintFilters) -> List[Complaint]:
        stmt = select(ComplaintModel).where(ComplaintModel.tenant_id == tenant_id)

        if not filters.include_deleted:
            stmt = stmt.where(ComplaintModel.is_deleted.is_(False))
        if filters.status:
            stmt = stmt.where(ComplaintModel.status == filters.status)
        if filters.priority:
            stmt = stmt.where(ComplaintModel.priority == filters.priority)
        if filters.category:
            stmt = stmt.where(ComplaintModel.category == filters.category.lower())
        # An unparseable owner id matches nothing, never the NULL rows
        if filters.created_by:
            reporter = _as_uuid(filters.created_by)
            if reporter is None:
                return []
            stmt = stmt.where(ComplaintModel.created_by == reporter)
        if filters.assigned_to:
            assignee = _as_uuid(filters.assigned_to)
            if assignee is None:
                return []
            stmt = stmt.where(ComplaintModel.assigned_to == assignee)
        if filters.search:
            pattern = _contains_pattern(filters.search)
            stmt = stmt.where(or_(
                ComplaintModel.title.ilike(pattern, escape="\\"),
                ComplaintModel.description.ilike(pattern, escape="\\")
            ))

        stmt = stmt.order_by(ComplaintModel.created_at.desc()).offset(filters.offset).limit(filters.limit)

        try:
            with log_latency(logger, "list_complaints", tenant_id=tenant_id):
                result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException("Failed to list complaints", {"error": str(e)}) from e

        return [self._to_domain(m) for m in result.scalars().all()]

    async def list_active_assigned(self, tenant_id: str) -> List[Complaint]:
        stmt = select(ComplaintModel).where(
            ComplaintModel.tenant_id == tenant_id,
            ComplaintModel.is_deleted.is_(False),
            ComplaintModel.assigned_to.is_not(None),
            ComplaintModel.status.in_(ACTIVE_STATUSES)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException("Failed to load workload snapshot", {"error": str(e)}) from e

        return [self._to_domain(m) for m in result.scalars().all()]

    async def _get_model(self, tenant_id: str, complaint_id: str) -> Optional[ComplaintModel]:
        complaint_uuid = _as_uuid(complaint_id)
        if complaint_uuid is None:
            return None

        stmt = select(ComplaintModel).where(
            ComplaintModel.id == complaint_uuid,
            ComplaintModel.tenant_id == tenant_id
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to load complaint {complaint_id}", {"error": str(e)}) from e
        return result.scalar_one_or_none()

    @staticmethod
    def _apply(model: ComplaintModel, complaint: Complaint) -> None:
        model.title = complaint.title
        model.description = complaint.description
        model.category = complaint.category
        model.priority = complaint.priority
        model.status = complaint.status
        model.location = complaint.location
        model.assigned_to = _as_uuid(complaint.assigned_to)
        model.updated_at = complaint.updated_at
        model.resolved_at = complaint.resolved_at
        model.is_deleted = complaint.is_deleted
        model.deleted_at = complaint.deleted_at

    @staticmethod
    def _to_domain(model: ComplaintModel) -> Complaint:
        return Complaint(
            id=str(model.id),
            tenant_id=model.tenant_id,
            title=model.title,
            description=model.description,
            category=model.category,
            priority=model.priority,
            status=model.status,
            created_at=model.created_at,
            updated_at=model.updated_at,
            created_by=_as_str(model.created_by),
            assigned_to=_as_str(model.assigned_to),
            location=model.location,
            resolved_at=model.resolved_at,
            is_deleted=model.is_deleted,
            deleted_at=model.deleted_at
        )


class SQLAlchemyProfileRepository(IProfileRepository):
    """SQLAlchemy implementation for user profiles."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, tenant_id: str, user_id: str) -> Optional[UserProfile]:
        user_uuid = _as_uuid(user_id)
        if user_uuid is None:
            return None
        stmt = select(ProfileModel).where(ProfileModel.id == user_uuid, ProfileModel.tenant_id == tenant_id)
        model = (await self._execute(stmt)).scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def get_many(self, tenant_id: str, user_ids: Iterable[str]) -> Dict[str, UserProfile]:
        uuids = [u for u in (_as_uuid(i) for i in user_ids) if u is not None]
        if not uuids:
            return {}
        stmt = select(ProfileModel).where(ProfileModel.tenant_id == tenant_id, ProfileModel.id.in_(uuids))
        profiles = [self._to_domain(m) for m in (await self._execute(stmt)).scalars().all()]
        return {p.id: p for p in profiles}

    async def list_by_role(self, tenant_id: str, role: str) -> List[UserProfile]:
        stmt = (
            select(ProfileModel)
            .where(ProfileModel.tenant_id == tenant_id, ProfileModel.role == role)
            .order_by(ProfileModel.created_at.asc())
        )
        return [self._to_domain(m) for m in (await self._execute(stmt)).scalars().all()]

    async def list_all(self, tenant_id: str) -> List[UserProfile]:
        stmt = (
            select(ProfileModel)
            .where(ProfileModel.tenant_id == tenant_id)
            .order_by(ProfileModel.role, ProfileModel.created_at.asc())
        )
        return [self._to_domain(m) for m in (await self._execute(stmt)).scalars().all()]

    async def get_by_email(self, tenant_id: str, email: str) -> Optional[UserProfile]:
        stmt = select(ProfileModel).where(ProfileModel.tenant_id == tenant_id, ProfileModel.email == email)
        model = (await self._execute(stmt)).scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def create(self, profile: UserProfile) -> UserProfile:
        model = ProfileModel(
            id=_as_uuid(profile.id) or uuid4(),
            tenant_id=profile.tenant_id,
            email=profile.email,
            role=profile.role,
            full_name=profile.full_name,
            created_at=profile.created_at
        )
        try:
            self._session.add(model)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException("Failed to create profile", {"error": str(e)}) from e
        return self._to_domain(model)

    async def _execute(self, stmt):
        try:
            return await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException("Profile query failed", {"error": str(e)}) from e

    @staticmethod
    def _to_domain(model: ProfileModel) -> UserProfile:
        return UserProfile(
            id=str(model.id),
            tenant_id=model.tenant_id,
            email=model.email,
            role=model.role,
            full_name=model.full_name,
            created_at=model.created_at
        )


class SQLAlchemyActivityLogRepository(IActivityLogRepository):
    """SQLAlchemy implementation for the activity log."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def append(self, entry: ActivityLogEntry) -> ActivityLogEntry:
        model = ActivityLogModel(
            id=uuid4(),
            tenant_id=entry.tenant_id,
            complaint_id=_as_uuid(entry.complaint_id),
            action=entry.action,
            details=entry.details,
            performed_by=_as_uuid(entry.performed_by),
            created_at=entry.created_at
        )
        try:
            self._session.add(model)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException("Failed to append activity", {"error": str(e)}) from e
        return self._to_domain(model)

    async def list_for_complaint(self, tenant_id: str, complaint_id: str) -> List[ActivityLogEntry]:
        complaint_uuid = _as_uuid(complaint_id)
        if complaint_uuid is None:
            return []
        stmt = (
            select(ActivityLogModel)
            .where(ActivityLogModel.tenant_id == tenant_id, ActivityLogModel.complaint_id == complaint_uuid)
            .order_by(ActivityLogModel.created_at.asc())
        )
        return await self._fetch(stmt)

    async def list_for_tenant(self, tenant_id: str, limit: int = 1000) -> List[ActivityLogEntry]:
        stmt = (
            select(ActivityLogModel)
            .where(ActivityLogModel.tenant_id == tenant_id)
            .order_by(ActivityLogModel.created_at.asc())
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def _fetch(self, stmt) -> List[ActivityLogEntry]:
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException("Failed to load activity", {"error": str(e)}) from e
        return [self._to_domain(m) for m in result.scalars().all()]

    @staticmethod
    def _to_domain(model: ActivityLogModel) -> ActivityLogEntry:
        return ActivityLogEntry(
            id=str(model.id),
            tenant_id=model.tenant_id,
            complaint_id=str(model.complaint_id),
            action=model.action,
            details=model.details,
            performed_by=_as_str(model.performed_by),
            created_at=model.created_at
        )


class SQLAlchemyNotificationRepository(INotificationRepository):
    """SQLAlchemy implementation for notifications."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, notification: Notification) -> Notification:
        model = NotificationModel(
            id=uuid4(),
            tenant_id=notification.tenant_id,
            user_id=_as_uuid(notification.user_id),
            complaint_id=_as_uuid(notification.complaint_id),
            title=notification.title,
            message=notification.message,
            type=notification.type,
            is_read=notification.is_read,
            created_at=notification.created_at
        )
        try:
            self._session.add(model)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException("Failed to create notification", {"error": str(e)}) from e
        return self._to_domain(model)

    async def list_for_user(self, tenant_id: str, user_id: str, limit: int) -> List[Notification]:
        user_uuid = _as_uuid(user_id)
        if user_uuid is None:
            return []
        stmt = (
            select(NotificationModel)
            .where(NotificationModel.tenant_id == tenant_id, NotificationModel.user_id == user_uuid)
            .order_by(NotificationModel.created_at.desc())
            .limit(limit)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException("Failed to load notifications", {"error": str(e)}) from e
        return [self._to_domain(m) for m in result.scalars().all()]

    async def mark_read(self, tenant_id: str, user_id: str, notification_id: str) -> Optional[Notification]:
        notification_uuid, user_uuid = _as_uuid(notification_id), _as_uuid(user_id)
        if notification_uuid is None or user_uuid is None:
            return None

        stmt = select(NotificationModel).where(
            NotificationModel.id == notification_uuid,
            NotificationModel.tenant_id == tenant_id,
            NotificationModel.user_id == user_uuid
        )
        try:
            model = (await self._session.execute(stmt)).scalar_one_or_none()
            if model is None:
                return None
            model.is_read = True
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException(
                f"Failed to mark notification {notification_id} read",
                {"error": str(e)}
            ) from e
        return self._to_domain(model)

    async def mark_all_read(self, tenant_id: str, user_id: str) -> int:
        user_uuid = _as_uuid(user_id)
        if user_uuid is None:
            return 0

        stmt = (
            update(NotificationModel)
            .where(
                NotificationModel.tenant_id == tenant_id,
                NotificationModel.user_id == user_uuid,
                NotificationModel.is_read.is_(False)
            )
            .values(is_read=True)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException("Failed to mark notifications read", {"error": str(e)}) from e
        return result.rowcount or 0

    @staticmethod
    def _to_domain(model: NotificationModel) -> Notification:
        return Notification(
            id=str(model.id),
            tenant_id=model.tenant_id,
            user_id=str(model.user_id),
            complaint_id=_as_str(model.complaint_id),
            title=model.title,
            message=model.message,
            type=model.type,
            is_read=model.is_read,
            created_at=model.created_at
        )
