"""Shared fixtures: in-memory repositories and a seeded tenant."""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

import pytest

from src.complaints.application import (
    ComplaintFilters,
    ComplaintService,
    ComplaintAnalyticsService,
    NotificationService,
    TeamService,
    IComplaintRepository,
    IProfileRepository,
    IActivityLogRepository,
    INotificationRepository,
    IUnitOfWork,
)
from src.complaints.domain import Complaint, UserProfile, ActivityLogEntry, Notification
from src.sla.application import SLAService, ITenantSettingsRepository, ISLAConfigProvider
from src.sla.domain import SLAPolicy, TenantSettings
from src.config import ACTIVE_STATUSES
from src.core import RepositoryException, RequestContext

TENANT = "campus-north"
OTHER_TENANT = "campus-south"
BASE_TIME = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


# ── In-memory repositories ───────────────────────────────────────────────

class InMemoryComplaintRepository(IComplaintRepository):
    def __init__(self):
        self.rows: Dict[str, Complaint] = {}
        self.fail_writes = False

    async def get_by_id(self, tenant_id, complaint_id):
        row = self.rows.get(complaint_id)
        if row is None or row.tenant_id != tenant_id:
            return None
        return replace(row)

    async def create(self, complaint):
        if self.fail_writes:
            raise RepositoryException("insert failed")
        saved = replace(complaint, id=str(uuid.uuid4()))
        self.rows[saved.id] = saved
        return replace(saved)

    async def update(self, complaint):
        if self.fail_writes:
            raise RepositoryException("update failed")
        self.rows[complaint.id] = replace(complaint)
        return replace(complaint)

    async def list(self, tenant_id, filters: ComplaintFilters):
        rows = [r for r in self.rows.values() if r.tenant_id == tenant_id]
        if not filters.include_deleted:
            rows = [r for r in rows if not r.is_deleted]
        if filters.status:
            rows = [r for r in rows if r.status == filters.status]
        if filters.priority:
            rows = [r for r in rows if r.priority == filters.priority]
        if filters.category:
            rows = [r for r in rows if r.category == filters.category.lower()]
        if filters.created_by:
            rows = [r for r in rows if r.created_by == filters.created_by]
        if filters.assigned_to:
            rows = [r for r in rows if r.assigned_to == filters.assigned_to]
        if filters.search:
            needle = filters.search.lower()
            rows = [r for r in rows if needle in r.title.lower() or needle in r.description.lower()]
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return [replace(r) for r in rows[filters.offset:filters.offset + filters.limit]]

    async def list_active_assigned(self, tenant_id):
        return [
            replace(r) for r in self.rows.values()
            if r.tenant_id == tenant_id and r.assigned_to and not r.is_deleted and r.status in ACTIVE_STATUSES
        ]


class InMemoryProfileRepository(IProfileRepository):
    def __init__(self):
        self.rows: Dict[str, UserProfile] = {}

    async def get_by_id(self, tenant_id, user_id):
        row = self.rows.get(user_id)
        return row if row and row.tenant_id == tenant_id else None

    async def get_many(self, tenant_id, user_ids: Iterable[str]):
        return {i: self.rows[i] for i in user_ids if i in self.rows and self.rows[i].tenant_id == tenant_id}

    async def list_by_role(self, tenant_id, role):
        rows = [r for r in self.rows.values() if r.tenant_id == tenant_id and r.role == role]
        return sorted(rows, key=lambda r: r.created_at)

    async def list_all(self, tenant_id):
        rows = [r for r in self.rows.values() if r.tenant_id == tenant_id]
        return sorted(rows, key=lambda r: (r.role, r.created_at))

    async def get_by_email(self, tenant_id, email):
        return next((r for r in self.rows.values() if r.tenant_id == tenant_id and r.email == email), None)

    async def create(self, profile):
        saved = replace(profile, id=profile.id or str(uuid.uuid4()))
        self.rows[saved.id] = saved
        return saved


class InMemoryActivityLogRepository(IActivityLogRepository):
    def __init__(self):
        self.entries: List[ActivityLogEntry] = []
        self.fail = False

    async def append(self, entry):
        if self.fail:
            raise RepositoryException("activity log unavailable")
        saved = replace(entry, id=str(uuid.uuid4()))
        self.entries.append(saved)
        return saved

    async def list_for_complaint(self, tenant_id, complaint_id):
        return [replace(e) for e in self.entries if e.tenant_id == tenant_id and e.complaint_id == complaint_id]

    async def list_for_tenant(self, tenant_id, limit=1000):
        return [replace(e) for e in self.entries if e.tenant_id == tenant_id][:limit]


class InMemoryNotificationRepository(INotificationRepository):
    def __init__(self):
        self.rows: List[Notification] = []
        self.fail = False

    async def create(self, notification):
        if self.fail:
            raise RepositoryException("notifications unavailable")
        saved = replace(notification, id=str(uuid.uuid4()))
        self.rows.append(saved)
        return saved

    async def list_for_user(self, tenant_id, user_id, limit):
        mine = [n for n in self.rows if n.tenant_id == tenant_id and n.user_id == user_id]
        return list(reversed(mine))[:limit]

    async def mark_read(self, tenant_id, user_id, notification_id):
        for n in self.rows:
            if n.id == notification_id and n.tenant_id == tenant_id and n.user_id == user_id:
                n.mark_read()
                return n
        return None

    async def mark_all_read(self, tenant_id, user_id):
        unread = [n for n in self.rows if n.tenant_id == tenant_id and n.user_id == user_id and not n.is_read]
        for n in unread:
            n.mark_read()
        return len(unread)


class InMemoryTenantSettingsRepository(ITenantSettingsRepository):
    def __init__(self):
        self.rows: Dict[str, TenantSettings] = {}

    async def get_for_tenant(self, tenant_id):
        return self.rows.get(tenant_id)

    async def upsert(self, tenant_settings):
        saved = replace(tenant_settings, id=tenant_settings.id or str(uuid.uuid4()))
        self.rows[saved.tenant_id] = saved
        return saved


class StaticConfigProvider(ISLAConfigProvider):
    def __init__(self, policy: Optional[SLAPolicy] = None):
        self.policy = policy or SLAPolicy()

    def get_policy(self):
        return self.policy


class RecordingUnitOfWork(IUnitOfWork):
    def __init__(self):
        self.savepoints = 0
        self.rolled_back = 0

    def savepoint(self):
        @asynccontextmanager
        async def scope():
            self.savepoints += 1
            try:
                yield
            except Exception:
                self.rolled_back += 1
                raise
        return scope()


# ── Seeded tenant ────────────────────────────────────────────────────────

class World:
    """A tenant with an admin, a student, a supervisor and two technicians."""

    def __init__(self, side_effect_mode: str = "best_effort", max_load: int = 10):
        self.complaints = InMemoryComplaintRepository()
        self.profiles = InMemoryProfileRepository()
        self.activity = InMemoryActivityLogRepository()
        self.notifications = InMemoryNotificationRepository()
        self.tenant_settings = InMemoryTenantSettingsRepository()
        self.config = StaticConfigProvider()
        self.uow = RecordingUnitOfWork()

        self.admin = self._profile("admin-1", "admin@campus.edu", "admin", "Dean Admin", 0)
        self.student = self._profile("student-1", "asha@campus.edu", "student", "Asha Rao", 1)
        self.other_student = self._profile("student-2", "ben@campus.edu", "student", None, 2)
        self.supervisor = self._profile("super-1", "sup@campus.edu", "supervisor", "Sam Super", 3)
        self.tech_a = self._profile("tech-a", "a@campus.edu", "technician", "Technician A", 4)
        self.tech_b = self._profile("tech-b", "b@campus.edu", "technician", "Technician B", 5)

        self.service = ComplaintService(
            complaint_repository=self.complaints,
            profile_repository=self.profiles,
            activity_repository=self.activity,
            notification_repository=self.notifications,
            settings_repository=self.tenant_settings,
            unit_of_work=self.uow,
            max_load=max_load,
            side_effect_mode=side_effect_mode
        )
        self.sla_service = SLAService(self.tenant_settings, self.config)
        self.analytics = ComplaintAnalyticsService(self.complaints, self.profiles, self.sla_service)
        self.notification_service = NotificationService(self.notifications, page_size=20)
        self.team_service = TeamService(self.profiles)

    def _profile(self, user_id, email, role, full_name, order):
        profile = UserProfile(
            id=user_id,
            tenant_id=TENANT,
            email=email,
            role=role,
            full_name=full_name,
            created_at=BASE_TIME + timedelta(minutes=order)
        )
        self.profiles.rows[user_id] = profile
        return profile

    def ctx(self, profile: UserProfile) -> RequestContext:
        return RequestContext(user_id=profile.id, tenant_id=TENANT, role=profile.role, correlation_id="test")

    def seed_complaint(
        self,
        *,
        priority: str = "medium",
        status: str = "open",
        assigned_to: Optional[str] = None,
        created_at: datetime = BASE_TIME,
        category: str = "plumbing",
        title: str = "Leaking tap",
        is_deleted: bool = False,
        tenant_id: str = TENANT,
        created_by: Optional[str] = "student-1"
    ) -> Complaint:
        complaint = Complaint(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            title=title,
            description="Water everywhere",
            category=category,
            priority=priority,
            status=status,
            created_at=created_at,
            updated_at=created_at,
            created_by=created_by,
            assigned_to=assigned_to,
            resolved_at=created_at + timedelta(hours=10) if status == "resolved" else None,
            is_deleted=is_deleted,
            deleted_at=created_at if is_deleted else None
        )
        self.complaints.rows[complaint.id] = complaint
        return complaint


@pytest.fixture
def world():
    return World()


@pytest.fixture
def transactional_world():
    return World(side_effect_mode="transactional")
