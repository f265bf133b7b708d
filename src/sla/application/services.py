"""
SLA Application Services
=========================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional
from abc import ABC, abstractmethod

from src.sla.domain import SLACalculator, SLAPolicy, SLAStatus, TenantSettings
from src.config import ComplaintStatus
from src.core import RequestContext, PermissionDeniedException


def round_half_up(value: float) -> int:
    """Round halves up, as dashboards display them."""
    return math.floor(value + 0.5)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ITenantSettingsRepository(ABC):
    """Interface for tenant settings data access."""

    @abstractmethod
    async def get_for_tenant(self, tenant_id: str) -> Optional[TenantSettings]:
        """Get the stored settings row for a tenant, if any."""

    @abstractmethod
    async def upsert(self, tenant_settings: TenantSettings) -> TenantSettings:
        """Insert or update a tenant's settings row."""


class ISLAConfigProvider(ABC):
    """Interface for default SLA policy access."""

    @abstractmethod
    def get_policy(self) -> SLAPolicy:
        """Get the policy applied to tenants without their own settings."""


@dataclass(frozen=True)
class ComplianceSummary:
    """SLA compliance figures over a snapshot of complaints."""
    evaluated_count: int
    compliant_count: int
    sla_compliance_percent: int
    resolved_count: int
    avg_resolution_hours: int


# ========== Application Services ==========

class SLAService:
    """
    Service for tenant SLA policy and complaint SLA evaluation.

    Coordinates between domain logic and data access. Evaluations are
    recomputed on every call because they depend on the current time.
    """

    def __init__(
        self,
        settings_repository: ITenantSettingsRepository,
        config_provider: ISLAConfigProvider
    ):
        self._settings_repo = settings_repository
        self._config_provider = config_provider

    async def get_policy(self, tenant_id: str) -> SLAPolicy:
        """
        Resolve the deadline table for a tenant.

        Args:
            tenant_id: Tenant identifier

        Returns:
            Default policy overlaid with the tenant's stored hours
        """
        base = self._config_provider.get_policy()
        stored = await self._settings_repo.get_for_tenant(tenant_id)
        if stored is None:
            return base
        return stored.apply_to(base)

    async def get_tenant_settings(self, ctx: RequestContext) -> tuple[TenantSettings, bool]:
        """
        Get the caller's tenant settings.

        Returns:
            Tuple of (settings, is_default) where is_default means nothing
            has been saved for the tenant yet
        """
        stored = await self._settings_repo.get_for_tenant(ctx.tenant_id)
        if stored is not None:
            return stored, False
        return TenantSettings.from_policy(ctx.tenant_id, self._config_provider.get_policy()), True

    async def update_tenant_settings(
        self,
        ctx: RequestContext,
        sla_critical_hours: int,
        sla_high_hours: int,
        sla_medium_hours: int,
        sla_low_hours: int,
        categories: list[str]
    ) -> TenantSettings:
        """
        Save SLA hours and categories for the caller's tenant.

        Raises:
            PermissionDeniedException: Caller is not an admin
            ValueError: Hours below one
        """
        if not ctx.is_admin:
            raise PermissionDeniedException("update tenant settings", ctx.role)

        stored = await self._settings_repo.get_for_tenant(ctx.tenant_id)
        updated = TenantSettings(
            id=stored.id if stored else None,
            tenant_id=ctx.tenant_id,
            sla_critical_hours=sla_critical_hours,
            sla_high_hours=sla_high_hours,
            sla_medium_hours=sla_medium_hours,
            sla_low_hours=sla_low_hours,
            categories=categories,
        )
        updated.touch()
        return await self._settings_repo.upsert(updated)

    @staticmethod
    def evaluate(complaint: Any, policy: SLAPolicy, now: Optional[datetime] = None) -> SLAStatus:
        """Evaluate any object exposing created_at, priority and status."""
        return SLACalculator.evaluate(
            complaint.created_at,
            complaint.priority,
            complaint.status,
            policy,
            now
        )

    @staticmethod
    def summarize_compliance(
        complaints: Iterable[Any],
        policy: SLAPolicy,
        now: Optional[datetime] = None
    ) -> ComplianceSummary:
        """
        Compute SLA compliance and average resolution time.

        Compliance covers complaints that have left the open state; resolved
        ones always count as compliant.
        """
        current_time = now or datetime.now(timezone.utc)
        evaluated = 0
        compliant = 0
        resolved_hours = []

        for complaint in complaints:
            if getattr(complaint, "is_deleted", False):
                continue

            if complaint.status != ComplaintStatus.OPEN:
                evaluated += 1
                if not SLAService.evaluate(complaint, policy, current_time).overdue:
                    compliant += 1

            resolved_at = getattr(complaint, "resolved_at", None)
            if complaint.status == ComplaintStatus.RESOLVED and resolved_at:
                delta = resolved_at - complaint.created_at
                resolved_hours.append(delta.total_seconds() / 3600)

        percent = round_half_up(compliant / evaluated * 100) if evaluated else 100
        avg_hours = round_half_up(sum(resolved_hours) / len(resolved_hours)) if resolved_hours else 0

        return ComplianceSummary(
            evaluated_count=evaluated,
            compliant_count=compliant,
            sla_compliance_percent=percent,
            resolved_count=len(resolved_hours),
            avg_resolution_hours=avg_hours
        )
