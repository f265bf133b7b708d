"""
SLA Infrastructure Repositories
=================================

Concrete implementations of repository interfaces using SQLAlchemy.
"""

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.sla.application import ITenantSettingsRepository
from src.sla.domain import TenantSettings
from src.sla.infrastructure.models import TenantSettingsModel
from src.core import RepositoryException


class SQLAlchemyTenantSettingsRepository(ITenantSettingsRepository):
    """
    SQLAlchemy implementation of the tenant settings repository.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_for_tenant(self, tenant_id: str) -> Optional[TenantSettings]:
        """Get the stored settings row for a tenant, if any."""
        model = await self._get_model(tenant_id)
        return self._to_domain(model) if model else None

    async def upsert(self, tenant_settings: TenantSettings) -> TenantSettings:
        """Insert or update a tenant's settings row."""
        try:
            model = await self._get_model(tenant_settings.tenant_id)
            if model is None:
                model = TenantSettingsModel(
                    id=UUID(tenant_settings.id) if tenant_settings.id else uuid4(),
                    tenant_id=tenant_settings.tenant_id
                )
                self._session.add(model)

            model.sla_critical_hours = tenant_settings.sla_critical_hours
            model.sla_high_hours = tenant_settings.sla_high_hours
            model.sla_medium_hours = tenant_settings.sla_medium_hours
            model.sla_low_hours = tenant_settings.sla_low_hours
            model.categories = list(tenant_settings.categories)
            if tenant_settings.updated_at:
                model.updated_at = tenant_settings.updated_at

            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException(
                f"Failed to save settings for tenant {tenant_settings.tenant_id}",
                {"error": str(e)}
            ) from e

        return self._to_domain(model)

    async def _get_model(self, tenant_id: str) -> Optional[TenantSettingsModel]:
        stmt = select(TenantSettingsModel).where(TenantSettingsModel.tenant_id == tenant_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def _to_domain(model: TenantSettingsModel) -> TenantSettings:
        return TenantSettings(
            id=str(model.id),
            tenant_id=model.tenant_id,
            sla_critical_hours=model.sla_critical_hours,
            sla_high_hours=model.sla_high_hours,
            sla_medium_hours=model.sla_medium_hours,
            sla_low_hours=model.sla_low_hours,
            categories=list(model.categories or []),
            updated_at=model.updated_at
        )
