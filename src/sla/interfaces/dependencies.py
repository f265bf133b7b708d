"""
SLA Dependencies
================

FastAPI dependency providers for SLA services.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database import get_session
from src.sla.application import SLAService, ISLAConfigProvider
from src.sla.domain import SLAPolicy
from src.sla.infrastructure import SQLAlchemyTenantSettingsRepository, SLAConfigManager
from src.config import settings


def get_config_provider(request: Request) -> ISLAConfigProvider:
    """Policy provider loaded at startup; environment defaults when absent."""
    manager = getattr(request.app.state, "sla_config_manager", None)
    if manager is None:
        manager = SLAConfigManager(SLAPolicy(deadline_hours=settings.default_sla_hours()))
    return manager


async def get_sla_service(
    session: AsyncSession = Depends(get_session),
    config_provider: ISLAConfigProvider = Depends(get_config_provider)
) -> SLAService:
    """Get SLA service instance."""
    return SLAService(SQLAlchemyTenantSettingsRepository(session), config_provider)
