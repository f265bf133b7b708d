"""
Complaint Dependencies
======================

FastAPI dependency providers for complaint services. All repositories of a
request share one session.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database import get_session
from src.complaints.application import (
    ComplaintService,
    ComplaintAnalyticsService,
    NotificationService,
    TeamService,
)
from src.complaints.infrastructure import (
    SQLAlchemyComplaintRepository,
    SQLAlchemyProfileRepository,
    SQLAlchemyActivityLogRepository,
    SQLAlchemyNotificationRepository,
    SQLAlchemyUnitOfWork,
)
from src.sla.application import SLAService
from src.sla.infrastructure import SQLAlchemyTenantSettingsRepository
from src.sla.interfaces.dependencies import get_sla_service
from src.config import settings


async def get_complaint_service(
    session: AsyncSession = Depends(get_session)
) -> ComplaintService:
    """Get complaint service instance."""
    return ComplaintService(
        complaint_repository=SQLAlchemyComplaintRepository(session),
        profile_repository=SQLAlchemyProfileRepository(session),
        activity_repository=SQLAlchemyActivityLogRepository(session),
        notification_repository=SQLAlchemyNotificationRepository(session),
        settings_repository=SQLAlchemyTenantSettingsRepository(session),
        unit_of_work=SQLAlchemyUnitOfWork(session),
        max_load=settings.max_technician_load,
        side_effect_mode=settings.side_effect_mode
    )


async def get_analytics_service(
    session: AsyncSession = Depends(get_session),
    sla_service: SLAService = Depends(get_sla_service)
) -> ComplaintAnalyticsService:
    """Get analytics service instance."""
    return ComplaintAnalyticsService(
        SQLAlchemyComplaintRepository(session),
        SQLAlchemyProfileRepository(session),
        sla_service
    )


async def get_notification_service(
    session: AsyncSession = Depends(get_session)
) -> NotificationService:
    return NotificationService(
        SQLAlchemyNotificationRepository(session),
        page_size=settings.notification_page_size
    )


async def get_team_service(
    session: AsyncSession = Depends(get_session)
) -> TeamService:
    return TeamService(SQLAlchemyProfileRepository(session))
