"""
SLA Infrastructure Models
==========================

SQLAlchemy ORM models for the SLA module.

These are the database representations of our domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4

from sqlalchemy import String, DateTime, Integer, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database import Base


class TenantSettingsModel(Base):
    """
    Database model for TenantSettings entity.

    Maps to the 'tenant_settings' table. One row per tenant at most.
    """
    __tablename__ = "tenant_settings"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)

    # Resolution deadlines in hours
    sla_critical_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=24)
    sla_high_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=24)
    sla_medium_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=72)
    sla_low_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=120)

    categories: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
