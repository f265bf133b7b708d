"""
SLA Infrastructure Layer
=========================

Infrastructure implementations for SLA policy:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer
- External: YAML policy file with hot reload
"""

from src.sla.infrastructure.models import TenantSettingsModel
from src.sla.infrastructure.repositories import SQLAlchemyTenantSettingsRepository
from src.sla.infrastructure.external import SLAConfigManager, ConfigFileHandler

__all__ = [
    "TenantSettingsModel",
    "SQLAlchemyTenantSettingsRepository",
    "SLAConfigManager",
    "ConfigFileHandler",
]
