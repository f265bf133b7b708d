"""
SLA Domain Layer
================

Domain layer for SLA evaluation.

Contains:
- Entities: TenantSettings
- Value Objects: SLAPolicy, SLAStatus
- Domain Services: Stateless business logic (SLACalculator)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from src.sla.domain.entities import TenantSettings, normalize_categories
from src.sla.domain.value_objects import (
    DEFAULT_DEADLINE_HOURS,
    SLACalculator,
    SLAPolicy,
    SLAStatus,
)

__all__ = [
    # Entities
    "TenantSettings",
    "normalize_categories",
    # Value Objects & Services
    "DEFAULT_DEADLINE_HOURS",
    "SLACalculator",
    "SLAPolicy",
    "SLAStatus",
]
