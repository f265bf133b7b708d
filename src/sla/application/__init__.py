"""
SLA Application Layer
======================

Application layer for SLA evaluation and tenant policy.

Contains:
- Services: Orchestrate business logic and coordinate with repositories
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from src.sla.application.dto import (
    TenantSettingsUpdateDTO,
    SLAStatusResponse,
    ComplaintSLAResponse,
    TenantSettingsResponse,
)
from src.sla.application.services import (
    SLAService,
    ComplianceSummary,
    ITenantSettingsRepository,
    ISLAConfigProvider,
)

__all__ = [
    # DTOs
    "TenantSettingsUpdateDTO",
    "SLAStatusResponse",
    "ComplaintSLAResponse",
    "TenantSettingsResponse",
    # Services
    "SLAService",
    "ComplianceSummary",
    # Repository Interfaces
    "ITenantSettingsRepository",
    "ISLAConfigProvider",
]
