"""
SLA Domain Entities
====================

Pure Python domain entities for tenant SLA configuration.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from src.config import Priority
from src.sla.domain.value_objects import SLAPolicy


@dataclass
class TenantSettings:
    """
    Per-tenant configuration owned by admins.

    A tenant without a stored row uses the default policy and accepts any
    complaint category.
    """

    tenant_id: str
    sla_critical_hours: int
    sla_high_hours: int
    sla_medium_hours: int
    sla_low_hours: int
    categories: List[str] = field(default_factory=list)

    id: Optional[str] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate settings on initialization."""
        for name in ("sla_critical_hours", "sla_high_hours", "sla_medium_hours", "sla_low_hours"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")
        self.categories = normalize_categories(self.categories)

    def apply_to(self, policy: SLAPolicy) -> SLAPolicy:
        """Overlay this tenant's hours on a base policy."""
        return policy.overlay({
            Priority.CRITICAL: self.sla_critical_hours,
            Priority.HIGH: self.sla_high_hours,
            Priority.MEDIUM: self.sla_medium_hours,
            Priority.LOW: self.sla_low_hours,
        })

    def accepts_category(self, category: str) -> bool:
        """An empty category list accepts anything."""
        return not self.categories or category.strip().lower() in self.categories

    def touch(self, timestamp: Optional[datetime] = None) -> None:
        self.updated_at = timestamp or datetime.now(timezone.utc)

    @classmethod
    def from_policy(cls, tenant_id: str, policy: SLAPolicy, categories: Optional[List[str]] = None) -> "TenantSettings":
        return cls(
            tenant_id=tenant_id,
            sla_critical_hours=policy.hours_for(Priority.CRITICAL),
            sla_high_hours=policy.hours_for(Priority.HIGH),
            sla_medium_hours=policy.hours_for(Priority.MEDIUM),
            sla_low_hours=policy.hours_for(Priority.LOW),
            categories=categories or [],
        )


def normalize_categories(categories: List[str]) -> List[str]:
    """Lower-case, strip, drop blanks and duplicates, keep first-seen order."""
    seen = []
    for raw in categories:
        name = raw.strip().lower()
        if name and name not in seen:
            seen.append(name)
    return seen
