"""
Request Context
===============

Explicit caller identity passed into every application service call.
"""

from dataclasses import dataclass

from src.config import UserRole, VALID_ROLES


@dataclass(frozen=True)
class RequestContext:
    """Who is performing an operation, and for which tenant."""

    user_id: str
    tenant_id: str
    role: str
    correlation_id: str = "unknown"

    def __post_init__(self):
        if not self.user_id:
            raise ValueError("user_id is required")
        if not self.tenant_id:
            raise ValueError("tenant_id is required")
        if self.role not in VALID_ROLES:
            raise ValueError(f"role must be one of {VALID_ROLES}")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    @property
    def is_technician(self) -> bool:
        return self.role == UserRole.TECHNICIAN

    @property
    def sees_whole_tenant(self) -> bool:
        """Admins and supervisors monitor every complaint in the tenant."""
        return self.role in (UserRole.ADMIN, UserRole.SUPERVISOR)
