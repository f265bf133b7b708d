"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="campus-complaints", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/complaints",
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== SLA Policy ==========
    sla_config_path: Path = Field(
        default=Path("sla_config.yaml"),
        description="Path to the default SLA policy YAML file"
    )
    sla_critical_hours: int = Field(default=24, description="Default deadline for critical complaints", ge=1)
    sla_high_hours: int = Field(default=24, description="Default deadline for high complaints", ge=1)
    sla_medium_hours: int = Field(default=72, description="Default deadline for medium complaints", ge=1)
    sla_low_hours: int = Field(default=120, description="Default deadline for low complaints", ge=1)

    # ========== Assignment ==========
    max_technician_load: int = Field(
        default=10,
        description="Maximum active complaints a technician may hold",
        ge=1
    )

    # ========== Side effects ==========
    side_effect_mode: str = Field(
        default="best_effort",
        description="How activity/notification writes behave on failure (best_effort or transactional)"
    )
    notification_page_size: int = Field(
        default=20,
        description="Number of notifications returned per request",
        ge=1,
        le=200
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("side_effect_mode")
    @classmethod
    def validate_side_effect_mode(cls, v: str) -> str:
        """Ensure side effect mode is a known mode."""
        allowed = {"best_effort", "transactional"}
        if v not in allowed:
            raise ValueError(f"side_effect_mode must be one of {allowed}")
        return v

    def default_sla_hours(self) -> dict:
        """Per-priority deadline hours from the environment."""
        return {
            Priority.CRITICAL: self.sla_critical_hours,
            Priority.HIGH: self.sla_high_hours,
            Priority.MEDIUM: self.sla_medium_hours,
            Priority.LOW: self.sla_low_hours,
        }


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# ========== Constants ==========

class Priority(str):
    """Complaint priority levels."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ComplaintStatus(str):
    """Complaint lifecycle statuses."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class UserRole(str):
    """Roles a campus user can hold."""
    ADMIN = "admin"
    STUDENT = "student"
    TECHNICIAN = "technician"
    SUPERVISOR = "supervisor"


class NotificationType(str):
    """Notification type tags."""
    CREATED = "created"
    ASSIGNED = "assigned"
    RESOLVED = "resolved"
    INFO = "info"


class ActivityAction(str):
    """Activity log action labels."""
    CREATED = "Complaint created"
    ASSIGNED = "Assigned to technician"
    STATUS_UPDATED = "Status updated"
    DELETED = "Complaint deleted"
    RESTORED = "Complaint restored"


class SideEffectMode(str):
    """Failure semantics for secondary writes."""
    BEST_EFFORT = "best_effort"
    TRANSACTIONAL = "transactional"


# ========== Lists for validation ==========

VALID_PRIORITIES = [
    Priority.CRITICAL, Priority.HIGH,
    Priority.MEDIUM, Priority.LOW
]
VALID_STATUSES = [
    ComplaintStatus.OPEN, ComplaintStatus.IN_PROGRESS, ComplaintStatus.RESOLVED
]
ACTIVE_STATUSES = [ComplaintStatus.OPEN, ComplaintStatus.IN_PROGRESS]
VALID_ROLES = [
    UserRole.ADMIN, UserRole.STUDENT,
    UserRole.TECHNICIAN, UserRole.SUPERVISOR
]
VALID_NOTIFICATION_TYPES = [
    NotificationType.CREATED, NotificationType.ASSIGNED,
    NotificationType.RESOLVED, NotificationType.INFO
]

# Status order used to decide whether a transition moves forward
STATUS_ORDER = {
    ComplaintStatus.OPEN: 0,
    ComplaintStatus.IN_PROGRESS: 1,
    ComplaintStatus.RESOLVED: 2,
}


# Global settings instance
settings = get_settings()
