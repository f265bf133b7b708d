"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class PermissionDeniedException(ApplicationException):
    """Exception when the caller's role does not allow an operation."""

    def __init__(self, action: str, role: str, details: Optional[dict] = None):
        self.action = action
        self.role = role
        super().__init__(
            f"Role '{role}' is not allowed to {action}",
            details or {"action": action, "role": role}
        )


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ConflictException(DomainException):
    """Exception when an operation conflicts with the current state."""


class AssignmentCapacityException(ConflictException):
    """Raised when a technician is already at the active caseload cap."""

    def __init__(
        self,
        technician_id: str,
        active_count: int,
        max_load: int,
        details: Optional[dict] = None
    ):
        self.technician_id = technician_id
        self.active_count = active_count
        self.max_load = max_load
        super().__init__(
            f"Technician {technician_id} already has {active_count} active complaints (limit {max_load})",
            details or {
                "technician_id": technician_id,
                "active_count": active_count,
                "max_load": max_load
            }
        )


class InvalidStatusTransitionException(ConflictException):
    """Raised when a complaint cannot move to the requested status."""

    def __init__(
        self,
        complaint_id: str,
        current_status: str,
        requested_status: str,
        details: Optional[dict] = None
    ):
        self.complaint_id = complaint_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Complaint {complaint_id} cannot move from {current_status} to {requested_status}",
            details or {
                "complaint_id": complaint_id,
                "current_status": current_status,
                "requested_status": requested_status
            }
        )


class SideEffectException(ApplicationException):
    """Raised when a secondary write fails under transactional semantics."""

    def __init__(self, step: str, message: str, details: Optional[dict] = None):
        self.step = step
        super().__init__(f"{step}: {message}", details or {"step": step})
