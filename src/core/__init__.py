"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from src.core.exceptions import (
    ApplicationException,
    DomainException,
    RepositoryException,
    ValidationException,
    PermissionDeniedException,
    ResourceNotFoundException,
    ConfigurationException,
    ConflictException,
    AssignmentCapacityException,
    InvalidStatusTransitionException,
    SideEffectException,
)
from src.core.context import RequestContext

__all__ = [
    "ApplicationException",
    "DomainException",
    "RepositoryException",
    "ValidationException",
    "PermissionDeniedException",
    "ResourceNotFoundException",
    "ConfigurationException",
    "ConflictException",
    "AssignmentCapacityException",
    "InvalidStatusTransitionException",
    "SideEffectException",
    "RequestContext",
]
