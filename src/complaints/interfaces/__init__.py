"""
Complaints Interfaces Layer
===========================

Interface adapters (controllers) for the complaints module.

Contains:
- Controllers: FastAPI route handlers for complaints, notifications and team
- Dependencies: Service providers wired to the request's database session
"""

from src.complaints.interfaces.controllers import (
    router as complaints_router,
    notifications_router,
    team_router,
)

__all__ = ["complaints_router", "notifications_router", "team_router"]
