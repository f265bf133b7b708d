"""
Campus Complaints - Main Application
====================================

Multi-tenant maintenance complaint desk for campuses.

Modules:
- Complaints: Intake, assignment, status, soft delete, activity, notifications
- SLA: Per-priority resolution deadlines and compliance

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects and pure domain services
- Infrastructure: Database, policy file
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from src.config import settings
from src.core import ApplicationException

# Infrastructure
from src.infrastructure.database import init_database, close_database, create_tables
from src.sla.domain import SLAPolicy
from src.sla.infrastructure import SLAConfigManager

# Module Routers
from src.sla.interfaces import sla_router
from src.complaints.interfaces import complaints_router, notifications_router, team_router

# Middleware
from src.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
)

# Logging
from src.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database and create tables
    3. Load the default SLA policy and watch its file

    SHUTDOWN:
    1. Stop the policy file watcher
    2. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Complaint Service", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()

    # Create tables (for development - use migrations in production)
    logger.info("Creating database tables")
    try:
        await create_tables()
        app.state.database_ready = True
    except Exception as e:
        logger.warning(f"Database not available - running in degraded mode: {e}")
        app.state.database_ready = False

    logger.info("Loading SLA policy", extra={"path": settings.sla_config_path})
    sla_config_manager = SLAConfigManager(SLAPolicy(deadline_hours=settings.default_sla_hours()))
    sla_config_manager.load(settings.sla_config_path)
    sla_config_manager.start_watching()
    app.state.sla_config_manager = sla_config_manager

    logger.info("Complaint Service started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Complaint Service")
    sla_config_manager.stop_watching()
    await close_database()
    logger.info("Complaint Service shutdown complete")


app = FastAPI(
    title="Campus Complaints API",
    description="""
    ## Campus Maintenance Complaint Desk

    Students file complaints, admins assign them to technicians by workload,
    technicians move them to resolution, and every change is logged.

    ### Identity

    Every request carries `X-User-ID`, `X-Tenant-ID` and `X-User-Role`
    (`admin`, `student`, `technician`, `supervisor`).

    ### Default SLA deadlines (hours)

    | Priority | Hours |
    |----------|-------|
    | Critical | 24    |
    | High     | 24    |
    | Medium   | 72    |
    | Low      | 120   |

    Tenants can override these under `PUT /sla/policy`.
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)
app.state.settings = settings

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(complaints_router)
app.include_router(notifications_router)
app.include_router(team_router)
app.include_router(sla_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "database": "connected",
                        "sla_config": "watching"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    Returns service health status including database readiness and
    SLA policy state.
    """
    manager = getattr(request.app.state, "sla_config_manager", None)
    if manager is None:
        sla_config = "defaults"
    else:
        sla_config = "watching" if manager.is_watching else "loaded"

    database_ready = getattr(request.app.state, "database_ready", None)
    checks = {
        "database": {True: "connected", False: "unavailable"}.get(database_ready, "not_initialized"),
        "sla_config": sla_config
    }

    return {
        "status": "healthy" if database_ready is not False else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "Complaint Service",
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "complaints": {
                "prefix": "/complaints",
                "endpoints": [
                    "POST /complaints - File a complaint",
                    "GET /complaints - List visible complaints",
                    "GET /complaints/workload - Technician workload",
                    "POST /complaints/{id}/assign - Assign to technician",
                    "PATCH /complaints/{id}/status - Update status",
                    "DELETE /complaints/{id} - Soft delete",
                    "POST /complaints/{id}/restore - Restore"
                ]
            },
            "sla": {
                "prefix": "/sla",
                "endpoints": [
                    "GET /sla/policy - Tenant SLA policy",
                    "PUT /sla/policy - Save tenant SLA policy",
                    "GET /sla/complaints/{id} - Complaint SLA state"
                ]
            }
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
