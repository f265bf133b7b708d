"""
Request Context Dependency
==========================

Builds the caller's RequestContext from identity headers.

Authentication happens upstream (gateway / auth proxy); this service trusts
the forwarded headers.
"""

from typing import Optional

from fastapi import Header, HTTPException, Request, status

from src.core import RequestContext


async def get_request_context(
    request: Request,
    x_user_id: Optional[str] = Header(None, description="Caller's profile ID"),
    x_tenant_id: Optional[str] = Header(None, description="Caller's tenant (campus)"),
    x_user_role: Optional[str] = Header(None, description="admin | student | technician | supervisor")
) -> RequestContext:
    """Resolve who is calling; 401 when identity headers are missing."""
    if not x_user_id or not x_tenant_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-ID, X-Tenant-ID and X-User-Role headers are required"
        )

    try:
        return RequestContext(
            user_id=x_user_id,
            tenant_id=x_tenant_id,
            role=x_user_role.lower(),
            correlation_id=getattr(request.state, "correlation_id", "unknown")
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
