"""
Audit API

- GET /audit: most recent audit log entries, newest first
"""

from fastapi import APIRouter, Depends, Query

from control.api import get_context
from control.context import FleetContext

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("")
def recent_audit(limit: int = Query(default=50, ge=1, le=500), ctx: FleetContext = Depends(get_context)):
    return {"entries": ctx.audit_log.recent(limit)}
