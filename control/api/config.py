"""
Configuration API

- GET/PUT/DELETE /config/dashboard: which chat message is the live dashboard
- GET/PUT /config/audit: which chat channel receives audit entries

Configuring the live dashboard renders it once and re-enables the
background refresher.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from actions.audit import AuditEvent
from control.api import get_context
from control.context import FleetContext
from dashboard.models import AuditSeverity
from dashboard.store import AuditConfig, DashboardConfig

router = APIRouter(prefix="/config", tags=["config"])


class DashboardConfigRequest(BaseModel):
    guild_id: str = Field(min_length=1)
    channel_id: str = Field(min_length=1)
    message_id: str = Field(min_length=1)
    configured_by: Optional[str] = None


class AuditConfigRequest(BaseModel):
    channel_id: str = Field(min_length=1)
    actor_id: Optional[str] = None


@router.get("/dashboard")
def get_dashboard_config(ctx: FleetContext = Depends(get_context)):
    dashboard_config = ctx.config_store.load_dashboard_config()
    if dashboard_config is None:
        raise HTTPException(status_code=404, detail="No live dashboard configured")
    return {
        "guild_id": dashboard_config.guild_id,
        "channel_id": dashboard_config.channel_id,
        "message_id": dashboard_config.message_id,
        "configured_by": dashboard_config.configured_by,
        "refresher_enabled": ctx.refresher.enabled,
        "refresher_error": ctx.refresher.last_error,
    }


@router.put("/dashboard")
def configure_dashboard(request: DashboardConfigRequest, ctx: FleetContext = Depends(get_context)):
    dashboard_config = DashboardConfig(
        guild_id=request.guild_id,
        channel_id=request.channel_id,
        message_id=request.message_id,
        configured_by=request.configured_by,
    )
    rendered = ctx.dashboards.open(
        dashboard_config.instance_id,
        force_refresh=True,
        token=ctx.credentials.resolve(request.configured_by),
    )
    ctx.config_store.save_dashboard_config(dashboard_config)
    ctx.refresher.reconfigure()
    ctx.audit.dispatch(AuditEvent(
        description=f"Configured dashboard in <#{dashboard_config.channel_id}>.",
        severity=AuditSeverity.PRIMARY,
        actor_id=request.configured_by,
        emoji="🛠️",
    ))
    return {"status": "configured", "dashboard": rendered.to_dict()}


@router.delete("/dashboard")
def clear_dashboard(ctx: FleetContext = Depends(get_context)):
    dashboard_config = ctx.config_store.load_dashboard_config()
    ctx.config_store.clear_dashboard_config()
    if dashboard_config is not None:
        ctx.state_model.forget(dashboard_config.instance_id)
    return {"status": "cleared"}


@router.get("/audit")
def get_audit_config(ctx: FleetContext = Depends(get_context)):
    audit_config = ctx.config_store.load_audit_config()
    if audit_config is None:
        raise HTTPException(status_code=404, detail="No audit channel configured")
    return {"channel_id": audit_config.channel_id}


@router.put("/audit")
def configure_audit(request: AuditConfigRequest, ctx: FleetContext = Depends(get_context)):
    ctx.config_store.save_audit_config(AuditConfig(channel_id=request.channel_id))
    ctx.audit.dispatch(AuditEvent(
        description=f"Set the audit channel to <#{request.channel_id}>.",
        severity=AuditSeverity.PRIMARY,
        actor_id=request.actor_id,
        emoji="📢",
    ))
    return {"status": "configured", "channel_id": request.channel_id}
