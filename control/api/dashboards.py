"""
Dashboard API

Interaction endpoints called by the chat adapter. Each one resolves the
dashboard's state (index, session store, or the echoed widget snapshot),
applies the change and returns the fresh render.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from control.api import get_context
from control.context import FleetContext
from dashboard.widgets import WidgetRow
from shared.custom_ids import ViewMode

router = APIRouter(prefix="/dashboards", tags=["dashboards"])


class OpenRequest(BaseModel):
    instance_id: Optional[str] = Field(default=None, min_length=1)
    actor_id: Optional[str] = None


class SelectRequest(BaseModel):
    server_id: Optional[str] = None
    actor_id: Optional[str] = None
    widget_snapshot: Optional[List[WidgetRow]] = None


class ViewRequest(BaseModel):
    view: ViewMode
    actor_id: Optional[str] = None
    widget_snapshot: Optional[List[WidgetRow]] = None


@router.post("")
def open_dashboard(request: OpenRequest, ctx: FleetContext = Depends(get_context)):
    rendered = ctx.dashboards.open(
        request.instance_id,
        token=ctx.credentials.resolve(request.actor_id),
    )
    return rendered.to_dict()


@router.get("/{instance_id}")
def show_dashboard(instance_id: str, force_refresh: bool = False, ctx: FleetContext = Depends(get_context)):
    return ctx.dashboards.show(instance_id, force_refresh=force_refresh).to_dict()


@router.get("/{instance_id}/latest")
def latest_render(instance_id: str, ctx: FleetContext = Depends(get_context)):
    rendered = ctx.board.latest(instance_id)
    if rendered is None:
        raise HTTPException(status_code=404, detail=f"Dashboard {instance_id} has not been rendered yet")
    return rendered.to_dict()


@router.post("/{instance_id}/select")
def select_server(instance_id: str, request: SelectRequest, ctx: FleetContext = Depends(get_context)):
    rendered = ctx.dashboards.select(
        instance_id,
        request.server_id,
        widget_snapshot=request.widget_snapshot,
        token=ctx.credentials.resolve(request.actor_id),
    )
    return rendered.to_dict()


@router.post("/{instance_id}/view")
def set_view(instance_id: str, request: ViewRequest, ctx: FleetContext = Depends(get_context)):
    rendered = ctx.dashboards.set_view(
        instance_id,
        request.view,
        widget_snapshot=request.widget_snapshot,
        token=ctx.credentials.resolve(request.actor_id),
    )
    if rendered is None:
        return {
            "stage": "failed",
            "reason": "no_selection",
            "message": "Select a server first.",
        }
    return rendered.to_dict()
