"""
Power action API

- POST /dashboards/{instance_id}/actions/{action}: request an action for the
  selected server (console, start, restart, stop, kill)
- POST /confirmations: submit the typed confirmation for a pending action

Workflow failures are answered with 200 and stage="failed" so the adapter
can show the message to the user.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from control.api import get_context
from control.context import FleetContext
from dashboard.widgets import WidgetRow
from shared.custom_ids import PowerAction

router = APIRouter(tags=["actions"])


class ActionRequest(BaseModel):
    actor_id: Optional[str] = None
    widget_snapshot: Optional[List[WidgetRow]] = None


class ConfirmRequest(BaseModel):
    token: str
    text: Optional[str] = None
    actor_id: Optional[str] = None


@router.post("/dashboards/{instance_id}/actions/{action}")
def request_action(
    instance_id: str,
    action: PowerAction,
    request: ActionRequest,
    ctx: FleetContext = Depends(get_context),
):
    outcome = ctx.workflow.request(instance_id, action, request.actor_id, request.widget_snapshot)
    return outcome.to_dict()


@router.post("/confirmations")
def submit_confirmation(request: ConfirmRequest, ctx: FleetContext = Depends(get_context)):
    outcome = ctx.workflow.confirm(request.token, request.text, request.actor_id)
    return outcome.to_dict()
