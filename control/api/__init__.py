"""FastAPI routers for the control service."""

from fastapi import Request

from control.context import FleetContext


def get_context(request: Request) -> FleetContext:
    """Component wiring attached to the app at startup (see control.service)"""
    return request.app.state.fleet
