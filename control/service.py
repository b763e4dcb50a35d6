"""
Control Service Entrypoint

FastAPI application for the game fleet dashboard.
Includes all API routers, component wiring and the background refresher.
"""

import logging
from typing import Optional

from fastapi import FastAPI

from control.api import actions, audit, config as config_api, dashboards, status
from control.context import FleetContext, context_from_environment
from shared import config

logger = logging.getLogger(__name__)


def create_app(context: Optional[FleetContext] = None, start_refresher: Optional[bool] = None) -> FastAPI:
    """
    Build the control service.

    Args:
        context: Pre-built component wiring (tests); built from FLEET_* settings on startup if None
        start_refresher: Run the background refresher (default FLEET_REFRESHER_ENABLED)
    """
    app = FastAPI(title="Game Fleet Dashboard Control Service")

    app.include_router(status.router)
    app.include_router(dashboards.router)
    app.include_router(actions.router)
    app.include_router(config_api.router)
    app.include_router(audit.router)

    app.state.fleet = context
    run_refresher = config.REFRESHER_ENABLED if start_refresher is None else start_refresher

    @app.on_event("startup")
    def startup_init():
        """Build components and start the refresher"""
        if app.state.fleet is None:
            app.state.fleet = context_from_environment()

        if run_refresher:
            logger.info("Starting dashboard refresher...")
            app.state.fleet.refresher.start()

        logger.info(f"Control service startup complete ({len(app.state.fleet.servers)} servers)")

    @app.on_event("shutdown")
    def shutdown_cleanup():
        """Stop background work on shutdown"""
        if app.state.fleet is not None:
            app.state.fleet.shutdown()
        logger.info("Control service shutdown complete")

    @app.get("/")
    def root():
        return {
            "service": "fleet-control",
            "message": "Game fleet dashboard control service running",
            "servers": [server.id for server in app.state.fleet.servers] if app.state.fleet else [],
        }

    return app


app = create_app()
