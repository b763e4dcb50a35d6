"""
Control Service Launcher

Starts the game fleet dashboard control service.

This service provides:
- Aggregated status for every configured server (telemetry + panel)
- Dashboard interaction endpoints for the chat adapter
- Confirmation-gated power actions
- Background refresh of the live dashboard

Usage:
------
python scripts/run_control_service.py

Environment Variables:
----------------------
FLEET_PANEL_URL: Panel base URL
FLEET_PANEL_TOKEN: Default panel client token used for polling
FLEET_SERVERS_FILE: servers.json path (default: ./servers.json or ./config/servers.json)
FLEET_TOKENS_FILE: per-user panel tokens (default: ./panelTokens.json or ./config/panelTokens.json)
FLEET_API_PORT: HTTP port (default: 8010)
FLEET_API_BIND_HOST: Bind address (default: 0.0.0.0)
FLEET_LOG_LEVEL / FLEET_LOG_FILE: Logging level and optional log file
"""

import sys
from pathlib import Path

import uvicorn

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from shared import config
from shared.errors import ConfigurationError
from shared.logging_config import setup_logging
from control.context import context_from_environment
from control.service import create_app


def main():
    """Main entrypoint for the control service."""
    logger = setup_logging("control", level=config.LOG_LEVEL, log_file=config.LOG_FILE)

    try:
        context = context_from_environment()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    logger.info(f"Panel: {config.PANEL_URL or '(not configured)'}")
    logger.info(f"Servers: {', '.join(server.id for server in context.servers) or '(none)'}")
    logger.info(f"Bind Address: {config.API_BIND_HOST}:{config.API_PORT}")

    app = create_app(context)
    try:
        uvicorn.run(app, host=config.API_BIND_HOST, port=config.API_PORT, log_config=None)
    except KeyboardInterrupt:
        logger.info("Control service stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
