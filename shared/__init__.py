"""
Shared utilities for the game fleet dashboard components.

This package contains common functionality used across sources, monitor,
dashboard, actions and control:
- config: environment-driven settings
- logging_config: process-wide logging setup
- errors: failure taxonomy shared by every component
- servers: server descriptor loading (servers.json)
- credentials: per-user panel token resolution
- custom_ids: widget custom-id and confirmation token grammar
"""
