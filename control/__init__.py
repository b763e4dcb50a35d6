"""
Control: HTTP control surface for the chat adapter.

Responsibilities:
- FastAPI service exposing status, dashboard interactions and power actions
- Wiring of every component, constructed once at startup
- Live dashboard and audit channel configuration
"""
