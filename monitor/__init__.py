"""
Monitor: status collection for the configured fleet.

Responsibilities:
- Short-lived resource cache in front of the panel client
- Stable uptime derivation across cache misses
- Parallel fan-out over both sources for every server
- Background refresh of the persisted live dashboard
"""
