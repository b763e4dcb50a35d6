"""
Dashboard: per-instance view state and its presentation contract.

Responsibilities:
- Dashboard state (selected server, per-server view) and its resolution
- Widget snapshot schema, widget builder and the reconstruction importer
- Platform-neutral status cards
- Persistence: session records, live dashboard/audit config, audit log
"""
