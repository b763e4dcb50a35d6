"""
Actions: power control from the dashboard.

Responsibilities:
- Confirmation workflow for destructive power actions
- Immediate start / console link actions
- Best-effort audit dispatch for every mutating operation
"""
