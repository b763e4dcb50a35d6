"""
Dashboard state and its pure updates.

Every update returns a new DashboardState; callers re-index the result under
the dashboard instance id themselves.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from shared.custom_ids import ViewMode
from shared.servers import ServerDescriptor

DEFAULT_VIEW = ViewMode.STATUS


@dataclass(frozen=True)
class DashboardState:
    selected_server_id: Optional[str] = None
    server_views: Dict[str, ViewMode] = field(default_factory=dict)

    def view_for(self, server_id: str, default: ViewMode = DEFAULT_VIEW) -> ViewMode:
        return self.server_views.get(server_id, default)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selected_server_id": self.selected_server_id,
            "server_views": {server_id: view.value for server_id, view in self.server_views.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DashboardState":
        views = {}
        for server_id, view in (data.get("server_views") or {}).items():
            try:
                views[str(server_id)] = ViewMode(view)
            except ValueError:
                continue
        return cls(selected_server_id=data.get("selected_server_id") or None, server_views=views)


def build_default_state() -> DashboardState:
    return DashboardState()


def prune_state(state: DashboardState, servers: Sequence[ServerDescriptor]) -> DashboardState:
    """Drop views for servers no longer configured and a stale selection"""
    valid_ids = {server.id for server in servers}
    selected = state.selected_server_id if state.selected_server_id in valid_ids else None
    views = {server_id: view for server_id, view in state.server_views.items() if server_id in valid_ids}
    if selected == state.selected_server_id and len(views) == len(state.server_views):
        return state
    return DashboardState(selected_server_id=selected, server_views=views)


def set_selected(
    state: DashboardState,
    server_id: Optional[str],
    servers: Sequence[ServerDescriptor],
) -> DashboardState:
    """Select a server (or clear the selection); unknown ids clear it"""
    valid_ids = {server.id for server in servers}
    selected = server_id if server_id in valid_ids else None
    views = dict(state.server_views)
    if selected is not None and selected not in views:
        views[selected] = DEFAULT_VIEW
    return prune_state(DashboardState(selected_server_id=selected, server_views=views), servers)


def set_view(state: DashboardState, server_id: str, view: ViewMode) -> DashboardState:
    views = dict(state.server_views)
    views[server_id] = ViewMode(view)
    return DashboardState(selected_server_id=state.selected_server_id, server_views=views)


class DashboardIndex:
    """
    In-memory dashboard index, keyed by dashboard instance id.
    Volatile: empty again after a process restart.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._states: Dict[str, DashboardState] = {}

    def get(self, instance_id: str) -> Optional[DashboardState]:
        with self._lock:
            return self._states.get(instance_id)

    def put(self, instance_id: str, state: DashboardState):
        with self._lock:
            self._states[instance_id] = state

    def discard(self, instance_id: str):
        with self._lock:
            self._states.pop(instance_id, None)

    def __contains__(self, instance_id: str) -> bool:
        with self._lock:
            return instance_id in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)
