"""
Dashboard state model.

Resolves the state of a dashboard instance, in order:

1. the in-memory index (lost on restart)
2. the persisted session store
3. the widget snapshot echoed back by the chat adapter (one-time import,
   written back to the store)
4. default state

Whatever the source, the result is pruned against the current server list.
"""

import logging
from typing import Optional, Sequence

from dashboard import state as state_ops
from dashboard.state import DashboardIndex, DashboardState, build_default_state, prune_state
from dashboard.widgets import WidgetRow, state_from_widgets
from shared.custom_ids import ViewMode
from shared.servers import ServerDescriptor

logger = logging.getLogger(__name__)


class DashboardStateModel:
    """Owns dashboard state lookup, reconstruction and re-indexing"""

    def __init__(
        self,
        servers: Sequence[ServerDescriptor],
        index: Optional[DashboardIndex] = None,
        session_store=None,
    ):
        self.servers = list(servers)
        self.index = index if index is not None else DashboardIndex()
        self.session_store = session_store

    def resolve(
        self,
        instance_id: str,
        widget_snapshot: Optional[Sequence[WidgetRow]] = None,
    ) -> DashboardState:
        state = self.index.get(instance_id)
        if state is not None:
            return self._pruned(instance_id, state)

        if self.session_store is not None:
            try:
                state = self.session_store.load(instance_id)
            except Exception as e:
                logger.warning(f"Could not load dashboard session {instance_id}: {e}")
                state = None
            if state is not None:
                logger.debug(f"Dashboard {instance_id} restored from session store")
                state = prune_state(state, self.servers)
                self.index.put(instance_id, state)
                return state

        if widget_snapshot:
            state = state_from_widgets(widget_snapshot, self.servers)
            logger.info(
                f"Dashboard {instance_id} reconstructed from widgets "
                f"(selected={state.selected_server_id})"
            )
            self.remember(instance_id, state)
            return state

        return build_default_state()

    def _pruned(self, instance_id: str, state: DashboardState) -> DashboardState:
        pruned = prune_state(state, self.servers)
        if pruned is not state:
            self.index.put(instance_id, pruned)
        return pruned

    def set_selected(self, state: DashboardState, server_id: Optional[str]) -> DashboardState:
        return state_ops.set_selected(state, server_id, self.servers)

    def set_view(self, state: DashboardState, server_id: str, view: ViewMode) -> DashboardState:
        return state_ops.set_view(state, server_id, view)

    def remember(self, instance_id: str, state: DashboardState):
        """Re-index a state under its dashboard instance id and persist it"""
        self.index.put(instance_id, state)
        if self.session_store is None:
            return
        try:
            self.session_store.save(instance_id, state)
        except Exception as e:
            logger.warning(f"Could not persist dashboard session {instance_id}: {e}")

    def forget(self, instance_id: str):
        self.index.discard(instance_id)
        if self.session_store is not None:
            self.session_store.delete(instance_id)
