"""
Dashboard service: one aggregation + render cycle per interaction.

Every interaction resolves the dashboard's state, applies the change,
re-indexes the new state, aggregates statuses and hands the rendered
dashboard to the publisher (the chat adapter's side of the contract).
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from dashboard.render import StatusCard, build_status_cards
from dashboard.state import DashboardState, build_default_state
from dashboard.widgets import WidgetRow, build_view_components
from shared.custom_ids import ViewMode
from shared.servers import ServerDescriptor

logger = logging.getLogger(__name__)


@dataclass
class RenderedDashboard:
    instance_id: str
    state: DashboardState
    statuses: Dict[str, object]
    cards: List[StatusCard]
    components: List[WidgetRow]
    rendered_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "instance_id": self.instance_id,
            "state": self.state.to_dict(),
            "statuses": {server_id: status.to_dict() for server_id, status in self.statuses.items()},
            "cards": [card.to_dict() for card in self.cards],
            "components": [row.model_dump(mode="json") for row in self.components],
            "rendered_at": self.rendered_at.isoformat() + "Z",
        }


class RenderBoard:
    """Latest render per dashboard instance, for adapters that poll"""

    def __init__(self):
        self._lock = threading.Lock()
        self._latest: Dict[str, RenderedDashboard] = {}

    def __call__(self, rendered: RenderedDashboard):
        with self._lock:
            self._latest[rendered.instance_id] = rendered

    def latest(self, instance_id: str) -> Optional[RenderedDashboard]:
        with self._lock:
            return self._latest.get(instance_id)


def new_instance_id() -> str:
    return uuid.uuid4().hex


class DashboardService:
    """Glue between aggregation, dashboard state and presentation"""

    def __init__(
        self,
        servers: Sequence[ServerDescriptor],
        aggregator,
        state_model,
        publisher: Optional[Callable[[RenderedDashboard], None]] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.servers = list(servers)
        self.aggregator = aggregator
        self.state_model = state_model
        self.publisher = publisher
        self.clock = clock

    def render(
        self,
        instance_id: str,
        state: DashboardState,
        force_refresh: bool = False,
        token: Optional[str] = None,
    ) -> RenderedDashboard:
        statuses = self.aggregator.fetch_all(self.servers, force_refresh=force_refresh, token=token)
        rendered = RenderedDashboard(
            instance_id=instance_id,
            state=state,
            statuses=statuses,
            cards=build_status_cards(self.servers, statuses, state, self.clock()),
            components=build_view_components(self.servers, state),
            rendered_at=self.clock(),
        )
        if self.publisher is not None:
            self.publisher(rendered)
        return rendered

    def open(
        self,
        instance_id: Optional[str] = None,
        force_refresh: bool = False,
        token: Optional[str] = None,
    ) -> RenderedDashboard:
        """Create a dashboard instance with default state"""
        instance_id = instance_id or new_instance_id()
        state = build_default_state()
        self.state_model.remember(instance_id, state)
        return self.render(instance_id, state, force_refresh=force_refresh, token=token)

    def show(
        self,
        instance_id: str,
        widget_snapshot: Optional[Sequence[WidgetRow]] = None,
        force_refresh: bool = False,
        token: Optional[str] = None,
    ) -> RenderedDashboard:
        state = self.state_model.resolve(instance_id, widget_snapshot)
        return self.render(instance_id, state, force_refresh=force_refresh, token=token)

    def select(
        self,
        instance_id: str,
        server_id: Optional[str],
        widget_snapshot: Optional[Sequence[WidgetRow]] = None,
        token: Optional[str] = None,
    ) -> RenderedDashboard:
        state = self.state_model.resolve(instance_id, widget_snapshot)
        state = self.state_model.set_selected(state, server_id)
        self.state_model.remember(instance_id, state)
        return self.render(instance_id, state, force_refresh=True, token=token)

    def set_view(
        self,
        instance_id: str,
        view: ViewMode,
        widget_snapshot: Optional[Sequence[WidgetRow]] = None,
        token: Optional[str] = None,
    ) -> Optional[RenderedDashboard]:
        """
        Switch the view of the selected server.

        Returns:
            The new render, or None when nothing is selected (state unchanged)
        """
        state = self.state_model.resolve(instance_id, widget_snapshot)
        if not state.selected_server_id:
            return None
        state = self.state_model.set_view(state, state.selected_server_id, view)
        self.state_model.remember(instance_id, state)
        return self.render(instance_id, state, force_refresh=True, token=token)

    def refresh_after_action(
        self,
        instance_id: str,
        target_server_id: str,
        token: Optional[str] = None,
    ) -> RenderedDashboard:
        """Forced re-render of the dashboard that issued a power action"""
        state = self.state_model.resolve(instance_id)
        if not state.selected_server_id:
            state = self.state_model.set_selected(state, target_server_id)
            self.state_model.remember(instance_id, state)
        return self.render(instance_id, state, force_refresh=True, token=token)

    def refresh_live(self, config_store) -> Optional[RenderedDashboard]:
        """One background cycle for the persisted live dashboard, if any"""
        dashboard_config = config_store.load_dashboard_config()
        if dashboard_config is None:
            return None
        state = self.state_model.resolve(dashboard_config.instance_id)
        return self.render(dashboard_config.instance_id, state)
