"""
Widget snapshot schema, builder and reconstruction importer.

The chat adapter turns these rows into platform widgets and, on every
interaction, echoes back the rows of the message the user clicked. When no
state is known for that dashboard instance, the rows are the last record of
what the user saw: the selector option flagged "default" is the selected
server, and the disabled view button is the active view.
"""

from __future__ import annotations

import enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from dashboard.state import DEFAULT_VIEW, DashboardState, build_default_state
from shared.custom_ids import (
    SELECT_CUSTOM_ID,
    PowerAction,
    ViewMode,
    action_custom_id,
    parse_view_custom_id,
    view_custom_id,
)
from shared.servers import ServerDescriptor


class WidgetType(str, enum.Enum):
    SELECT = "select"
    BUTTON = "button"


class ButtonStyle(str, enum.Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    SUCCESS = "success"
    DANGER = "danger"


class WidgetOption(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: str
    label: str = ""
    default: bool = False


class Widget(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: WidgetType
    custom_id: Optional[str] = None
    label: str = ""
    style: Optional[ButtonStyle] = None
    placeholder: Optional[str] = None
    disabled: bool = False
    options: List[WidgetOption] = Field(default_factory=list)


class WidgetRow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    components: List[Widget] = Field(default_factory=list)


ACTION_BUTTONS = [
    (PowerAction.CONSOLE, "Open Console", ButtonStyle.SECONDARY),
    (PowerAction.RESTART, "Restart", ButtonStyle.DANGER),
    (PowerAction.STOP, "Stop", ButtonStyle.DANGER),
    (PowerAction.KILL, "Kill", ButtonStyle.DANGER),
    (PowerAction.START, "Start", ButtonStyle.SUCCESS),
]


def _selected_id(servers: Sequence[ServerDescriptor], state: DashboardState) -> Optional[str]:
    return state.selected_server_id if any(s.id == state.selected_server_id for s in servers) else None


def build_view_components(servers: Sequence[ServerDescriptor], state: DashboardState) -> List[WidgetRow]:
    """Selector row, view toggle row and action row for a dashboard"""
    selected_id = _selected_id(servers, state)
    active_view = state.view_for(selected_id) if selected_id else DEFAULT_VIEW

    selector = WidgetRow(components=[
        Widget(
            type=WidgetType.SELECT,
            custom_id=SELECT_CUSTOM_ID,
            placeholder="Select server…",
            options=[
                WidgetOption(value=server.id, label=server.name, default=server.id == selected_id)
                for server in servers
            ],
        )
    ])

    view_buttons = WidgetRow(components=[
        Widget(
            type=WidgetType.BUTTON,
            custom_id=view_custom_id(view),
            label=label,
            style=ButtonStyle.PRIMARY,
            disabled=not selected_id or active_view == view,
        )
        for view, label in ((ViewMode.STATUS, "Status"), (ViewMode.PLAYERS, "Players"))
    ])

    action_buttons = WidgetRow(components=[
        Widget(
            type=WidgetType.BUTTON,
            custom_id=action_custom_id(action),
            label=label,
            style=style,
            disabled=not selected_id,
        )
        for action, label, style in ACTION_BUTTONS
    ])

    return [selector, view_buttons, action_buttons]


def state_from_widgets(rows: Sequence[WidgetRow], servers: Sequence[ServerDescriptor]) -> DashboardState:
    """
    Rebuild dashboard state from a rendered widget snapshot.

    A default option naming a server that is no longer configured is treated
    as no selection. A view is only recovered for the selected server.
    """
    valid_ids = {server.id for server in servers}
    widgets = [widget for row in rows for widget in row.components if widget.custom_id]

    selected_id = None
    for widget in widgets:
        if widget.custom_id == SELECT_CUSTOM_ID and widget.type == WidgetType.SELECT:
            option = next((option for option in widget.options if option.default), None)
            if option is not None and option.value in valid_ids:
                selected_id = option.value

    if selected_id is None:
        return build_default_state()

    view = None
    for widget in widgets:
        parsed = parse_view_custom_id(widget.custom_id)
        if parsed is not None and widget.disabled:
            view = parsed

    return DashboardState(selected_server_id=selected_id, server_views={selected_id: view or DEFAULT_VIEW})
