"""Platform-neutral status cards, one per configured server."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from dashboard.state import DashboardState
from shared.custom_ids import ViewMode
from shared.errors import FleetError
from shared.servers import ServerDescriptor
from sources.models import ResourceSnapshot, TelemetrySnapshot

SELECTED_COLOR = 0x00C6FF
CARD_COLOR = 0x2B1645
HOT_PERCENT = 90
LEFT_WIDTH = 16
EMPTY = "—"

STATE_BADGES = {
    "running": "🟢 Running",
    "starting": "🟡 Starting",
    "stopping": "🟠 Stopping",
    "offline": "🔴 Offline",
}


@dataclass(frozen=True)
class StatusCard:
    server_id: str
    title: str
    description: str
    color: int
    footer: str
    selected: bool = False

    def to_dict(self) -> dict:
        return {
            "server_id": self.server_id,
            "title": self.title,
            "description": self.description,
            "color": self.color,
            "footer": self.footer,
            "selected": self.selected,
        }


def format_state(state: Optional[str]) -> str:
    return STATE_BADGES.get(state or "", EMPTY)


def format_uptime(uptime_ms: Optional[float]) -> str:
    if uptime_ms is None:
        return EMPTY
    total_seconds = int(uptime_ms // 1000)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}h{minutes:02d}m"
    if minutes > 0:
        return f"{minutes}m{seconds:02d}s"
    return f"{seconds}s"


def format_percent(value: Optional[float]) -> str:
    return EMPTY if value is None else f"{value:.1f}%"


def percent_of(used: Optional[float], limit: Optional[float]) -> Optional[float]:
    # A limit of 0 means unlimited on the panel
    if used is None or not limit:
        return None
    return used / limit * 100


def _is_hot(percent: Optional[float]) -> bool:
    return percent is not None and percent > HOT_PERCENT


def _two_columns(left: str, right: str, left_width: int = LEFT_WIDTH) -> str:
    return f"{left.ljust(left_width)}  |  {right}"


def format_resources(resources: Optional[ResourceSnapshot]) -> List[str]:
    if resources is None:
        resources = ResourceSnapshot()

    cpu = percent_of(resources.cpu_used, resources.cpu_limit) if resources.cpu_limit else resources.cpu_used
    mem = percent_of(resources.mem_used, resources.mem_limit)
    disk = percent_of(resources.disk_used, resources.disk_limit)

    cpu_text = f"{'🔥' if _is_hot(cpu) else '🧠'} CPU {format_percent(cpu)}"
    mem_text = f"{'🔥' if _is_hot(mem) else '🧮'} RAM {format_percent(mem)}"
    disk_text = f"{'🔥' if _is_hot(disk) else '💾'} Disk {format_percent(disk)}"
    uptime_text = f"⏱ Uptime {format_uptime(resources.uptime_ms)}"

    return [_two_columns(cpu_text, mem_text), _two_columns(disk_text, uptime_text)]


def format_player_summary(telemetry: Optional[TelemetrySnapshot], error: Optional[FleetError]) -> str:
    if error is not None:
        return "Players Online: unavailable"
    if telemetry is None:
        return f"Players Online: {EMPTY}"
    return f"Players Online: {len(telemetry.players)}"


def format_tps(telemetry: Optional[TelemetrySnapshot]) -> str:
    if telemetry is None:
        return f"TPS {EMPTY} | MSPT {EMPTY}"
    return f"TPS {telemetry.tps:.1f} | MSPT {telemetry.mspt:.1f}ms"


def format_players(telemetry: Optional[TelemetrySnapshot], error: Optional[FleetError]) -> str:
    if error is not None:
        return "Player info unavailable"
    if telemetry is None:
        return EMPTY
    if not telemetry.players:
        return "No players online"
    names = "\n".join(f"- {name}" for name in telemetry.player_names)
    return f"Online ({len(telemetry.players)}):\n{names}"


def format_status_lines(status) -> str:
    telemetry = status.telemetry if status else None
    telemetry_error = status.telemetry_error if status else None
    resources = status.resources if status else None
    lines = [format_player_summary(telemetry, telemetry_error), format_tps(telemetry), ""]
    lines.extend(format_resources(resources))
    return "\n".join(lines)


def build_status_cards(
    servers: Sequence[ServerDescriptor],
    statuses: Dict[str, object],
    state: DashboardState,
    last_updated: datetime,
) -> List[StatusCard]:
    selected_id = state.selected_server_id if any(s.id == state.selected_server_id for s in servers) else None
    footer = f"Last update: {last_updated.strftime('%b %d, %Y, %H:%M')} UTC"

    cards = []
    for server in servers:
        status = statuses.get(server.id)
        if state.view_for(server.id) == ViewMode.STATUS:
            description = format_status_lines(status)
        else:
            description = format_players(
                status.telemetry if status else None,
                status.telemetry_error if status else None,
            )

        resources = status.resources if status else None
        selected = server.id == selected_id
        prefix = "▶ " if selected else ""
        cards.append(StatusCard(
            server_id=server.id,
            title=f"{prefix}{server.display_name}  {format_state(resources.state if resources else None)}",
            description=description,
            color=SELECTED_COLOR if selected else CARD_COLOR,
            footer=footer,
            selected=selected,
        ))
    return cards
