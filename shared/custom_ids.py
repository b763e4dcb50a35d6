"""
Widget custom-id and confirmation token grammar.

Every interactive widget the dashboard emits carries a custom id that the
chat adapter echoes back on interaction. The grammar is strict: a value is
either a full match for one of the patterns below or it is rejected.

    fleet:select
    fleet:view:<status|players>
    fleet:action:<console|restart|stop|kill|start>
    fleet:confirm:<restart|stop|kill>:<dashboard instance id>:<server id>

Confirmation tokens carry the whole pending request, so nothing is stored
server side while the user is typing the confirmation word.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Optional

from shared.errors import InvalidCorrelationToken

PREFIX = "fleet"
SELECT_CUSTOM_ID = f"{PREFIX}:select"
VIEW_CUSTOM_ID_PREFIX = f"{PREFIX}:view"
ACTION_CUSTOM_ID_PREFIX = f"{PREFIX}:action"
CONFIRM_CUSTOM_ID_PREFIX = f"{PREFIX}:confirm"

# Segment values may not contain the separator or whitespace.
_SEGMENT = r"[^:\s]+"


class ViewMode(str, enum.Enum):
    """Per-server view shown on a dashboard card"""
    STATUS = "status"
    PLAYERS = "players"


class PowerAction(str, enum.Enum):
    """Actions offered on the dashboard action row"""
    CONSOLE = "console"
    RESTART = "restart"
    STOP = "stop"
    KILL = "kill"
    START = "start"

    @property
    def is_destructive(self) -> bool:
        return self in DESTRUCTIVE_ACTIONS

    @property
    def sends_signal(self) -> bool:
        return self is not PowerAction.CONSOLE


DESTRUCTIVE_ACTIONS = frozenset({PowerAction.RESTART, PowerAction.STOP, PowerAction.KILL})

_VIEW_RE = re.compile(rf"^{VIEW_CUSTOM_ID_PREFIX}:(status|players)$")
_CONFIRM_RE = re.compile(rf"^{CONFIRM_CUSTOM_ID_PREFIX}:(restart|stop|kill):({_SEGMENT}):({_SEGMENT})$")
_SEGMENT_RE = re.compile(rf"^{_SEGMENT}$")


def view_custom_id(view: ViewMode) -> str:
    return f"{VIEW_CUSTOM_ID_PREFIX}:{ViewMode(view).value}"


def action_custom_id(action: PowerAction) -> str:
    return f"{ACTION_CUSTOM_ID_PREFIX}:{PowerAction(action).value}"


def parse_view_custom_id(custom_id: Optional[str]) -> Optional[ViewMode]:
    match = _VIEW_RE.fullmatch(custom_id or "")
    return ViewMode(match.group(1)) if match else None


@dataclass(frozen=True)
class PendingConfirmation:
    """A destructive action waiting for the user to type its verb"""
    action: PowerAction
    dashboard_instance_id: str
    target_server_id: str

    def __post_init__(self):
        if self.action not in DESTRUCTIVE_ACTIONS:
            raise InvalidCorrelationToken(f"Action '{self.action}' does not require confirmation")
        for label, value in (
            ("dashboard instance id", self.dashboard_instance_id),
            ("server id", self.target_server_id),
        ):
            if not _SEGMENT_RE.fullmatch(value or ""):
                raise InvalidCorrelationToken(f"Invalid {label} for confirmation token: {value!r}")

    @property
    def verb(self) -> str:
        return self.action.value


def encode_confirmation(pending: PendingConfirmation) -> str:
    """Pack a pending confirmation into its opaque token"""
    return (
        f"{CONFIRM_CUSTOM_ID_PREFIX}:{pending.action.value}:"
        f"{pending.dashboard_instance_id}:{pending.target_server_id}"
    )


def decode_confirmation(token: Optional[str]) -> PendingConfirmation:
    """
    Parse a confirmation token.

    Raises:
        InvalidCorrelationToken: if the token is not a full grammar match
    """
    match = _CONFIRM_RE.fullmatch(token or "")
    if not match:
        raise InvalidCorrelationToken(f"Unrecognised confirmation token: {token!r}")
    action, instance_id, server_id = match.groups()
    return PendingConfirmation(PowerAction(action), instance_id, server_id)
