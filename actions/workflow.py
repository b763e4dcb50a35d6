"""
Action confirmation workflow.

    Requested -> AwaitingConfirmation -> Executing -> Completed | Failed

- console: completes immediately with the panel console link
- start: skips confirmation, executes immediately
- restart / stop / kill: answer with a confirmation token; the user must
  type the action's verb (any case) before the power signal is sent

A wrong or empty confirmation keeps the request awaiting confirmation with
the same token and no side effect. Completion emits one audit event and
re-renders the dashboard that issued the action; a failure is reported to
the user with the underlying cause, without audit or re-render.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from actions.audit import AuditEvent
from dashboard.models import AuditSeverity
from shared.custom_ids import (
    PendingConfirmation,
    PowerAction,
    decode_confirmation,
    encode_confirmation,
)
from shared.errors import DownstreamActionFailed, InvalidCorrelationToken, NoCredential
from shared.servers import ServerDescriptor, find_server

logger = logging.getLogger(__name__)


class ActionStage(str, enum.Enum):
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    COMPLETED = "completed"
    FAILED = "failed"


class FailureReason(str, enum.Enum):
    NO_SELECTION = "no_selection"
    UNKNOWN_SERVER = "unknown_server"
    NO_CREDENTIAL = "no_credential"
    DOWNSTREAM_FAILED = "downstream_failed"
    INVALID_TOKEN = "invalid_token"


ACTION_AUDIT_DETAILS = {
    PowerAction.CONSOLE: ("🖥️", AuditSeverity.SECONDARY, "Opened console for"),
    PowerAction.RESTART: ("🔁", AuditSeverity.DANGER, "Restart requested for"),
    PowerAction.STOP: ("🛑", AuditSeverity.DANGER, "Stop requested for"),
    PowerAction.KILL: ("💀", AuditSeverity.DANGER, "Kill requested for"),
    PowerAction.START: ("▶️", AuditSeverity.SUCCESS, "Start requested for"),
}


@dataclass
class ActionOutcome:
    action: Optional[PowerAction]
    stage: ActionStage
    message: str
    server_id: Optional[str] = None
    token: Optional[str] = None
    prompt: Optional[str] = None
    console_url: Optional[str] = None
    reason: Optional[FailureReason] = None
    rendered: Optional[object] = None

    def to_dict(self) -> dict:
        return {
            "action": self.action.value if self.action else None,
            "stage": self.stage.value,
            "message": self.message,
            "server_id": self.server_id,
            "token": self.token,
            "prompt": self.prompt,
            "console_url": self.console_url,
            "reason": self.reason.value if self.reason else None,
            "dashboard": self.rendered.to_dict() if self.rendered is not None else None,
        }


def build_audit_event(action: PowerAction, server: ServerDescriptor, actor_id: Optional[str]) -> AuditEvent:
    emoji, severity, label = ACTION_AUDIT_DETAILS[action]
    return AuditEvent(
        description=f"{label} **{server.name}**.",
        severity=severity,
        actor_id=actor_id,
        emoji=emoji,
    )


def confirmation_prompt(action: PowerAction, server: ServerDescriptor) -> str:
    return f"Type {action.value.capitalize()} to confirm {server.name}"


def confirmation_matches(pending: PendingConfirmation, text: Optional[str]) -> bool:
    entered = (text or "").strip()
    return bool(entered) and entered.lower() == pending.verb.lower()


class ActionWorkflow:
    """Gate power actions behind confirmation and run them"""

    def __init__(
        self,
        servers: Sequence[ServerDescriptor],
        panel_client,
        dashboards,
        credentials,
        audit,
    ):
        """
        Args:
            servers: Configured servers
            panel_client: Client with send_power_signal() and console_url()
            dashboards: DashboardService used for state lookup and re-render
            credentials: CredentialResolver for the acting user's panel token
            audit: AuditDispatcher receiving completion events
        """
        self.servers = list(servers)
        self.panel_client = panel_client
        self.dashboards = dashboards
        self.credentials = credentials
        self.audit = audit

    def request(
        self,
        instance_id: str,
        action: PowerAction,
        actor_id: Optional[str],
        widget_snapshot=None,
    ) -> ActionOutcome:
        """Start an action for the server currently selected on a dashboard"""
        action = PowerAction(action)
        state = self.dashboards.state_model.resolve(instance_id, widget_snapshot)
        if not state.selected_server_id:
            return ActionOutcome(action, ActionStage.FAILED, "Select a server first.",
                                 reason=FailureReason.NO_SELECTION)

        server = find_server(self.servers, state.selected_server_id)
        if server is None:
            return ActionOutcome(action, ActionStage.FAILED, "Selected server is no longer available.",
                                 reason=FailureReason.UNKNOWN_SERVER)

        if action is PowerAction.CONSOLE:
            console_url = self.panel_client.console_url(server)
            self._emit_audit(action, server, actor_id)
            return ActionOutcome(action, ActionStage.COMPLETED,
                                 f"Open console for **{server.name}**: {console_url}",
                                 server_id=server.id, console_url=console_url)

        token = self.credentials.resolve(actor_id)
        if not token:
            return self._no_credential(action, server)

        if action.is_destructive:
            try:
                pending = PendingConfirmation(action, instance_id, server.id)
            except InvalidCorrelationToken as e:
                logger.warning(f"Cannot issue confirmation for dashboard {instance_id}: {e}")
                return ActionOutcome(action, ActionStage.FAILED, "This dashboard cannot confirm actions.",
                                     server_id=server.id, reason=FailureReason.INVALID_TOKEN)
            logger.info(f"{action.value} for {server.name} awaiting confirmation from {actor_id}")
            return ActionOutcome(
                action,
                ActionStage.AWAITING_CONFIRMATION,
                f"Confirm {action.value} of **{server.name}**.",
                server_id=server.id,
                token=encode_confirmation(pending),
                prompt=confirmation_prompt(action, server),
            )

        return self._execute(action, instance_id, server, actor_id, token)

    def confirm(self, token: str, text: Optional[str], actor_id: Optional[str]) -> ActionOutcome:
        """Submit the typed confirmation for a pending destructive action"""
        try:
            pending = decode_confirmation(token)
        except InvalidCorrelationToken as e:
            logger.warning(f"Rejected confirmation token: {e}")
            return ActionOutcome(None, ActionStage.FAILED,
                                 "This confirmation is not valid anymore.",
                                 reason=FailureReason.INVALID_TOKEN)

        server = find_server(self.servers, pending.target_server_id)

        if not confirmation_matches(pending, text):
            return ActionOutcome(
                pending.action,
                ActionStage.AWAITING_CONFIRMATION,
                f'Confirmation failed. Type "{pending.verb}" to proceed.',
                server_id=pending.target_server_id,
                token=token,
                prompt=confirmation_prompt(pending.action, server) if server else None,
            )

        if server is None:
            return ActionOutcome(pending.action, ActionStage.FAILED, "Selected server is no longer available.",
                                 server_id=pending.target_server_id, reason=FailureReason.UNKNOWN_SERVER)

        credential = self.credentials.resolve(actor_id)
        if not credential:
            return self._no_credential(pending.action, server)

        return self._execute(pending.action, pending.dashboard_instance_id, server, actor_id, credential)

    def _execute(
        self,
        action: PowerAction,
        instance_id: str,
        server: ServerDescriptor,
        actor_id: Optional[str],
        token: str,
    ) -> ActionOutcome:
        try:
            self.panel_client.send_power_signal(server, action, token)
        except NoCredential:
            return self._no_credential(action, server)
        except DownstreamActionFailed as e:
            logger.warning(f"{action.value} of {server.name} failed: {e}")
            return ActionOutcome(action, ActionStage.FAILED,
                                 f"Failed to {action.value} **{server.name}**: {e}",
                                 server_id=server.id, reason=FailureReason.DOWNSTREAM_FAILED)

        self._emit_audit(action, server, actor_id)

        rendered = None
        try:
            rendered = self.dashboards.refresh_after_action(instance_id, server.id, token=token)
        except Exception as e:
            logger.warning(f"Dashboard {instance_id} refresh after {action.value} failed: {e}")

        return ActionOutcome(action, ActionStage.COMPLETED,
                             f"Sent {action.value} command to **{server.name}**.",
                             server_id=server.id, rendered=rendered)

    def _no_credential(self, action: PowerAction, server: ServerDescriptor) -> ActionOutcome:
        return ActionOutcome(action, ActionStage.FAILED, "No panel API token is configured for you.",
                             server_id=server.id, reason=FailureReason.NO_CREDENTIAL)

    def _emit_audit(self, action: PowerAction, server: ServerDescriptor, actor_id: Optional[str]):
        if self.audit is not None:
            self.audit.dispatch(build_audit_event(action, server, actor_id))
