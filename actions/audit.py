"""
Audit dispatch.

Audit events are fire-and-forget: dispatch() hands the event to a single
background worker and returns immediately. A failing sink is logged and
skipped; its failure never reaches the operation being audited.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

import requests

from dashboard.models import AuditSeverity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEvent:
    description: str
    severity: AuditSeverity = AuditSeverity.PRIMARY
    actor_id: Optional[str] = None
    emoji: Optional[str] = None

    @property
    def text(self) -> str:
        return f"{self.emoji} {self.description}" if self.emoji else self.description


AuditSink = Callable[[AuditEvent], None]


class WebhookAuditSink:
    """Forward audit events to the chat adapter for the configured channel"""

    def __init__(self, url: str, config_store, session: Optional[requests.Session] = None, timeout_seconds: float = 5.0):
        self.url = url
        self.config_store = config_store
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def __call__(self, event: AuditEvent):
        audit_config = self.config_store.load_audit_config()
        if audit_config is None:
            return
        response = self._session.post(
            self.url,
            json={
                "channel_id": audit_config.channel_id,
                "description": event.text,
                "severity": event.severity.value,
                "actor_id": event.actor_id,
            },
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()


class AuditDispatcher:
    """Deliver audit events to every sink without blocking the caller"""

    def __init__(self, sinks: Optional[Iterable[AuditSink]] = None, executor: Optional[ThreadPoolExecutor] = None):
        self.sinks: List[AuditSink] = list(sinks or [])
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="audit")

    def add_sink(self, sink: AuditSink):
        self.sinks.append(sink)

    def dispatch(self, event: AuditEvent) -> Optional[Future]:
        """Queue an event for delivery; never raises"""
        try:
            return self._executor.submit(self._deliver, event)
        except RuntimeError as e:
            logger.warning(f"Audit dispatcher unavailable, dropping event '{event.description}': {e}")
            return None

    def _deliver(self, event: AuditEvent):
        for sink in list(self.sinks):
            try:
                sink(event)
            except Exception as e:
                logger.warning(f"Failed to deliver audit event '{event.description}': {e}")

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)
