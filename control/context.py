"""
Component wiring.

Every stateful piece (resource cache, uptime tracker, dashboard index,
stores) is constructed once here and passed by reference to the components
that need it. Tests build their own context with fakes.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from actions.audit import AuditDispatcher, WebhookAuditSink
from actions.workflow import ActionWorkflow
from dashboard.database import init_db, make_engine, make_session_factory
from dashboard.service import DashboardService, RenderBoard
from dashboard.state import DashboardIndex
from dashboard.state_model import DashboardStateModel
from dashboard.store import AuditLogStore, ConfigStore, SessionStore
from monitor.aggregator import StatusAggregator
from monitor.refresher import DashboardRefresher
from monitor.resource_cache import ResourceCache
from shared import config
from shared.credentials import CredentialResolver, load_user_tokens
from shared.servers import ServerDescriptor, load_servers
from sources.panel import PanelClient
from sources.telemetry import TelemetryClient

logger = logging.getLogger(__name__)


@dataclass
class FleetContext:
    servers: Sequence[ServerDescriptor]
    telemetry_client: object
    panel_client: object
    resource_cache: ResourceCache
    aggregator: StatusAggregator
    state_model: DashboardStateModel
    board: RenderBoard
    dashboards: DashboardService
    credentials: CredentialResolver
    config_store: ConfigStore
    audit_log: AuditLogStore
    audit: AuditDispatcher
    workflow: ActionWorkflow
    refresher: Optional[DashboardRefresher]

    def refresh_live_dashboard(self):
        return self.dashboards.refresh_live(self.config_store)

    def shutdown(self):
        if self.refresher is not None:
            self.refresher.stop()
        self.audit.shutdown(wait=True)
        self.telemetry_client.close()
        self.panel_client.close()


def build_context(
    servers: Sequence[ServerDescriptor],
    session_factory,
    telemetry_client=None,
    panel_client=None,
    credentials: Optional[CredentialResolver] = None,
    audit: Optional[AuditDispatcher] = None,
    cache_ttl_seconds: Optional[float] = None,
    refresh_interval_seconds: Optional[float] = None,
    audit_webhook_url: Optional[str] = None,
    clock=None,
) -> FleetContext:
    telemetry_client = telemetry_client or TelemetryClient()
    panel_client = panel_client or PanelClient()
    credentials = credentials or CredentialResolver(default_token=config.PANEL_TOKEN)

    cache_kwargs = {"clock": clock} if clock is not None else {}
    resource_cache = ResourceCache(panel_client, ttl_seconds=cache_ttl_seconds, **cache_kwargs)
    aggregator = StatusAggregator(telemetry_client, resource_cache)

    config_store = ConfigStore(session_factory)
    audit_log = AuditLogStore(session_factory)
    if audit is None:
        audit = AuditDispatcher(sinks=[audit_log.record])
        if audit_webhook_url:
            audit.add_sink(WebhookAuditSink(audit_webhook_url, config_store))

    state_model = DashboardStateModel(servers, index=DashboardIndex(), session_store=SessionStore(session_factory))
    board = RenderBoard()
    dashboards = DashboardService(servers, aggregator, state_model, publisher=board)
    workflow = ActionWorkflow(servers, panel_client, dashboards, credentials, audit)

    context = FleetContext(
        servers=servers,
        telemetry_client=telemetry_client,
        panel_client=panel_client,
        resource_cache=resource_cache,
        aggregator=aggregator,
        state_model=state_model,
        board=board,
        dashboards=dashboards,
        credentials=credentials,
        config_store=config_store,
        audit_log=audit_log,
        audit=audit,
        workflow=workflow,
        refresher=None,
    )
    context.refresher = DashboardRefresher(context.refresh_live_dashboard, interval_seconds=refresh_interval_seconds)
    return context


def context_from_environment() -> FleetContext:
    """Load servers, tokens and the database from FLEET_* settings"""
    servers = load_servers()
    credentials = CredentialResolver(load_user_tokens(), default_token=config.PANEL_TOKEN)

    engine = make_engine(config.DATABASE_URL)
    init_db(engine)

    return build_context(
        servers,
        make_session_factory(engine),
        credentials=credentials,
        audit_webhook_url=config.AUDIT_WEBHOOK_URL,
    )
