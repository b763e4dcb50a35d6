"""
Status aggregator.

Fans out to the telemetry client and the resource cache for every server at
once and merges the results into one ServerStatus per server. A failure in
one source only fills that source's error field; nothing a source does can
abort the aggregation.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from shared.errors import FleetError, SourceUnavailable
from shared.servers import ServerDescriptor
from sources.models import ResourceSnapshot, SourceResult, TelemetrySnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerStatus:
    """
    Merged status for one server from one aggregation call.

    resources and resources_error both unset means the server has no panel
    identifier and was never polled (see resources_applicable).
    """
    telemetry: Optional[TelemetrySnapshot] = None
    telemetry_error: Optional[FleetError] = None
    resources: Optional[ResourceSnapshot] = None
    resources_error: Optional[FleetError] = None
    resources_applicable: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "telemetry": self.telemetry.model_dump() if self.telemetry else None,
            "telemetry_error": str(self.telemetry_error) if self.telemetry_error else None,
            "resources": self.resources.to_dict() if self.resources else None,
            "resources_error": str(self.resources_error) if self.resources_error else None,
            "resources_applicable": self.resources_applicable,
        }


def _guarded(fetch: Callable[[], SourceResult], label: str) -> SourceResult:
    """Run a source call, turning any escaped exception into a failure value"""
    try:
        return fetch()
    except Exception as e:
        logger.error(f"{label} raised unexpectedly: {e}", exc_info=True)
        return SourceResult.failure(SourceUnavailable(f"{label} failed: {e}", e))


class StatusAggregator:
    """Collect statuses for every configured server in parallel"""

    def __init__(self, telemetry_client, resource_cache, max_workers: Optional[int] = None):
        """
        Args:
            telemetry_client: Client with fetch(server, force_refresh=)
            resource_cache: ResourceCache in front of the panel client
            max_workers: Optional pool cap (default: one worker per fetch)
        """
        self.telemetry_client = telemetry_client
        self.resource_cache = resource_cache
        self.max_workers = max_workers

    def fetch_all(
        self,
        servers: Sequence[ServerDescriptor],
        force_refresh: bool = False,
        token: Optional[str] = None,
    ) -> Dict[str, ServerStatus]:
        """
        Poll both sources for every server.

        Args:
            servers: Servers to poll
            force_refresh: Bypass the resource cache
            token: Panel token of the acting user (default polling token if None)

        Returns:
            server id -> ServerStatus, one entry per server, returned only once
            every fetch has settled
        """
        if not servers:
            return {}

        fetch_count = len(servers) + sum(1 for server in servers if server.panel_identifier)
        workers = fetch_count if self.max_workers is None else max(1, min(self.max_workers, fetch_count))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="status-fetch") as pool:
            pending = {}
            for server in servers:
                telemetry_future = pool.submit(
                    _guarded,
                    lambda server=server: self.telemetry_client.fetch(server, force_refresh=force_refresh),
                    f"Telemetry fetch for {server.name}",
                )
                resources_future = None
                if server.panel_identifier:
                    resources_future = pool.submit(
                        _guarded,
                        lambda server=server: self.resource_cache.get(
                            server, force_refresh=force_refresh, token=token
                        ),
                        f"Panel fetch for {server.name}",
                    )
                pending[server.id] = (server, telemetry_future, resources_future)

            statuses: Dict[str, ServerStatus] = {}
            for server_id, (server, telemetry_future, resources_future) in pending.items():
                statuses[server_id] = self._merge(server, telemetry_future.result(),
                                                  resources_future.result() if resources_future else None)

        return statuses

    def _merge(
        self,
        server: ServerDescriptor,
        telemetry: SourceResult,
        resources: Optional[SourceResult],
    ) -> ServerStatus:
        if not telemetry.ok:
            logger.warning(f"Failed to fetch telemetry for {server.name}: {telemetry.error}")
        if resources is not None and not resources.ok:
            logger.warning(f"Failed to fetch panel data for {server.name}: {resources.error}")

        return ServerStatus(
            telemetry=telemetry.data,
            telemetry_error=telemetry.error,
            resources=resources.data if resources is not None else None,
            resources_error=resources.error if resources is not None else None,
            resources_applicable=resources is not None,
        )
