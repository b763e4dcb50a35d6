"""
Panel client.

Talks to the fleet-management panel's client API with a bearer token:

- GET  /api/client/servers/<id>/resources  run state + live usage
- GET  /api/client/servers/<id>            server detail (limits, MiB)
- POST /api/client/servers/<id>/power      {"signal": "start|restart|stop|kill"}

A resource fetch issues the resources and detail requests in parallel and
merges the limits into one snapshot. The snapshot leaves uptime_ms unset;
uptime is derived by monitor.resource_cache.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional

import requests
from pydantic import ValidationError

from shared import config
from shared.custom_ids import PowerAction
from shared.errors import DownstreamActionFailed, FleetError, MalformedPayload, NoCredential, SourceUnavailable
from shared.servers import ServerDescriptor
from sources.http import request_json
from sources.models import DetailPayload, ResourceLimits, ResourceSnapshot, ResourcesPayload, SourceResult

logger = logging.getLogger(__name__)


class PanelClient:
    """Resource and power-control client for the fleet panel"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        default_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.base_url = (base_url if base_url is not None else config.PANEL_URL).rstrip("/")
        self.default_token = default_token if default_token is not None else config.PANEL_TOKEN
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else config.REQUEST_TIMEOUT_SECONDS
        self._session = session or requests.Session()

    def _server_url(self, server: ServerDescriptor, suffix: str = "") -> str:
        return f"{self.base_url}/api/client/servers/{server.panel_identifier}{suffix}"

    def _headers(self, token: str, with_body: bool = False) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        if with_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _get(self, url: str, token: str):
        return request_json(self._session, "GET", url, timeout=self.timeout_seconds, headers=self._headers(token))

    def fetch(
        self,
        server: ServerDescriptor,
        force_refresh: bool = False,
        token: Optional[str] = None,
    ) -> SourceResult[ResourceSnapshot]:
        """
        Fetch resources and limits for one server.

        Args:
            server: Server to poll (must carry a panel identifier)
            force_refresh: Accepted for contract symmetry; the panel client never caches
            token: Bearer token to use instead of the default polling token

        Returns:
            SourceResult holding a ResourceSnapshot or the failure
        """
        if not server.panel_identifier:
            return SourceResult.failure(
                SourceUnavailable(f"Server {server.name} is missing a panel identifier.")
            )

        token = token or self.default_token
        if not self.base_url or not token:
            return SourceResult.failure(
                SourceUnavailable("FLEET_PANEL_URL and FLEET_PANEL_TOKEN must be set to fetch server health.")
            )

        try:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="panel-fetch") as pool:
                resources_future = pool.submit(self._get, self._server_url(server, "/resources"), token)
                detail_future = pool.submit(self._get, self._server_url(server), token)
                resources_payload = resources_future.result()
                detail_payload = detail_future.result()

            resources = ResourceSnapshot.from_payload(ResourcesPayload.model_validate(resources_payload))
            limits = ResourceLimits.from_payload(DetailPayload.model_validate(detail_payload))
        except ValidationError as e:
            return SourceResult.failure(MalformedPayload(f"Invalid panel payload for {server.name}: {e}", e))
        except (ValueError, OverflowError) as e:
            return SourceResult.failure(MalformedPayload(f"Unusable panel values for {server.name}: {e}", e))
        except FleetError as e:
            return SourceResult.failure(e)

        return SourceResult.success(resources.with_limits(limits))

    def console_url(self, server: ServerDescriptor) -> str:
        return f"{self.base_url}/server/{server.panel_identifier}"

    def send_power_signal(self, server: ServerDescriptor, action: PowerAction, token: Optional[str]):
        """
        Send a power signal on behalf of a user.

        Raises:
            NoCredential: no token supplied for the acting user
            DownstreamActionFailed: the panel call failed or timed out
        """
        action = PowerAction(action)
        if not action.sends_signal:
            raise ValueError(f"Action '{action.value}' is not a power signal")
        if not token:
            raise NoCredential("No panel API token is configured for you.")
        if not server.panel_identifier:
            raise DownstreamActionFailed(f"Server {server.name} is missing a panel identifier.")
        if not self.base_url:
            raise DownstreamActionFailed("FLEET_PANEL_URL must be set to send power signals.")

        try:
            request_json(
                self._session,
                "POST",
                self._server_url(server, "/power"),
                timeout=self.timeout_seconds,
                headers=self._headers(token, with_body=True),
                json_body={"signal": action.value},
            )
        except FleetError as e:
            raise DownstreamActionFailed(e.message, e)

        logger.info(f"Power signal '{action.value}' sent to {server.name}")

    def close(self):
        self._session.close()
