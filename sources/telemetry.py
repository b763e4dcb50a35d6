"""
Telemetry client.

Polls the in-game telemetry endpoint of a server:

    GET <telemetryUrl>  ->  {"tps": 19.9, "mspt": 12.4, "players": [{"name": "Steve"}]}
"""

import logging
from typing import Optional

import requests
from pydantic import ValidationError

from shared import config
from shared.errors import FleetError, MalformedPayload
from shared.servers import ServerDescriptor
from sources.http import request_json
from sources.models import SourceResult, TelemetrySnapshot

logger = logging.getLogger(__name__)


class TelemetryClient:
    """Fetch live telemetry for one server per call"""

    def __init__(self, session: Optional[requests.Session] = None, timeout_seconds: Optional[float] = None):
        self._session = session or requests.Session()
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else config.REQUEST_TIMEOUT_SECONDS

    def fetch(self, server: ServerDescriptor, force_refresh: bool = False) -> SourceResult[TelemetrySnapshot]:
        # Telemetry is never cached, so force_refresh has nothing to bypass.
        try:
            payload = request_json(
                self._session,
                "GET",
                server.telemetry_endpoint,
                timeout=self.timeout_seconds,
                headers={"Accept": "application/json"},
            )
            if not isinstance(payload, dict):
                raise MalformedPayload(f"Telemetry payload for {server.name} is not an object")
            snapshot = TelemetrySnapshot.model_validate(payload)
        except ValidationError as e:
            return SourceResult.failure(MalformedPayload(f"Invalid telemetry payload for {server.name}: {e}", e))
        except FleetError as e:
            return SourceResult.failure(e)

        logger.debug(f"Telemetry for {server.name}: tps={snapshot.tps} players={len(snapshot.players)}")
        return SourceResult.success(snapshot)

    def close(self):
        self._session.close()
