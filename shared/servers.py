"""
Server descriptor loading.

servers.json holds a JSON array of server definitions:

    [{"id": "smp", "name": "Survival", "telemetryUrl": "http://10.0.0.5:8765/telemetry",
      "panelIdentifier": "1a2b3c4d", "panelName": "Survival SMP"}]

Descriptors are immutable once loaded and are passed by reference into every
component that needs them.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shared import config
from shared.errors import ConfigurationError

logger = logging.getLogger(__name__)

SERVER_FILE_CANDIDATES = [
    Path("servers.json"),
    Path("config") / "servers.json",
]


class ServerDescriptor(BaseModel):
    """One configured game server"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    telemetry_endpoint: str = Field(alias="telemetryUrl")
    panel_identifier: Optional[str] = Field(default=None, alias="panelIdentifier")
    panel_name: Optional[str] = Field(default=None, alias="panelName")

    @field_validator("telemetry_endpoint")
    @classmethod
    def _http_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("must be an http/https URL")
        return value

    @field_validator("panel_identifier", "panel_name")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value

    @property
    def display_name(self) -> str:
        return self.panel_name or self.name


def find_server(servers: Sequence[ServerDescriptor], server_id: Optional[str]) -> Optional[ServerDescriptor]:
    if server_id is None:
        return None
    for server in servers:
        if server.id == server_id:
            return server
    return None


def parse_servers(payload, source: str = "servers.json") -> List[ServerDescriptor]:
    """
    Validate a decoded servers.json payload.

    Raises:
        ConfigurationError: naming the offending entry index
    """
    if not isinstance(payload, list):
        raise ConfigurationError(f"{source} must contain an array of server definitions.")

    servers: List[ServerDescriptor] = []
    seen = set()
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ConfigurationError(f"Server entry at index {index} is not an object.")
        try:
            server = ServerDescriptor.model_validate(item)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or "entry"
            raise ConfigurationError(
                f"Server entry at index {index} has an invalid {field}: {first.get('msg')}", e
            )
        if server.id in seen:
            raise ConfigurationError(f"Server entry at index {index} reuses id '{server.id}'.")
        seen.add(server.id)
        servers.append(server)
    return servers


def load_servers(path: Optional[str] = None) -> List[ServerDescriptor]:
    """Load servers.json from an explicit path, FLEET_SERVERS_FILE, or the default candidates"""
    explicit = path or config.SERVERS_FILE
    candidates = [Path(explicit)] if explicit else SERVER_FILE_CANDIDATES
    file_path = next((candidate for candidate in candidates if candidate.exists()), None)

    if file_path is None:
        raise ConfigurationError(
            "No servers.json file found. Create servers.json in the project root or ./config."
        )

    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to parse {file_path}: {e}", e)

    servers = parse_servers(payload, source=str(file_path))
    logger.info(f"Loaded {len(servers)} servers from {file_path}")
    return servers
