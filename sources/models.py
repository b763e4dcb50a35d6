"""Payload schemas and snapshot types for the source clients."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from shared.errors import FleetError

T = TypeVar("T")

MIB = 1024 * 1024

RUNNING_STATE = "running"


@dataclass(frozen=True)
class SourceResult(Generic[T]):
    """Tagged result of one source fetch: exactly one of data/error is set"""
    data: Optional[T] = None
    error: Optional[FleetError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T) -> "SourceResult[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, error: FleetError) -> "SourceResult[T]":
        return cls(error=error)


# ============================================================================
# TELEMETRY
# ============================================================================

class TelemetryPlayer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class TelemetrySnapshot(BaseModel):
    """Live in-game telemetry for one server"""
    model_config = ConfigDict(extra="ignore", frozen=True)

    tps: float
    mspt: float
    players: List[TelemetryPlayer] = Field(default_factory=list)

    @property
    def player_names(self) -> List[str]:
        return [player.name for player in self.players]


# ============================================================================
# PANEL
# ============================================================================

class ResourceAttributes(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current_state: Optional[str] = None
    resources: Dict[str, Any] = Field(default_factory=dict)
    uptime: Optional[Any] = None


class ResourcesPayload(BaseModel):
    """GET /api/client/servers/<id>/resources"""
    model_config = ConfigDict(extra="ignore")

    attributes: ResourceAttributes


class DetailAttributes(BaseModel):
    model_config = ConfigDict(extra="ignore")

    limits: Dict[str, Any] = Field(default_factory=dict)


class DetailPayload(BaseModel):
    """GET /api/client/servers/<id>"""
    model_config = ConfigDict(extra="ignore")

    attributes: DetailAttributes


def to_number(value: Any) -> Optional[float]:
    """Numeric coercion where anything missing or not-a-number becomes None"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


@dataclass(frozen=True)
class ResourceLimits:
    cpu_limit: Optional[float] = None
    mem_limit: Optional[float] = None
    disk_limit: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: DetailPayload) -> "ResourceLimits":
        limits = payload.attributes.limits
        memory = to_number(limits.get("memory"))
        disk = to_number(limits.get("disk"))
        return cls(
            cpu_limit=to_number(limits.get("cpu")),
            mem_limit=memory * MIB if memory is not None else None,
            disk_limit=disk * MIB if disk is not None else None,
        )


@dataclass(frozen=True)
class ResourceSnapshot:
    """
    Resource usage for one server as reported by the panel.

    uptime_ms is derived by the resource cache, never taken verbatim from the
    panel; reported_uptime_ms keeps the panel's own counter as the seed.
    """
    state: Optional[str] = None
    cpu_used: Optional[float] = None
    cpu_limit: Optional[float] = None
    mem_used: Optional[float] = None
    mem_limit: Optional[float] = None
    disk_used: Optional[float] = None
    disk_limit: Optional[float] = None
    rx_bytes: Optional[float] = None
    tx_bytes: Optional[float] = None
    reported_uptime_ms: Optional[float] = None
    uptime_ms: Optional[float] = None

    @property
    def is_running(self) -> bool:
        return self.state == RUNNING_STATE

    @classmethod
    def from_payload(cls, payload: ResourcesPayload) -> "ResourceSnapshot":
        attributes = payload.attributes
        resources = attributes.resources
        uptime = attributes.uptime if attributes.uptime is not None else resources.get("uptime")
        return cls(
            state=attributes.current_state,
            cpu_used=to_number(resources.get("cpu_absolute")),
            mem_used=to_number(resources.get("memory_bytes")),
            mem_limit=to_number(resources.get("memory_limit_bytes")),
            disk_used=to_number(resources.get("disk_bytes")),
            disk_limit=to_number(resources.get("disk_limit_bytes")),
            rx_bytes=to_number(resources.get("network_rx_bytes")),
            tx_bytes=to_number(resources.get("network_tx_bytes")),
            reported_uptime_ms=to_number(uptime),
        )

    def with_limits(self, limits: ResourceLimits) -> "ResourceSnapshot":
        """Merge panel-reported limits, preferring them over embedded ones"""
        return replace(
            self,
            cpu_limit=limits.cpu_limit if limits.cpu_limit is not None else self.cpu_limit,
            mem_limit=limits.mem_limit if limits.mem_limit is not None else self.mem_limit,
            disk_limit=limits.disk_limit if limits.disk_limit is not None else self.disk_limit,
        )

    def with_uptime(self, uptime_ms: Optional[float]) -> "ResourceSnapshot":
        return replace(self, uptime_ms=uptime_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state,
            "cpu_used": self.cpu_used,
            "cpu_limit": self.cpu_limit,
            "mem_used": self.mem_used,
            "mem_limit": self.mem_limit,
            "disk_used": self.disk_used,
            "disk_limit": self.disk_limit,
            "rx_bytes": self.rx_bytes,
            "tx_bytes": self.tx_bytes,
            "uptime_ms": self.uptime_ms,
        }
